"""Reload handler: re-reads EC2 client settings and hot-swaps the client."""

import logging
from typing import Any

from discovery.config import reload_config
from discovery.errors import ConfigurationError
from discovery.plugin import get_discovery_plugin

logger = logging.getLogger(__name__)


def handler(event: dict[str, Any], context: object) -> dict[str, int]:
    try:
        config = reload_config()
    except ConfigurationError:
        logger.exception("Refusing to reload invalid EC2 client settings")
        return {"statusCode": 400}

    get_discovery_plugin().reload(config.client)
    return {"statusCode": 200}
