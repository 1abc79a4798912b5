"""Seed hosts handler: returns the current EC2 seed addresses."""

import json
import logging
from typing import Any

from discovery.errors import ConfigurationError
from discovery.plugin import get_discovery_plugin

logger = logging.getLogger(__name__)


def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    """Inventory failures never surface here; only configuration errors do."""
    try:
        addresses = get_discovery_plugin().get_seed_addresses()
    except ConfigurationError as e:
        logger.error("Seed host discovery is misconfigured: %s", e)
        return {
            "statusCode": 500,
            "body": json.dumps({"error": e.code.value, "message": e.user_message}),
        }

    logger.info("Returning %d seed addresses", len(addresses))
    return {
        "statusCode": 200,
        "body": json.dumps({"seedAddresses": [str(address) for address in addresses]}),
    }
