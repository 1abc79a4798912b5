"""Wires configuration, the EC2 client service and the seed host provider together."""

import logging
from functools import lru_cache

from discovery.clients import Ec2ClientService
from discovery.config import Config, Ec2ClientSettings, get_config
from discovery.models.address import TransportAddress
from discovery.seed_hosts import Ec2SeedHostsProvider

logger = logging.getLogger(__name__)


class DiscoveryPlugin:
    def __init__(self, config: Config, client_service: Ec2ClientService | None = None) -> None:
        self._client_service = client_service or Ec2ClientService()
        # Initial client settings; the client itself is built on first use
        self._client_service.refresh_and_clear_cache(config.client)
        self._provider = Ec2SeedHostsProvider(config.discovery, self._client_service)

    @property
    def client_service(self) -> Ec2ClientService:
        return self._client_service

    @property
    def seed_hosts_provider(self) -> Ec2SeedHostsProvider:
        return self._provider

    def get_seed_addresses(self) -> list[TransportAddress]:
        return self._provider.get_seed_addresses()

    def reload(self, client_settings: Ec2ClientSettings) -> None:
        """Swap in new client settings. In-flight requests finish on the old client."""
        logger.info("Reloading EC2 client settings for region %s", client_settings.region)
        self._client_service.refresh_and_clear_cache(client_settings)

    def close(self) -> None:
        self._client_service.close()


@lru_cache(maxsize=1)
def get_discovery_plugin() -> DiscoveryPlugin:
    return DiscoveryPlugin(get_config())
