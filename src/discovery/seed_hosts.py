"""Seed host provider backed by the EC2 instance inventory."""

import logging
from functools import partial

from discovery.cache import RefreshCache
from discovery.clients import Ec2ClientService
from discovery.config import DiscoverySettings
from discovery.errors import InventoryQueryError
from discovery.inventory import Resolver, build_query, fetch_instances, filter_and_extract
from discovery.models.address import TransportAddress
from discovery.transport import addresses_from_string

logger = logging.getLogger(__name__)


class Ec2SeedHostsProvider:
    def __init__(
        self,
        settings: DiscoverySettings,
        client_service: Ec2ClientService,
        resolver: Resolver | None = None,
    ) -> None:
        self._client_service = client_service
        self._criteria = settings.to_criteria()
        self._resolver = resolver or partial(addresses_from_string, default_port=settings.transport_port)
        self._cache: RefreshCache[list[TransportAddress]] = RefreshCache(
            self.fetch_dynamic_nodes,
            ttl_seconds=settings.node_cache_time_seconds,
            initial=[],
            recoverable_errors=(InventoryQueryError,),
        )
        logger.debug(
            "using host_type [%s], tags [%s], groups [%s] with match_mode [%s], availability_zones [%s]",
            self._criteria.host_type,
            self._criteria.tags,
            sorted(self._criteria.groups),
            self._criteria.match_mode.value,
            self._criteria.availability_zones,
        )

    @property
    def cache(self) -> RefreshCache[list[TransportAddress]]:
        return self._cache

    def get_seed_addresses(self) -> list[TransportAddress]:
        """Current seed addresses, refreshed from EC2 when the cache has expired."""
        return list(self._cache.get_or_refresh())

    def fetch_dynamic_nodes(self) -> list[TransportAddress]:
        logger.info("Fetching seed nodes from EC2")
        query = build_query(self._criteria)
        with self._client_service.client() as reference:
            records = fetch_instances(reference.client, query)

        addresses = filter_and_extract(records, self._criteria, self._resolver)
        logger.debug("using dynamic transport addresses %s", [str(a) for a in addresses])
        return addresses
