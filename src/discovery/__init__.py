"""
EC2 seed host discovery.

Finds cluster peers by listing EC2 instances, filtering them by security
group, tags and availability zone, and turning the chosen instance attribute
into transport addresses. Handlers in src/handlers/ are thin wrappers that
call into this package.
"""

from discovery.plugin import DiscoveryPlugin, get_discovery_plugin
from discovery.seed_hosts import Ec2SeedHostsProvider

__all__ = ["DiscoveryPlugin", "Ec2SeedHostsProvider", "get_discovery_plugin"]
