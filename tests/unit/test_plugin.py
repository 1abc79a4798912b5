"""Unit tests for plugin wiring and reload."""

from unittest.mock import MagicMock

from discovery.clients import Ec2ClientService
from discovery.config import Config, DiscoverySettings, Ec2ClientSettings
from discovery.plugin import DiscoveryPlugin


def make_config(region: str = "us-east-1") -> Config:
    return Config(client=Ec2ClientSettings(region=region), discovery=DiscoverySettings(), environment="test")


def test_plugin_applies_initial_client_settings():
    service = MagicMock(spec=Ec2ClientService)

    plugin = DiscoveryPlugin(make_config("eu-west-1"), client_service=service)

    service.refresh_and_clear_cache.assert_called_once_with(Ec2ClientSettings(region="eu-west-1"))
    assert plugin.client_service is service


def test_plugin_reload_hot_swaps_client():
    service = MagicMock(spec=Ec2ClientService)
    plugin = DiscoveryPlugin(make_config(), client_service=service)

    plugin.reload(Ec2ClientSettings(region="ap-south-1"))

    assert service.refresh_and_clear_cache.call_args_list[-1].args == (Ec2ClientSettings(region="ap-south-1"),)


def test_plugin_close_closes_client_service():
    service = MagicMock(spec=Ec2ClientService)
    plugin = DiscoveryPlugin(make_config(), client_service=service)

    plugin.close()

    service.close.assert_called_once()


def test_plugin_get_seed_addresses_delegates():
    plugin = DiscoveryPlugin(make_config(), client_service=MagicMock(spec=Ec2ClientService))
    plugin.seed_hosts_provider.get_seed_addresses = MagicMock(return_value=[])

    assert plugin.get_seed_addresses() == []
    plugin.seed_hosts_provider.get_seed_addresses.assert_called_once()
