from os import environ

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from discovery.errors import ConfigurationError
from discovery.models.criteria import FilterCriteria, GroupMatchMode

TAG_ENV_PREFIX = "DISCOVERY_TAG_"


class ProxySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host: str = ""
    port: int = Field(default=80, ge=0, le=65535)
    protocol: str = Field(default="https", pattern="^(http|https)$")
    username: str = ""
    password: str = ""


class Ec2ClientSettings(BaseModel):
    """Everything needed to build an EC2 client. Replaced wholesale on reload."""

    model_config = ConfigDict(frozen=True)

    access_key: str = ""
    secret_key: str = ""
    session_token: str = ""
    region: str = "us-east-1"
    endpoint: str | None = None
    proxy: ProxySettings = ProxySettings()
    read_timeout_millis: int = Field(default=50_000, gt=0)
    config_dir: str = "/etc/ec2-discovery"

    @model_validator(mode="after")
    def key_and_secret_together(self) -> "Ec2ClientSettings":
        if bool(self.access_key) != bool(self.secret_key):
            raise ValueError("access_key and secret_key must be set together")
        if self.session_token and not self.access_key:
            raise ValueError("session_token requires access_key and secret_key")
        return self

    @property
    def credentials(self) -> tuple[str, str, str | None] | None:
        if not self.access_key:
            return None
        return self.access_key, self.secret_key, self.session_token or None


class DiscoverySettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    host_type: str = "private_ip"
    any_group: bool = True
    groups: list[str] = []
    availability_zones: list[str] = []
    tags: dict[str, list[str]] = {}
    node_cache_time_seconds: float = Field(default=10.0, ge=0)
    transport_port: int = Field(default=9300, ge=0, le=65535)

    def to_criteria(self) -> FilterCriteria:
        return FilterCriteria(
            groups=frozenset(self.groups),
            match_mode=GroupMatchMode.ANY if self.any_group else GroupMatchMode.ALL,
            tags=self.tags,
            availability_zones=self.availability_zones,
            host_type=self.host_type,
        )


class Config(BaseModel):
    model_config = ConfigDict(frozen=True)

    client: Ec2ClientSettings
    discovery: DiscoverySettings
    environment: str


def _split(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _tag_filters() -> dict[str, list[str]]:
    """Collect DISCOVERY_TAG_<key>=v1,v2 variables. Keys keep their original case."""
    tags: dict[str, list[str]] = {}
    for name in sorted(environ):
        if name.startswith(TAG_ENV_PREFIX) and len(name) > len(TAG_ENV_PREFIX):
            values = _split(environ[name])
            if values:
                tags[name[len(TAG_ENV_PREFIX) :]] = values
    return tags


def load_client_settings() -> Ec2ClientSettings:
    return Ec2ClientSettings(
        access_key=environ.get("EC2_ACCESS_KEY", ""),
        secret_key=environ.get("EC2_SECRET_KEY", ""),
        session_token=environ.get("EC2_SESSION_TOKEN", ""),
        region=environ.get("AWS_REGION", "us-east-1"),
        endpoint=environ.get("EC2_ENDPOINT") or None,
        proxy=ProxySettings(
            host=environ.get("EC2_PROXY_HOST", ""),
            port=int(environ.get("EC2_PROXY_PORT", "80")),
            protocol=environ.get("EC2_PROTOCOL", "https"),
            username=environ.get("EC2_PROXY_USERNAME", ""),
            password=environ.get("EC2_PROXY_PASSWORD", ""),
        ),
        read_timeout_millis=int(environ.get("EC2_READ_TIMEOUT_MS", "50000")),
        config_dir=environ.get("DISCOVERY_CONFIG_DIR", "/etc/ec2-discovery"),
    )


def load_discovery_settings() -> DiscoverySettings:
    return DiscoverySettings(
        host_type=environ.get("DISCOVERY_HOST_TYPE", "private_ip"),
        any_group=_parse_bool(environ.get("DISCOVERY_ANY_GROUP", "true")),
        groups=_split(environ.get("DISCOVERY_GROUPS", "")),
        availability_zones=_split(environ.get("DISCOVERY_AVAILABILITY_ZONES", "")),
        tags=_tag_filters(),
        node_cache_time_seconds=float(environ.get("DISCOVERY_NODE_CACHE_TIME", "10")),
        transport_port=int(environ.get("TRANSPORT_PORT", "9300")),
    )


_cached_config: Config | None = None


def _reset_config() -> None:
    """Reset cached config."""
    global _cached_config
    _cached_config = None


def get_config() -> Config:
    global _cached_config
    if _cached_config is not None:
        return _cached_config

    try:
        _cached_config = Config(
            client=load_client_settings(),
            discovery=load_discovery_settings(),
            environment=environ.get("ENVIRONMENT", "local"),
        )
    except (ValidationError, ValueError) as e:
        raise ConfigurationError(f"Invalid discovery configuration: {e}") from e
    return _cached_config


def reload_config() -> Config:
    """Drop the cached config and read the environment again."""
    _reset_config()
    return get_config()
