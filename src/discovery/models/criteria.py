"""Filter criteria and host-type selection for instance discovery."""

from enum import Enum

from pydantic import BaseModel, ConfigDict

from discovery.errors import ConfigurationError, ErrorCode

TAG_PREFIX = "tag:"


class GroupMatchMode(str, Enum):
    ANY = "any"
    ALL = "all"


class HostTypeKind(str, Enum):
    PRIVATE_DNS = "private_dns"
    PRIVATE_IP = "private_ip"
    PUBLIC_DNS = "public_dns"
    PUBLIC_IP = "public_ip"
    TAG = "tag"


class HostType(BaseModel):
    """Which instance attribute becomes the seed address."""

    model_config = ConfigDict(frozen=True)

    kind: HostTypeKind
    tag_name: str | None = None

    @classmethod
    def parse(cls, value: str) -> "HostType":
        """Parse ``private_ip``-style values and ``tag:<name>``.

        Raises ConfigurationError for anything else.
        """
        if value.startswith(TAG_PREFIX):
            tag_name = value[len(TAG_PREFIX) :]
            if not tag_name:
                raise ConfigurationError(
                    f"{value} is unknown for discovery host_type", code=ErrorCode.INVALID_HOST_TYPE
                )
            return cls(kind=HostTypeKind.TAG, tag_name=tag_name)
        try:
            kind = HostTypeKind(value)
        except ValueError:
            kind = None
        if kind is None or kind is HostTypeKind.TAG:
            raise ConfigurationError(f"{value} is unknown for discovery host_type", code=ErrorCode.INVALID_HOST_TYPE)
        return cls(kind=kind)

    def __str__(self) -> str:
        if self.kind is HostTypeKind.TAG:
            return f"{TAG_PREFIX}{self.tag_name}"
        return self.kind.value


class FilterCriteria(BaseModel):
    """Operator criteria for selecting seed instances.

    ``host_type`` stays a raw string; it is parsed when discovery runs so that a
    bad value fails the discovery call rather than process startup.
    """

    model_config = ConfigDict(frozen=True)

    groups: frozenset[str] = frozenset()
    match_mode: GroupMatchMode = GroupMatchMode.ANY
    tags: dict[str, list[str]] = {}
    availability_zones: list[str] = []
    host_type: str = HostTypeKind.PRIVATE_IP.value
