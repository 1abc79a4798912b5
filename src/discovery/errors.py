"""
Custom exceptions and error handling for EC2 seed discovery.

Defines discovery-specific exceptions with error codes so that callers can
tell fatal configuration problems apart from failures that discovery absorbs.

Usage:
    from discovery.errors import ConfigurationError, ErrorCode

    raise ConfigurationError("foo is unknown for host_type", code=ErrorCode.INVALID_HOST_TYPE)
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for operator-facing error messages."""

    # Configuration errors
    NOT_CONFIGURED = "NOT_CONFIGURED"
    INVALID_SETTINGS = "INVALID_SETTINGS"
    INVALID_HOST_TYPE = "INVALID_HOST_TYPE"
    CLIENT_BUILD_FAILED = "CLIENT_BUILD_FAILED"

    # Inventory errors
    INVENTORY_QUERY_FAILED = "INVENTORY_QUERY_FAILED"

    # Per-record errors
    ADDRESS_RESOLUTION_FAILED = "ADDRESS_RESOLUTION_FAILED"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NOT_CONFIGURED: "EC2 client settings have not been applied yet.",
    ErrorCode.INVALID_SETTINGS: "EC2 discovery settings are invalid. Check the discovery configuration.",
    ErrorCode.INVALID_HOST_TYPE: "The configured host type is not supported for EC2 discovery.",
    ErrorCode.CLIENT_BUILD_FAILED: "Unable to build the EC2 client from the configured settings.",
    ErrorCode.INVENTORY_QUERY_FAILED: "Unable to list EC2 instances. Previously discovered seed hosts are kept.",
    ErrorCode.ADDRESS_RESOLUTION_FAILED: "An instance address could not be resolved and was skipped.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred during discovery.",
}


class DiscoveryError(Exception):
    """Base exception for all discovery errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        self.message = message
        self.code = code
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, USER_MESSAGES[ErrorCode.INTERNAL_ERROR])


class ConfigurationError(DiscoveryError):
    """Discovery is misconfigured. Fatal to the calling operation, never retried."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_SETTINGS):
        super().__init__(message, code=code)


class NotConfiguredError(ConfigurationError):
    """A client was requested before any client settings were applied."""

    def __init__(self, message: str = "Missing ec2 client configs"):
        super().__init__(message, code=ErrorCode.NOT_CONFIGURED)


class InventoryQueryError(DiscoveryError):
    """The instance inventory query failed after provider retries."""

    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.INVENTORY_QUERY_FAILED)


class AddressResolutionError(DiscoveryError):
    """An address string could not be parsed or resolved."""

    def __init__(self, message: str):
        super().__init__(message, code=ErrorCode.ADDRESS_RESOLUTION_FAILED)
