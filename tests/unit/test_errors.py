from discovery.errors import (
    USER_MESSAGES,
    AddressResolutionError,
    ConfigurationError,
    DiscoveryError,
    ErrorCode,
    InventoryQueryError,
    NotConfiguredError,
)


def test_all_error_codes_have_user_message():
    for code in ErrorCode:
        assert code in USER_MESSAGES


def test_default_codes():
    assert DiscoveryError("x").code == ErrorCode.INTERNAL_ERROR
    assert ConfigurationError("x").code == ErrorCode.INVALID_SETTINGS
    assert NotConfiguredError().code == ErrorCode.NOT_CONFIGURED
    assert InventoryQueryError("x").code == ErrorCode.INVENTORY_QUERY_FAILED
    assert AddressResolutionError("x").code == ErrorCode.ADDRESS_RESOLUTION_FAILED


def test_not_configured_is_a_configuration_error():
    assert isinstance(NotConfiguredError(), ConfigurationError)


def test_recoverable_errors_are_not_configuration_errors():
    assert not isinstance(InventoryQueryError("x"), ConfigurationError)
    assert not isinstance(AddressResolutionError("x"), ConfigurationError)


def test_user_message_never_exposes_internal_message():
    internal = "AuthFailure: AWS was not able to validate the provided access credentials AKIA123"
    err = ConfigurationError(internal, code=ErrorCode.CLIENT_BUILD_FAILED)
    assert internal not in err.user_message
    assert err.user_message == USER_MESSAGES[ErrorCode.CLIENT_BUILD_FAILED]
