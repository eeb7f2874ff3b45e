from __future__ import annotations

import pytest

from lib_dynamic_config.domain.errors import (
    ConfigurationError,
    DynamicConfigError,
    InvalidFormat,
    NotFound,
    PathResolutionError,
    PropertyAssignmentError,
    UnknownItemError,
    ValidationError,
)


def test_error_hierarchy() -> None:
    for error_type in (ConfigurationError, PathResolutionError, ValidationError, PropertyAssignmentError):
        assert issubclass(error_type, DynamicConfigError)
    for error_type in (UnknownItemError, InvalidFormat, NotFound):
        assert issubclass(error_type, ConfigurationError)


def test_unknown_item_error_is_a_key_error_with_plain_message() -> None:
    error = UnknownItemError("Unknown config item 'missing'.")
    assert isinstance(error, KeyError)
    assert str(error) == "Unknown config item 'missing'."


def test_unknown_item_error_caught_as_key_error() -> None:
    with pytest.raises(KeyError):
        raise UnknownItemError("Unknown config item 'x'.")
