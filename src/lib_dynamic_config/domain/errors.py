"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by items, the manager, storage
adapters and consuming applications. The hierarchy lives in the domain layer
so outer layers may depend on it without creating import cycles.

Contents
--------
* :class:`DynamicConfigError` – umbrella base class for every library error.
* :class:`ConfigurationError` – malformed item, items, storage or settings
  declarations.
* :class:`UnknownItemError` – lookup of an item id the manager does not own.
* :class:`InvalidFormat` / :class:`NotFound` – unreadable or missing files.
* :class:`PathResolutionError` – a config path could not be extracted or
  composed.
* :class:`ValidationError` – a validation rule was declared with unusable
  options.
* :class:`PropertyAssignmentError` – applying a value onto a live target
  failed.

System Role
-----------
Callers catch :class:`DynamicConfigError` to handle all library failures
uniformly. Storage backend exceptions (database drivers, filesystem) are not
wrapped and propagate unchanged.
"""

from __future__ import annotations


class DynamicConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_dynamic_config``."""


class ConfigurationError(DynamicConfigError):
    """Raised when declarative configuration for the library itself is malformed.

    Typical Sources
    ---------------
    Items files that do not produce a mapping, item descriptors with unknown
    properties, rules without a validator type, unknown storage aliases.
    """


class UnknownItemError(ConfigurationError, KeyError):
    """Raised when an item id is not registered with the manager.

    Inherits from :class:`KeyError` so mapping-style callers keep working.
    """

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


class InvalidFormat(ConfigurationError):
    """Raised when a file cannot be parsed into structured data.

    Typical Sources
    ---------------
    Structured file loaders (:mod:`tomllib`, :mod:`json`, :mod:`yaml`,
    :func:`ast.literal_eval`) reading items declarations or file storage.
    """


class NotFound(ConfigurationError):
    """Represents a missing file or an unavailable optional parser."""


class PathResolutionError(DynamicConfigError):
    """Raised when a config path cannot be walked or built.

    Covers empty paths, missing keys or properties along the way and attempts
    to descend into scalar values. Never caught inside the library.
    """


class ValidationError(DynamicConfigError):
    """Signifies that a validation rule was declared with invalid options.

    Rule *failures* are not exceptions; they are collected on the item and
    reported through :meth:`lib_dynamic_config.domain.item.Item.validate`.
    """


class PropertyAssignmentError(DynamicConfigError):
    """Raised when a configuration value cannot be assigned onto a target object."""
