"""Config item model and the path extraction/composition engine.

Purpose
-------
An :class:`Item` is one named, path-addressed configuration value. It can read
its current value out of a live configuration source, compose the
single-branch configuration fragment that would set it, and validate itself
against declarative rules.

Contents
--------
* :func:`extract_path_value` – walk a path through mappings and objects.
* :func:`compose_path_value` – build ``{a: {b: value}}`` from ``["a", "b"]``.
* :class:`Item` – the item model.
* :data:`ITEM_PROPERTIES` – keys accepted in item descriptors.

System Role
-----------
Items are created and owned by :class:`lib_dynamic_config.manager.Manager`;
the manager threads the extraction ``source`` in explicitly, so nothing here
looks up global application state.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any, Final

from ..observability import log_debug, make_event
from .errors import ConfigurationError, PathResolutionError
from .module import ComponentContainer
from .path import format_path, get_path_parts
from .rules import Rule, build_rules

ITEM_PROPERTIES: Final[frozenset[str]] = frozenset(
    {"path", "rules", "label", "description", "value", "input_options", "source"}
)

_SCALARS: Final[tuple[type, ...]] = (str, bytes, bytearray, int, float, complex, bool, type(None))
_COMPONENTS_KEY: Final[str] = "components"
_UNSET: Final = object()


def extract_path_value(source: Any, path_parts: Sequence[object]) -> Any:
    """Return the value found at *path_parts* inside *source*.

    Each step dispatches on the node type: mappings require the key, objects
    offer ``components`` of a component container, then attributes, then
    indexed access. Scalars cannot be descended into.

    Raises
    ------
    PathResolutionError
        On an empty path or when any segment cannot be resolved.

    Examples
    --------
    >>> extract_path_value({"params": {"page_size": 20}}, ["params", "page_size"])
    20
    >>> extract_path_value({"params": {}}, ["params", "missing"])
    Traceback (most recent call last):
    ...
    lib_dynamic_config.domain.errors.PathResolutionError: Key "missing" not present!
    """

    if not path_parts:
        raise PathResolutionError("Empty extraction path.")
    node = source
    remaining = list(path_parts)
    while remaining:
        node = _descend(node, remaining)
        remaining.pop(0)
    return node


def compose_path_value(path_parts: Sequence[object], value: Any) -> dict[Any, Any]:
    """Build the single-branch mapping that places *value* at *path_parts*.

    Examples
    --------
    >>> compose_path_value(["components", "formatter", "null_display"], "-")
    {'components': {'formatter': {'null_display': '-'}}}
    """

    if not path_parts:
        raise PathResolutionError("Empty composition path.")
    branch: Any = value
    for name in reversed(list(path_parts)):
        branch = {name: branch}
    return branch


def _descend(node: Any, remaining: list[object]) -> Any:
    """Resolve the first segment of *remaining* against *node*."""

    name = remaining[0]
    if isinstance(node, Mapping):
        if name in node:
            return node[name]
        raise PathResolutionError(f'Key "{name}" not present!')
    if isinstance(node, _SCALARS):
        raise PathResolutionError(
            f'Unable to extract path "{format_path(remaining)}" from "{type(node).__name__}"'
        )
    if name == _COMPONENTS_KEY and isinstance(node, ComponentContainer):
        return node.get_components(realize=True)
    if isinstance(name, str) and hasattr(node, name):
        return getattr(node, name)
    if hasattr(node, "__getitem__"):
        key: object = name
        if isinstance(node, Sequence) and isinstance(name, str) and name.lstrip("-").isdigit():
            key = int(name)
        try:
            return node[key]
        except (KeyError, IndexError, TypeError):
            pass
    raise PathResolutionError(f'Property "{type(node).__name__}::{name}" not present!')


def _words(name: str) -> str:
    """Turn an identifier into title-cased words (``"siteName"`` -> ``"Site Name"``)."""

    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", name)
    words = re.split(r"[\s_\-.]+", spaced)
    return " ".join(word[:1].upper() + word[1:] for word in words if word)


class Item:
    """One named configuration value bound to a path in the application config.

    The value is lazy: unless set explicitly it is extracted from ``source``
    on first access and kept for the rest of the item's lifetime, even if the
    source changes afterwards.

    Examples
    --------
    >>> item = Item("page_size", value=50)
    >>> item.get_path_parts()
    ['params', 'page_size']
    >>> item.compose_config()
    {'params': {'page_size': 50}}
    >>> item.label
    'Page Size'
    """

    def __init__(
        self,
        id: object = None,
        *,
        path: str | Sequence[object] | None = None,
        rules: Sequence[Any] = (),
        label: str | None = None,
        description: str | None = None,
        input_options: Mapping[str, Any] | None = None,
        value: Any = _UNSET,
        source: Any = None,
    ) -> None:
        self._id = id
        self.path = path
        self.rules = rules
        self._label = label
        self.description = description
        self.input_options: dict[str, Any] = dict(input_options or {})
        self._value = value
        self.source = source
        self._errors: list[str] = []

    @classmethod
    def from_descriptor(cls, item_id: object, descriptor: Mapping[str, Any], source: Any = None) -> "Item":
        """Build an item from a declarative *descriptor* such as ``{"path": "name"}``.

        The manager-provided *source* applies unless the descriptor sets one.
        """

        unknown = sorted(str(key) for key in descriptor if key not in ITEM_PROPERTIES)
        if unknown:
            raise ConfigurationError(f"Unknown properties {unknown} for config item '{item_id}'.")
        options = {"source": source, **descriptor}
        return cls(item_id, **options)

    @property
    def id(self) -> object:
        """Identifier assigned by the owning manager."""

        return self._id

    @property
    def rules(self) -> Sequence[Any]:
        """Rule descriptors as declared (without the implicit ``safe`` rule)."""

        return self._rule_descriptors

    @rules.setter
    def rules(self, descriptors: Sequence[Any]) -> None:
        self._rule_descriptors = descriptors
        self._validators: list[Rule] | None = None

    @property
    def validators(self) -> list[Rule]:
        """Rule objects in application order, ``safe`` first."""

        if self._validators is None:
            self._validators = build_rules(self._rule_descriptors)
        return self._validators

    @property
    def label(self) -> str:
        """Human readable label for the value, derived from the id when unset."""

        if self._label is None:
            self._label = _words(self._id) if isinstance(self._id, str) else "Value"
        return self._label

    @label.setter
    def label(self, label: str | None) -> None:
        self._label = label

    @property
    def value(self) -> Any:
        """Current value, extracted from :attr:`source` on first access when never set."""

        if self._value is _UNSET:
            self._value = self.extract_current_value()
        return self._value

    @value.setter
    def value(self, value: Any) -> None:
        self._value = value

    @property
    def has_value(self) -> bool:
        """Whether the value was set or already extracted."""

        return self._value is not _UNSET

    @property
    def errors(self) -> list[str]:
        """Messages produced by the last :meth:`validate` call."""

        return list(self._errors)

    def get_path_parts(self) -> list[object]:
        """Return the config path segments, defaulting to ``["params", id]``."""

        return get_path_parts(self.path, self._id)

    def extract_current_value(self, source: Any = None) -> Any:
        """Read the value at this item's path from *source* (default: :attr:`source`)."""

        parts = self.get_path_parts()
        root = self.source if source is None else source
        value = extract_path_value(root, parts)
        log_debug("item_value_extracted", **make_event(self._id, format_path(parts)))
        return value

    def compose_config(self) -> dict[Any, Any]:
        """Return the configuration fragment that applies this item's value."""

        return compose_path_value(self.get_path_parts(), self.value)

    def validate(self) -> bool:
        """Apply the rules to the value, collecting errors; ``True`` when none failed.

        Filtering rules (``trim``, ``default``, ``filter``) write their result
        back to the value. Evaluation stops at the first failing rule.
        """

        self._errors = []
        value = self.value
        for rule in self.validators:
            value, error = rule.apply(value, self.label)
            if error is not None:
                self._errors.append(error)
                break
        self._value = value
        return not self._errors

    def __repr__(self) -> str:
        return f"Item(id={self._id!r}, path={format_path(self.get_path_parts())!r})"
