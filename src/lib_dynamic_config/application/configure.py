"""Apply a composed configuration tree onto a live object graph.

Purpose
-------
Push values produced by :meth:`lib_dynamic_config.manager.Manager.compose_config`
back into a running application without clobbering what the tree does not
mention.

Contents
    - ``configure_target``: walk the top-level keys of a tree.
    - ``assign_property``: plain attribute (or item) assignment honouring the
      ignore-errors policy.
    - ``_configure_components`` / ``_configure_modules`` / ``_configure_params``:
      structural stanzas for hierarchical modules.

System Role
-----------
Hierarchical modules (see :class:`lib_dynamic_config.domain.module.HierarchicalModule`)
get structural treatment for ``components``, ``modules`` and ``params``; every
other key, and every key of any other object, becomes a property assignment.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Any

from ..domain.errors import PropertyAssignmentError
from ..domain.module import HierarchicalModule
from ..observability import log_debug, log_warning
from .merge import deep_merge


def configure_target(target: Any, config: Mapping[Any, Any], *, ignore_errors: bool = False) -> None:
    """Apply *config* onto *target* key by key.

    Parameters
    ----------
    target:
        Hierarchical module or any plain object/mutable mapping.
    config:
        Composed configuration tree.
    ignore_errors:
        Log failed plain property assignments as warnings instead of raising
        :class:`PropertyAssignmentError`. Structural keys are never ignored.

    Examples
    --------
    >>> from lib_dynamic_config.domain.module import Module
    >>> app = Module(name="initial", params={"a": 1, "b": 2})
    >>> configure_target(app, {"name": "renamed", "params": {"a": 10}})
    >>> app.name, app.params
    ('renamed', {'a': 10, 'b': 2})
    """

    if not isinstance(target, HierarchicalModule):
        for key, value in config.items():
            assign_property(target, key, value, ignore_errors=ignore_errors)
        return

    for key, value in config.items():
        if key == "components":
            _configure_components(target, value)
        elif key == "modules":
            _configure_modules(target, value, ignore_errors)
        elif key == "params" and isinstance(value, Mapping):
            _configure_params(target, value)
        else:
            assign_property(target, key, value, ignore_errors=ignore_errors)


def assign_property(target: Any, name: Any, value: Any, *, ignore_errors: bool = False) -> None:
    """Set *name* on *target* (item assignment for mutable mappings)."""

    try:
        if isinstance(target, MutableMapping):
            target[name] = value
        else:
            setattr(target, name, value)
    except Exception as exc:
        message = f'Unable to set "{type(target).__name__}::{name}": {exc}'
        if not ignore_errors:
            raise PropertyAssignmentError(message) from exc
        log_warning("configure_error", target=type(target).__name__, key=name, error=str(exc))


def _configure_components(target: HierarchicalModule, value: Mapping[Any, Any]) -> None:
    """Overlay *value* on the component declarations and replace the whole set.

    Only the ids named in *value* are re-declared; every other declaration is
    handed back as the same object so live instances of untouched components
    survive.
    """

    components = target.get_components()
    for component_id, overlay in value.items():
        current = components.get(component_id)
        if isinstance(current, Mapping) and isinstance(overlay, Mapping):
            components[component_id] = deep_merge(current, overlay)
        else:
            components[component_id] = overlay
    target.set_components(components)
    log_debug("components_configured", components=sorted(str(key) for key in value))


def _configure_modules(target: HierarchicalModule, value: Mapping[Any, Any], ignore_errors: bool) -> None:
    """Reconfigure declared nested modules that *value* mentions; others stay untouched."""

    nested = target.get_modules()
    for module_id, module in nested.items():
        if module_id not in value:
            continue
        if isinstance(module, Mapping):
            nested[module_id] = deep_merge(module, value[module_id])
        else:
            configure_target(module, value[module_id], ignore_errors=ignore_errors)
    target.set_modules(nested)


def _configure_params(target: HierarchicalModule, value: Mapping[Any, Any]) -> None:
    target.params = deep_merge(target.params or {}, value)
