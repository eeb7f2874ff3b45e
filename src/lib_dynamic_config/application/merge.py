"""Application-layer merge policy.

Purpose
-------
Combine configuration fragments into one tree. Mappings present on both sides
are merged key by key; on any other collision the later value wins, so
sequences are replaced rather than concatenated. Free of I/O so it can be
reused wherever trees must be overlaid (composition, components, params).

Contents
    - ``merge_trees``: fold any number of fragments, lowest precedence first.
    - ``deep_merge``: merge two fragments into a new tree.
    - ``_merge_mapping`` / ``_merge_branch`` / ``_copy_mapping``: recursive
      stanzas that keep the tie-break rule readable.

System Role
-----------
Used by :meth:`lib_dynamic_config.manager.Manager.compose_config` to merge
item branches and by :mod:`lib_dynamic_config.application.configure` to
overlay components, module declarations and params.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable


def merge_trees(fragments: Iterable[Mapping[Any, Any]]) -> dict[Any, Any]:
    """Merge *fragments* in order; later fragments win on scalar collisions.

    Examples
    --------
    >>> merge_trees([
    ...     {"params": {"a": 1}},
    ...     {"params": {"b": 2}},
    ...     {"params": {"a": 3}},
    ... ])
    {'params': {'a': 3, 'b': 2}}
    """

    merged: dict[Any, Any] = {}
    for fragment in fragments:
        _merge_mapping(merged, fragment)
    return merged


def deep_merge(base: Mapping[Any, Any], incoming: Mapping[Any, Any]) -> dict[Any, Any]:
    """Return a new tree with *incoming* merged over *base*; inputs stay untouched.

    Examples
    --------
    >>> base = {"db": {"host": "localhost", "ports": [5432]}}
    >>> deep_merge(base, {"db": {"ports": [6432]}})
    {'db': {'host': 'localhost', 'ports': [6432]}}
    >>> base["db"]["ports"]
    [5432]
    """

    merged = _copy_mapping(base)
    _merge_mapping(merged, incoming)
    return merged


def _merge_mapping(target: dict[Any, Any], incoming: Mapping[Any, Any]) -> None:
    """Recursively merge ``incoming`` into ``target``."""

    for key, value in incoming.items():
        if isinstance(value, Mapping):
            _merge_branch(target, key, value)
        else:
            target[key] = value


def _merge_branch(target: dict[Any, Any], key: Any, value: Mapping[Any, Any]) -> None:
    """Merge mapping ``value`` into ``target[key]``, replacing non-mapping values."""

    existing = target.get(key)
    container = _copy_mapping(existing) if isinstance(existing, Mapping) else {}
    _merge_mapping(container, value)
    target[key] = container


def _copy_mapping(mapping: Mapping[Any, Any]) -> dict[Any, Any]:
    """Clone the mapping skeleton of *mapping*; leaves are shared, not copied."""

    return {key: _copy_mapping(value) if isinstance(value, Mapping) else value for key, value in mapping.items()}
