"""Scoping filter shared by storages that live in a shared table or collection.

A filter is a static mapping (``{"group": "frontend"}``) or a zero-argument
callable returning one (``lambda: {"user_id": current_user_id()}``). Its
entries become extra discriminator columns/fields, so several logically
distinct configuration sets can share one physical table without colliding.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Union

StorageFilter = Union[Mapping[str, Any], Callable[[], Mapping[str, Any]], None]


class StorageFilterMixin:
    """Compose read/write conditions from :attr:`filter`.

    Examples
    --------
    >>> scoped = StorageFilterMixin()
    >>> scoped.filter = {"group": "frontend"}
    >>> scoped.compose_filter_condition({"id": "page_size"})
    {'group': 'frontend', 'id': 'page_size'}
    >>> scoped.filter = lambda: {"group": "backend"}
    >>> scoped.compose_filter_condition()
    {'group': 'backend'}
    """

    filter: StorageFilter = None

    def compose_filter_condition(self, condition: Mapping[str, Any] | None = None) -> dict[str, Any]:
        """Return the filter merged with *condition*; *condition* wins on shared keys."""

        result: dict[str, Any] = {}
        if self.filter is not None:
            result.update(self.filter() if callable(self.filter) else self.filter)
        if condition:
            result.update(condition)
        return result
