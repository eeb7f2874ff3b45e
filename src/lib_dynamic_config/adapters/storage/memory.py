"""In-process storage, useful for tests and for managers used as a plain value store."""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Mapping

from ...application.ports import Storage
from ...observability import log_debug


class MemoryStorage(Storage):
    """Keep values in a private dictionary; nothing survives the process.

    >>> storage = MemoryStorage()
    >>> storage.save({"page_size": 20})
    True
    >>> storage.get()
    {'page_size': 20}
    """

    def __init__(self, values: Mapping[Any, Any] | None = None) -> None:
        self._values: dict[Any, Any] = deepcopy(dict(values or {}))

    def save(self, values: Mapping[Any, Any]) -> bool:
        self._values = deepcopy(dict(values))
        log_debug("storage_saved", storage="memory", keys=len(self._values))
        return True

    def get(self) -> dict[Any, Any]:
        return deepcopy(self._values)

    def clear(self) -> bool:
        self._values = {}
        log_debug("storage_cleared", storage="memory")
        return True

    def clear_value(self, item_id: Any) -> bool:
        self._values.pop(item_id, None)
        return True
