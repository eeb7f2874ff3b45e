"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the contracts the manager orchestrates without depending on concrete
implementations.

Contents
--------
* :class:`Storage` – persistence of the flat ``id -> value`` mapping.
* :class:`Cache` – volatile key/value store holding the composed config.
* :class:`FileLoader` – parses structured files (items declarations, file
  storage content).

System Role
-----------
Adapters under :mod:`lib_dynamic_config.adapters` implement these ports; the
manager only ever talks to them through the methods listed here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Protocol, runtime_checkable


class Storage(ABC):
    """Persist config item values in the flat ``id -> value`` format.

    Guarantees
    ----------
    * :meth:`save` replaces the whole stored set; :meth:`get` afterwards
      returns exactly the saved mapping.
    * :meth:`clear` removes everything; :meth:`get` afterwards returns ``{}``.
    * Backend errors propagate unchanged; nothing is retried.
    """

    @abstractmethod
    def save(self, values: Mapping[Any, Any]) -> bool:
        """Replace the stored values with *values*; ``True`` on success."""

    @abstractmethod
    def get(self) -> dict[Any, Any]:
        """Return every stored value."""

    @abstractmethod
    def clear(self) -> bool:
        """Delete every stored value; ``True`` on success."""

    def clear_value(self, item_id: Any) -> bool:
        """Delete the stored value of *item_id*.

        The default reads everything, drops the entry and saves the rest;
        backends with native single-row deletes override it.
        """

        values = self.get()
        values.pop(item_id, None)
        return self.save(values)


@runtime_checkable
class Cache(Protocol):
    """Volatile store used to memoise the composed configuration.

    ``ttl`` is in seconds; ``0`` means the entry never expires.
    """

    def get(self, key: str) -> Any | None:
        """Return the cached value or ``None`` when absent or expired."""

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        """Store *value* under *key*."""

    def delete(self, key: str) -> bool:
        """Remove *key*; ``True`` when something was removed."""


@runtime_checkable
class FileLoader(Protocol):
    """Parse a structured file into a mapping."""

    def load(self, path: str) -> Mapping[str, object]:
        """Read *path* and return a mapping representation or raise ``InvalidFormat``."""
