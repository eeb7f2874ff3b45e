"""Flat-file storage.

Purpose
-------
Keep all item values in one file holding a single literal mapping. The format
follows the file suffix: ``.json``, ``.yaml``/``.yml`` (PyYAML) or ``.py`` (a
Python literal parsed with :func:`ast.literal_eval`, never executed).

Every write regenerates the whole file. Parsed content is cached process-wide
per path and keyed by the file's modification signature; writes and clears
evict the entry so later reads in any :class:`FileStorage` observe the new
content.

Contents
--------
* :class:`FileStorage` – the storage adapter.
* :func:`invalidate_file_cache` – evict the parsed content of one path.
"""

from __future__ import annotations

import ast
import json
import pprint
from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, Final, Mapping

from ...application.ports import Storage
from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug
from ..file_loaders.structured import loader_for, yaml

DEFAULT_FILE_NAME: Final[str] = "runtime/app_config.json"
_LITERAL_HEADER: Final[str] = "# Generated by lib_dynamic_config. Manual edits are overwritten.\n"

_CONTENT_CACHE: dict[str, tuple[tuple[int, int], dict[Any, Any]]] = {}


def invalidate_file_cache(path: str | Path) -> None:
    """Forget the parsed content cached for *path*."""

    _CONTENT_CACHE.pop(str(Path(path).resolve()), None)


def _dump_json(values: Mapping[Any, Any]) -> str:
    return json.dumps(dict(values), indent=2, ensure_ascii=False) + "\n"


def _dump_yaml(values: Mapping[Any, Any]) -> str:
    if yaml is None:
        raise NotFound("PyYAML is required for YAML configuration support")
    return yaml.safe_dump(dict(values), sort_keys=False, allow_unicode=True)


def _dump_literal(values: Mapping[Any, Any]) -> str:
    body = pprint.pformat(dict(values), sort_dicts=False)
    try:
        ast.literal_eval(body)
    except (ValueError, SyntaxError) as exc:
        raise InvalidFormat(f"Values cannot be stored as a Python literal: {exc}") from exc
    return _LITERAL_HEADER + body + "\n"


_DUMPERS: Final[dict[str, Callable[[Mapping[Any, Any]], str]]] = {
    ".json": _dump_json,
    ".yaml": _dump_yaml,
    ".yml": _dump_yaml,
    ".py": _dump_literal,
}


class FileStorage(Storage):
    """Store values as one literal mapping in *path*.

    Parameters
    ----------
    path:
        Target file; parent directories are created on first save.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> storage = FileStorage(Path(tmp.name) / "values.py")
    >>> storage.save({"page_size": 20})
    True
    >>> storage.get()
    {'page_size': 20}
    >>> storage.clear(), storage.get()
    (True, {})
    >>> tmp.cleanup()
    """

    def __init__(self, path: str | Path = DEFAULT_FILE_NAME) -> None:
        self.path = Path(path)
        suffix = self.path.suffix.lower()
        if suffix not in _DUMPERS:
            raise InvalidFormat(f'Unsupported storage file format "{suffix}" for {self.path}')
        self._dump = _DUMPERS[suffix]

    def save(self, values: Mapping[Any, Any]) -> bool:
        content = self._dump(values)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        written = self.path.write_text(content, encoding="utf-8")
        invalidate_file_cache(self.path)
        log_debug("storage_saved", storage="file", path=str(self.path), keys=len(values))
        return written > 0

    def get(self) -> dict[Any, Any]:
        if not self.path.is_file():
            return {}
        key = str(self.path.resolve())
        stat = self.path.stat()
        signature = (stat.st_mtime_ns, stat.st_size)
        cached = _CONTENT_CACHE.get(key)
        if cached is None or cached[0] != signature:
            data = dict(loader_for(self.path).load(str(self.path)))
            cached = (signature, data)
            _CONTENT_CACHE[key] = cached
        return deepcopy(cached[1])

    def clear(self) -> bool:
        if self.path.exists():
            invalidate_file_cache(self.path)
            self.path.unlink()
            log_debug("storage_cleared", storage="file", path=str(self.path))
        return True
