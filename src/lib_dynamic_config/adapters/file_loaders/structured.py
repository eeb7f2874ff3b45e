"""Structured configuration file loaders.

Purpose
-------
Convert on-disk artifacts into Python mappings. Used for items declaration
files handed to the manager and for reading back :class:`FileStorage`
content. Adapters are small wrappers around ``tomllib``/``json``/
``yaml.safe_load``/``ast.literal_eval`` so error handling and observability
live in one place.

Contents
--------
* :class:`BaseFileLoader` – the read, parse and mapping-check template
  every format plugs into.
* :class:`TOMLFileLoader` – loader for TOML documents.
* :class:`JSONFileLoader` – minimal JSON loader.
* :class:`YAMLFileLoader` – optional YAML loader (only available when PyYAML is
  installed).
* :class:`LiteralFileLoader` – a Python literal (``{"key": "value"}``) parsed
  without executing code.
* :data:`FILE_LOADERS` / :func:`loader_for` – suffix dispatch.
"""

from __future__ import annotations

import ast
import json
from pathlib import Path
from typing import Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[assignment]

from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error

try:
    import yaml  # type: ignore[import-not-found]
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    yaml = None  # type: ignore[assignment]


class BaseFileLoader:
    """Read a file, parse it and insist on a mapping.

    Subclasses name their :attr:`format`, the exceptions their parser raises
    on bad input, and implement :meth:`_parse`; :meth:`load` owns reading,
    error translation and logging.
    """

    format: str = "text"
    parse_errors: tuple[type[BaseException], ...] = (ValueError,)

    def load(self, path: str) -> Mapping[str, object]:
        """Return the mapping stored in *path*.

        Raises
        ------
        NotFound
            When *path* is not a file.
        InvalidFormat
            When the content does not parse or is not a mapping.
        """

        payload = self._read(path)
        try:
            data = self._parse(payload)
        except self.parse_errors as exc:
            log_error("config_file_invalid", path=path, format=self.format, error=str(exc))
            raise InvalidFormat(f"Invalid {self.format} content in {path}: {exc}") from exc
        result = self._ensure_mapping({} if data is None else data, path=path)
        log_debug("config_file_loaded", path=path, format=self.format)
        return result

    def _parse(self, payload: bytes) -> object:
        raise NotImplementedError

    def _read(self, path: str) -> bytes:
        """Read *path* as bytes, raising :class:`NotFound` when the file is missing.

        Examples
        --------
        >>> from tempfile import NamedTemporaryFile
        >>> tmp = NamedTemporaryFile(delete=False)
        >>> _ = tmp.write(b"key = 'value'")
        >>> tmp.close()
        >>> BaseFileLoader()._read(tmp.name)[:3]
        b'key'
        >>> Path(tmp.name).unlink()
        """

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f'File "{path}" does not exist.')
        payload = file_path.read_bytes()
        log_debug("config_file_read", path=path, size=len(payload))
        return payload

    @staticmethod
    def _ensure_mapping(data: object, *, path: str) -> Mapping[str, object]:
        """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

        Examples
        --------
        >>> BaseFileLoader._ensure_mapping({"key": 1}, path="demo")
        {'key': 1}
        >>> BaseFileLoader._ensure_mapping(42, path="demo")
        Traceback (most recent call last):
        ...
        lib_dynamic_config.domain.errors.InvalidFormat: File "demo" should return a mapping.
        """

        if not isinstance(data, Mapping):
            raise InvalidFormat(f'File "{path}" should return a mapping.')
        return data  # type: ignore[return-value]


class TOMLFileLoader(BaseFileLoader):
    """TOML documents through :mod:`tomllib` (``tomli`` before 3.11)."""

    format = "toml"
    parse_errors = (tomllib.TOMLDecodeError, UnicodeDecodeError)

    def _parse(self, payload: bytes) -> object:
        return tomllib.loads(payload.decode("utf-8"))


class JSONFileLoader(BaseFileLoader):
    """JSON documents.

    Examples
    --------
    >>> from tempfile import NamedTemporaryFile
    >>> tmp = NamedTemporaryFile('w', delete=False, encoding='utf-8')
    >>> _ = tmp.write('{"enabled": true}')
    >>> tmp.close()
    >>> JSONFileLoader().load(tmp.name)["enabled"]
    True
    >>> Path(tmp.name).unlink()
    """

    format = "json"
    parse_errors = (json.JSONDecodeError, UnicodeDecodeError)

    def _parse(self, payload: bytes) -> object:
        return json.loads(payload)


class YAMLFileLoader(BaseFileLoader):
    """YAML documents when PyYAML is available; an empty document is ``{}``."""

    format = "yaml"
    parse_errors = (yaml.YAMLError,) if yaml is not None else ()

    def load(self, path: str) -> Mapping[str, object]:
        if yaml is None:
            raise NotFound("PyYAML is required for YAML configuration support")
        return super().load(path)

    def _parse(self, payload: bytes) -> object:
        return yaml.safe_load(payload)  # type: ignore[union-attr]


class LiteralFileLoader(BaseFileLoader):
    """A file holding a single Python literal mapping.

    Comments are allowed; any expression that is not a literal is rejected
    because the content is parsed, never executed.

    Examples
    --------
    >>> from tempfile import NamedTemporaryFile
    >>> tmp = NamedTemporaryFile('w', suffix='.py', delete=False, encoding='utf-8')
    >>> _ = tmp.write("# generated\\n{'page_size': 20}\\n")
    >>> tmp.close()
    >>> LiteralFileLoader().load(tmp.name)
    {'page_size': 20}
    >>> Path(tmp.name).unlink()
    """

    format = "literal"
    parse_errors = (ValueError, TypeError, SyntaxError, MemoryError, RecursionError, UnicodeDecodeError)

    def _parse(self, payload: bytes) -> object:
        return ast.literal_eval(payload.decode("utf-8"))


# Supported structured file loaders keyed by suffix.
FILE_LOADERS: Mapping[str, BaseFileLoader] = {
    ".toml": TOMLFileLoader(),
    ".json": JSONFileLoader(),
    ".yaml": YAMLFileLoader(),
    ".yml": YAMLFileLoader(),
    ".py": LiteralFileLoader(),
}


def loader_for(path: str | Path) -> BaseFileLoader:
    """Return the loader registered for the suffix of *path*.

    >>> type(loader_for("items.toml")).__name__
    'TOMLFileLoader'
    """

    suffix = Path(path).suffix.lower()
    try:
        return FILE_LOADERS[suffix]
    except KeyError as exc:
        raise InvalidFormat(f'Unsupported file format "{suffix}" for {path}') from exc
