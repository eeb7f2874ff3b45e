"""Config path parsing.

Purpose
-------
Turn the ``path`` declared on an item into the ordered list of keys used by
extraction and composition. Paths are either dotted strings
(``"components.formatter.null_display"``) or already-segmented sequences
(``["params", "admin_email"]``). Literal dots inside a key cannot be escaped.

Contents
--------
* :data:`DEFAULT_PATH_ROOT` – first segment of the default item path.
* :func:`get_path_parts` – normalise a declared path into segments.
* :func:`default_path` – the ``["params", <id>]`` fallback.
* :func:`format_path` – render segments back into dotted form for messages.
"""

from __future__ import annotations

from typing import Final, Sequence

DEFAULT_PATH_ROOT: Final[str] = "params"


def default_path(item_id: object) -> list[object]:
    """Return the path pointing into the generic parameters bag for *item_id*.

    Examples
    --------
    >>> default_path("admin_email")
    ['params', 'admin_email']
    """

    return [DEFAULT_PATH_ROOT, item_id]


def get_path_parts(path: str | Sequence[object] | None, item_id: object = None) -> list[object]:
    """Return the segments of *path*, falling back to :func:`default_path`.

    Parameters
    ----------
    path:
        Dotted string, sequence of keys, or ``None``/empty for the default.
    item_id:
        Id used when the default path must be composed.

    Examples
    --------
    >>> get_path_parts("components.formatter.null_display")
    ['components', 'formatter', 'null_display']
    >>> get_path_parts(("params", "a.b"))
    ['params', 'a.b']
    >>> get_path_parts(None, "site_name")
    ['params', 'site_name']
    """

    if not path:
        return default_path(item_id)
    if isinstance(path, str):
        return path.split(".")
    return list(path)


def format_path(parts: Sequence[object]) -> str:
    """Join *parts* with dots for logs and error messages.

    >>> format_path(["params", 1])
    'params.1'
    """

    return ".".join(str(part) for part in parts)
