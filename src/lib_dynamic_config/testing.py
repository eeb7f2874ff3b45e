"""Testing diagnostics that keep failure scenarios observable and predictable.

Purpose
    Provide intentionally failing collaborators that exercise error-handling
    paths (bootstrap tolerance, error propagation from storages) without
    relying on brittle fixtures such as unreachable databases.

Contents
    - ``FAILURE_MESSAGE``: stable message used when forcing a failure.
    - ``FailingStorage``: storage whose every operation raises
      ``RuntimeError``.

System Integration
    Resides in the testing support layer referenced by the end-to-end suite.
"""

from __future__ import annotations

from typing import Any, Final, Mapping, NoReturn

from .application.ports import Storage

FAILURE_MESSAGE: Final[str] = "i should fail"
"""Stable message raised by :class:`FailingStorage`.

Why
    Tests assert on the exact wording to guarantee deterministic output.
"""


class FailingStorage(Storage):
    """Storage standing in for a backend that is not provisioned yet.

    Why
        Lets tests check that :func:`lib_dynamic_config.manager.bootstrap`
        tolerates a broken storage while direct manager calls still propagate
        the backend error unchanged.
    What
        Every method raises :class:`RuntimeError` with :data:`FAILURE_MESSAGE`.

    Examples
    --------
    >>> FailingStorage().get()
    Traceback (most recent call last):
    ...
    RuntimeError: i should fail
    """

    def save(self, values: Mapping[Any, Any]) -> NoReturn:
        raise RuntimeError(FAILURE_MESSAGE)

    def get(self) -> NoReturn:
        raise RuntimeError(FAILURE_MESSAGE)

    def clear(self) -> NoReturn:
        raise RuntimeError(FAILURE_MESSAGE)

    def clear_value(self, item_id: Any) -> NoReturn:
        raise RuntimeError(FAILURE_MESSAGE)
