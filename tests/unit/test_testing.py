from __future__ import annotations

import pytest

from lib_dynamic_config.application.ports import Storage
from lib_dynamic_config.testing import FAILURE_MESSAGE, FailingStorage


@pytest.mark.parametrize("operation", ["save", "get", "clear", "clear_value"])
def test_failing_storage_raises_runtime_error(operation: str) -> None:
    storage = FailingStorage()
    args = {"save": ({},), "clear_value": ("x",)}.get(operation, ())
    with pytest.raises(RuntimeError, match="^i should fail$"):
        getattr(storage, operation)(*args)


def test_failing_storage_is_a_storage() -> None:
    assert isinstance(FailingStorage(), Storage)
    assert FAILURE_MESSAGE == "i should fail"


def test_failing_storage_reexported() -> None:
    from lib_dynamic_config import FailingStorage as exported

    assert exported is FailingStorage
