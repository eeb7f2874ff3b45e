"""ORM record storage over a declarative model."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import JSON, String, create_engine, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from lib_dynamic_config.adapters.storage.orm import RecordStorage


class Base(DeclarativeBase):
    pass


class AppConfigRecord(Base):
    __tablename__ = "app_config"

    scope: Mapped[str] = mapped_column(String(32), primary_key=True, default="global")
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)


@pytest.fixture()
def session_factory(tmp_path: Path):
    engine = create_engine(f"sqlite:///{tmp_path / 'records.db'}")
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine)
    engine.dispose()


def _rows(session_factory) -> list[tuple[str, str, Any]]:
    with session_factory() as session:
        records = session.scalars(select(AppConfigRecord).order_by(AppConfigRecord.scope, AppConfigRecord.id)).all()
        return [(record.scope, record.id, record.value) for record in records]


def test_round_trip(session_factory) -> None:
    storage = RecordStorage(AppConfigRecord, session_factory)
    values = {"site_name": "Demo", "theme": {"dark": True}, "hosts": ["a", "b"]}
    assert storage.save(values) is True
    assert storage.get() == values


def test_save_updates_deletes_and_adds(session_factory) -> None:
    storage = RecordStorage(AppConfigRecord, session_factory)
    storage.save({"a": 1, "b": 2})
    storage.save({"b": 20, "c": 30})
    assert _rows(session_factory) == [("global", "b", 20), ("global", "c", 30)]


def test_clear_and_clear_value(session_factory) -> None:
    storage = RecordStorage(AppConfigRecord, session_factory)
    storage.save({"a": 1, "b": 2})
    assert storage.clear_value("a") is True
    assert storage.get() == {"b": 2}
    assert storage.clear() is True
    assert storage.get() == {}


def test_filter_scopes_records(session_factory) -> None:
    admin = RecordStorage(AppConfigRecord, session_factory, filter={"scope": "admin"})
    shop = RecordStorage(AppConfigRecord, session_factory, filter=lambda: {"scope": "shop"})
    admin.save({"page_size": 50})
    shop.save({"page_size": 10, "currency": "EUR"})
    assert admin.get() == {"page_size": 50}
    assert shop.get() == {"page_size": 10, "currency": "EUR"}

    shop.clear_value("page_size")
    admin.save({"page_size": 25})
    assert _rows(session_factory) == [("admin", "page_size", 25), ("shop", "currency", "EUR")]

    admin.clear()
    assert shop.get() == {"currency": "EUR"}


def test_custom_attribute_names(session_factory) -> None:
    storage = RecordStorage(
        AppConfigRecord,
        session_factory,
        id_attribute="id",
        value_attribute="value",
        filter={"scope": "custom"},
    )
    storage.save({"x": None})
    assert storage.get() == {"x": None}
