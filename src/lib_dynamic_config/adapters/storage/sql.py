"""Relational table storage built on SQLAlchemy Core.

Purpose
-------
Store one row per item: an id column, a value column holding the
JSON-encoded value, plus one discriminator column per filter key. The table is
described here but never created or migrated; provision it with your own
migrations (or ``storage.table.create(engine)`` in tests).

Example schema for the default names::

    CREATE TABLE "AppConfig" (
        id VARCHAR(255) NOT NULL,
        value TEXT,
        PRIMARY KEY (id)
    );
"""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping

from sqlalchemy import Column, MetaData, String, Table, Text, delete, insert, select
from sqlalchemy.engine import Engine

from ...application.ports import Storage
from ...observability import log_debug
from .filtering import StorageFilter, StorageFilterMixin


class SqlStorage(StorageFilterMixin, Storage):
    """Storage backed by a database table.

    Parameters
    ----------
    engine:
        SQLAlchemy engine used for every operation.
    table:
        Table name, or a ready :class:`~sqlalchemy.Table` (e.g. reflected).
    id_column / value_column:
        Column names holding the item id and its value. Ids are stored and
        returned as text.
    filter:
        Static or callable filter; its keys must exist as columns.
    encode / decode:
        Value serialisation, JSON by default.
    """

    def __init__(
        self,
        engine: Engine,
        table: str | Table = "AppConfig",
        *,
        id_column: str = "id",
        value_column: str = "value",
        filter: StorageFilter = None,
        metadata: MetaData | None = None,
        encode: Callable[[Any], Any] = json.dumps,
        decode: Callable[[Any], Any] = json.loads,
    ) -> None:
        self.engine = engine
        self.id_column = id_column
        self.value_column = value_column
        self.filter = filter
        self._encode = encode
        self._decode = decode
        self._metadata = metadata if metadata is not None else MetaData()
        self._table: Table | None = table if isinstance(table, Table) else None
        self._table_name = table.name if isinstance(table, Table) else table

    @property
    def table(self) -> Table:
        """The mapped table, described lazily so callable filters can shape it."""

        if self._table is None:
            discriminators = [Column(name, String(255), primary_key=True) for name in self.compose_filter_condition()]
            self._table = Table(
                self._table_name,
                self._metadata,
                *discriminators,
                Column(self.id_column, String(255), primary_key=True),
                Column(self.value_column, Text),
            )
        return self._table

    def save(self, values: Mapping[Any, Any]) -> bool:
        condition = self.compose_filter_condition()
        rows = [
            {**condition, self.id_column: str(item_id), self.value_column: self._encode(value)}
            for item_id, value in values.items()
        ]
        with self.engine.begin() as connection:
            connection.execute(self._where(delete(self.table), condition))
            if rows:
                connection.execute(insert(self.table), rows)
        log_debug("storage_saved", storage="sql", table=self._table_name, keys=len(rows))
        return True

    def get(self) -> dict[Any, Any]:
        table = self.table
        query = self._where(select(table.c[self.id_column], table.c[self.value_column]), self.compose_filter_condition())
        with self.engine.connect() as connection:
            rows = connection.execute(query).all()
        return {row[0]: self._decode(row[1]) for row in rows}

    def clear(self) -> bool:
        with self.engine.begin() as connection:
            connection.execute(self._where(delete(self.table), self.compose_filter_condition()))
        log_debug("storage_cleared", storage="sql", table=self._table_name)
        return True

    def clear_value(self, item_id: Any) -> bool:
        condition = self.compose_filter_condition({self.id_column: str(item_id)})
        with self.engine.begin() as connection:
            connection.execute(self._where(delete(self.table), condition))
        return True

    def _where(self, statement: Any, condition: Mapping[str, Any]) -> Any:
        """AND every ``column == value`` pair of *condition* into *statement*."""

        clauses = [self.table.c[name] == value for name, value in condition.items()]
        return statement.where(*clauses) if clauses else statement
