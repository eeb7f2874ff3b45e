"""Storage over an SQLAlchemy ORM mapped class.

Each item is one record of *model*. Unlike :class:`SqlStorage`, saving keeps
existing records (updating their value), deletes records of items no longer
present and adds new ones, so ORM events and column types of the model apply.
The value attribute is assigned as-is; give it a ``JSON`` or ``PickleType``
column to keep structured values.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ...application.ports import Storage
from ...observability import log_debug
from .filtering import StorageFilter, StorageFilterMixin


class RecordStorage(StorageFilterMixin, Storage):
    """Storage backed by ORM records.

    Parameters
    ----------
    model:
        Mapped class; it must accept the id, value and filter attributes as
        constructor keywords (the declarative default constructor does).
    session_factory:
        Zero-argument callable returning a :class:`~sqlalchemy.orm.Session`,
        typically a :func:`~sqlalchemy.orm.sessionmaker`.
    """

    def __init__(
        self,
        model: type,
        session_factory: Callable[[], Session],
        *,
        id_attribute: str = "id",
        value_attribute: str = "value",
        filter: StorageFilter = None,
    ) -> None:
        self.model = model
        self.session_factory = session_factory
        self.id_attribute = id_attribute
        self.value_attribute = value_attribute
        self.filter = filter

    def save(self, values: Mapping[Any, Any]) -> bool:
        pending = dict(values)
        condition = self.compose_filter_condition()
        with self.session_factory() as session, session.begin():
            for record in session.scalars(select(self.model).filter_by(**condition)).all():
                record_id = getattr(record, self.id_attribute)
                if record_id in pending:
                    setattr(record, self.value_attribute, pending.pop(record_id))
                else:
                    session.delete(record)
            for item_id, value in pending.items():
                attributes = {**condition, self.id_attribute: item_id, self.value_attribute: value}
                session.add(self.model(**attributes))
        log_debug("storage_saved", storage="record", model=self.model.__name__, keys=len(values))
        return True

    def get(self) -> dict[Any, Any]:
        query = select(self.model).filter_by(**self.compose_filter_condition())
        with self.session_factory() as session:
            return {
                getattr(record, self.id_attribute): getattr(record, self.value_attribute)
                for record in session.scalars(query).all()
            }

    def clear(self) -> bool:
        self._delete(self.compose_filter_condition())
        log_debug("storage_cleared", storage="record", model=self.model.__name__)
        return True

    def clear_value(self, item_id: Any) -> bool:
        self._delete(self.compose_filter_condition({self.id_attribute: item_id}))
        return True

    def _delete(self, condition: Mapping[str, Any]) -> None:
        with self.session_factory() as session, session.begin():
            session.execute(delete(self.model).filter_by(**condition))
