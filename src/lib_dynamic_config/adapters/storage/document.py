"""Document collection storage.

Works with any collection object exposing the pymongo ``Collection`` methods
``find``, ``insert_many`` and ``delete_many``; the library itself does not
import a MongoDB driver. Documents look like ``{**filter, "id": <item id>,
"value": <value>}``.
"""

from __future__ import annotations

from typing import Any, Mapping

from ...application.ports import Storage
from ...observability import log_debug
from .filtering import StorageFilter, StorageFilterMixin


class DocumentStorage(StorageFilterMixin, Storage):
    """Storage backed by a document collection such as ``client.app.AppConfig``."""

    def __init__(
        self,
        collection: Any,
        *,
        id_field: str = "id",
        value_field: str = "value",
        filter: StorageFilter = None,
    ) -> None:
        self.collection = collection
        self.id_field = id_field
        self.value_field = value_field
        self.filter = filter

    def save(self, values: Mapping[Any, Any]) -> bool:
        condition = self.compose_filter_condition()
        self.collection.delete_many(condition)
        documents = [
            {**condition, self.id_field: item_id, self.value_field: value} for item_id, value in values.items()
        ]
        if documents:
            self.collection.insert_many(documents)
        log_debug("storage_saved", storage="document", keys=len(documents))
        return True

    def get(self) -> dict[Any, Any]:
        return {
            document[self.id_field]: document[self.value_field]
            for document in self.collection.find(self.compose_filter_condition())
        }

    def clear(self) -> bool:
        self.collection.delete_many(self.compose_filter_condition())
        log_debug("storage_cleared", storage="document")
        return True

    def clear_value(self, item_id: Any) -> bool:
        self.collection.delete_many(self.compose_filter_condition({self.id_field: item_id}))
        return True
