"""Public package surface for dynamic, storage-backed application configuration.

Applications declare *items* (named values bound to a path inside their
configuration), let users edit the values, persist them through a storage and
apply the composed configuration back onto the running application at startup.
Everything re-exported here is considered stable API.
"""

from __future__ import annotations

from .adapters.cache.memory import MemoryCache
from .adapters.storage.document import DocumentStorage
from .adapters.storage.file import FileStorage
from .adapters.storage.memory import MemoryStorage
from .adapters.storage.orm import RecordStorage
from .adapters.storage.sql import SqlStorage
from .application.configure import configure_target
from .application.merge import deep_merge, merge_trees
from .application.ports import Cache, Storage
from .domain.errors import (
    ConfigurationError,
    DynamicConfigError,
    InvalidFormat,
    NotFound,
    PathResolutionError,
    PropertyAssignmentError,
    UnknownItemError,
    ValidationError,
)
from .domain.item import Item, compose_path_value, extract_path_value
from .domain.module import Module, ServiceLocator
from .domain.path import get_path_parts
from .domain.rules import Rule, register_rule
from .manager import Manager, bootstrap, create_cache, create_manager, create_storage
from .observability import bind_trace_id, get_logger
from .testing import FailingStorage

__all__ = [
    "Cache",
    "ConfigurationError",
    "DocumentStorage",
    "DynamicConfigError",
    "FailingStorage",
    "FileStorage",
    "InvalidFormat",
    "Item",
    "Manager",
    "MemoryCache",
    "MemoryStorage",
    "Module",
    "NotFound",
    "PathResolutionError",
    "PropertyAssignmentError",
    "RecordStorage",
    "Rule",
    "ServiceLocator",
    "SqlStorage",
    "Storage",
    "UnknownItemError",
    "ValidationError",
    "bind_trace_id",
    "bootstrap",
    "compose_path_value",
    "configure_target",
    "create_cache",
    "create_manager",
    "create_storage",
    "deep_merge",
    "extract_path_value",
    "get_logger",
    "get_path_parts",
    "merge_trees",
    "register_rule",
]
