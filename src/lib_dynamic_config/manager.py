"""Composition root for ``lib_dynamic_config``.

Purpose
-------
Orchestrate a set of config items together with a storage and a cache:
bulk extraction, composition of one configuration tree out of every item,
persistence round-trips, aggregate validation, cache invalidation and
applying the composed tree onto a live application.

Contents
--------
* :data:`STORAGE_BACKENDS` – storage aliases usable in declarative settings.
* :class:`Manager` – the orchestrator.
* :func:`create_storage` / :func:`create_cache` – realise declarations.
* :func:`create_manager` – build a manager from a settings mapping or file.
* :func:`bootstrap` – apply stored configuration at startup, tolerating
  failures.

System Role
-----------
The only module that wires domain objects (items), application policy
(merge, configure) and adapters (storages, cache, file loaders) together.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Callable, Final, Union

from .adapters.cache.memory import MemoryCache
from .adapters.file_loaders.structured import loader_for
from .adapters.storage.document import DocumentStorage
from .adapters.storage.file import DEFAULT_FILE_NAME, FileStorage
from .adapters.storage.memory import MemoryStorage
from .adapters.storage.orm import RecordStorage
from .adapters.storage.sql import SqlStorage
from .application.configure import configure_target
from .application.merge import merge_trees
from .application.ports import Cache, Storage
from .domain.errors import ConfigurationError, UnknownItemError
from .domain.item import Item
from .domain.module import CLASS_KEY, build_object, import_object
from .observability import log_debug, log_info, log_warning, make_event

ItemsSource = Union[Mapping[Any, Any], str, os.PathLike[str], Callable[[], Mapping[Any, Any]], Iterable[Item]]
ItemFactory = Callable[[Any, Mapping[str, Any], Any], Item]

DEFAULT_CACHE_ID: Final[str] = "lib_dynamic_config.manager.Manager"
DEFAULT_STORAGE: Final[Mapping[str, Any]] = {CLASS_KEY: "file", "path": DEFAULT_FILE_NAME}

STORAGE_BACKENDS: Final[dict[str, type[Storage]]] = {
    "memory": MemoryStorage,
    "file": FileStorage,
    "sql": SqlStorage,
    "record": RecordStorage,
    "document": DocumentStorage,
}

MANAGER_SETTINGS: Final[frozenset[str]] = frozenset(
    {
        "items",
        "storage",
        "cache",
        "cache_id",
        "cache_duration",
        "auto_restore_values",
        "source",
        "ignore_configure_error",
        "item_factory",
    }
)


def create_storage(descriptor: Storage | str | Mapping[str, Any]) -> Storage:
    """Realise a storage *descriptor*.

    The descriptor is a :class:`Storage` instance, an alias from
    :data:`STORAGE_BACKENDS`, or a mapping whose ``class`` is an alias, a
    storage class or an import reference; other keys are constructor options.

    Examples
    --------
    >>> type(create_storage("memory")).__name__
    'MemoryStorage'
    >>> create_storage({"class": "file", "path": "values.json"}).path.name
    'values.json'
    """

    if isinstance(descriptor, Storage):
        return descriptor
    if isinstance(descriptor, str):
        descriptor = {CLASS_KEY: descriptor}
    if not isinstance(descriptor, Mapping) or CLASS_KEY not in descriptor:
        raise ConfigurationError(f'Storage configuration must contain a "{CLASS_KEY}" element: {descriptor!r}')
    options = dict(descriptor)
    backend = options.pop(CLASS_KEY)
    if isinstance(backend, str):
        backend = STORAGE_BACKENDS.get(backend) or import_object(backend)
    try:
        storage = backend(**options)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid storage options {sorted(options)}: {exc}") from exc
    if not isinstance(storage, Storage):
        raise ConfigurationError(f"Storage must extend {Storage.__name__}, got {type(storage).__name__}.")
    return storage


def create_cache(descriptor: Cache | str | Mapping[str, Any] | None) -> Cache:
    """Realise a cache descriptor; ``None`` and ``"memory"`` give a :class:`MemoryCache`."""

    if descriptor is None or descriptor == "memory":
        return MemoryCache()
    cache = build_object(descriptor) if isinstance(descriptor, Mapping) else descriptor
    if not isinstance(cache, Cache):
        raise ConfigurationError(f"Cache must provide get/set/delete, got {type(cache).__name__}.")
    return cache


class Manager:
    """Manage dynamic application configuration items.

    Parameters
    ----------
    items:
        ``id -> descriptor`` mapping (descriptors are mappings of item
        properties or ready :class:`Item` objects), a path to a TOML/JSON/YAML/
        Python-literal file holding such a mapping, a zero-argument callable
        returning one, or an iterable of :class:`Item` objects.
    storage:
        Storage instance or declaration, realised on first use.
    cache:
        Cache instance or declaration; defaults to a private :class:`MemoryCache`.
    cache_id:
        Key of the composed configuration in the cache, or a zero-argument
        callable computing it once at construction.
    cache_duration:
        Seconds the composed configuration stays cached. ``0`` never expires,
        negative values disable caching.
    auto_restore_values:
        Restore values from storage immediately. Only useful when the manager
        serves as a value store; :meth:`fetch_config` restores on its own.
    source:
        Object items extract their current values from.
    ignore_configure_error:
        Log, instead of raising, failed plain property assignments in
        :meth:`configure`.
    item_factory:
        ``(id, descriptor, source) -> Item`` builder replacing the default.

    Examples
    --------
    >>> manager = Manager(
    ...     items={"site_name": {"path": "name"}, "page_size": {"value": 20}},
    ...     storage="memory",
    ...     source={"name": "Demo"},
    ... )
    >>> manager.compose_config()
    {'name': 'Demo', 'params': {'page_size': 20}}
    """

    def __init__(
        self,
        *,
        items: ItemsSource | None = None,
        storage: Storage | str | Mapping[str, Any] = DEFAULT_STORAGE,
        cache: Cache | str | Mapping[str, Any] | None = None,
        cache_id: str | Callable[[], str] = DEFAULT_CACHE_ID,
        cache_duration: int = 0,
        auto_restore_values: bool = False,
        source: Any = None,
        ignore_configure_error: bool = False,
        item_factory: ItemFactory | None = None,
    ) -> None:
        self.set_items(items if items is not None else {})
        self._storage = storage
        self.cache = create_cache(cache)
        self.cache_id = cache_id() if callable(cache_id) else cache_id
        self.cache_duration = cache_duration
        self.source = source
        self.ignore_configure_error = ignore_configure_error
        self.item_factory = item_factory
        if auto_restore_values:
            self.restore_values()

    @property
    def storage(self) -> Storage:
        """The storage, realised from its declaration on first access."""

        if not isinstance(self._storage, Storage):
            self._storage = create_storage(self._storage)
        return self._storage

    @storage.setter
    def storage(self, storage: Storage | str | Mapping[str, Any]) -> None:
        self._storage = storage

    @property
    def items(self) -> list[Item]:
        return self.get_items()

    @items.setter
    def items(self, items: ItemsSource) -> None:
        self.set_items(items)

    def set_items(self, items: ItemsSource) -> None:
        """Replace the item declarations; nothing is loaded until first access."""

        self._items_source = items
        self._items: dict[Any, Any] | None = None

    def get_items(self) -> list[Item]:
        """Return every item in declaration order, creating them as needed."""

        return [self.get_item(item_id) for item_id in list(self._normalized_items())]

    def get_item(self, item_id: Any) -> Item:
        """Return the item registered as *item_id*.

        Raises
        ------
        UnknownItemError
            When no item with that id is declared.
        """

        items = self._normalized_items()
        if item_id not in items:
            raise UnknownItemError(f"Unknown config item '{item_id}'.")
        item = items[item_id]
        if not isinstance(item, Item):
            item = self.create_item(item_id, item)
            items[item_id] = item
        return item

    def create_item(self, item_id: Any, descriptor: Mapping[str, Any]) -> Item:
        """Build the item *item_id* from its declarative *descriptor*.

        A ``class`` key selects an :class:`Item` subclass (object or import
        reference); the manager's :attr:`source` is handed to the item.
        """

        if not isinstance(descriptor, Mapping):
            raise ConfigurationError(
                f"Config item '{item_id}' must be declared as a mapping or an Item, got {type(descriptor).__name__}."
            )
        if self.item_factory is not None:
            item = self.item_factory(item_id, descriptor, self.source)
        else:
            options = dict(descriptor)
            item_class = options.pop(CLASS_KEY, Item)
            if isinstance(item_class, str):
                item_class = import_object(item_class)
            if not (isinstance(item_class, type) and issubclass(item_class, Item)):
                raise ConfigurationError(f"Config item class must extend Item, got {item_class!r}.")
            item = item_class.from_descriptor(item_id, options, self.source)
        log_debug("item_created", **make_event(item_id, None, {"class": type(item).__name__}))
        return item

    def set_item_values(self, values: Mapping[Any, Any]) -> Manager:
        """Overwrite the value of every item named in *values*.

        Storages that keep ids as text (JSON files, SQL tables) hand back
        ``"1"`` for an item declared as ``1``; such keys resolve to the
        declared id.
        """

        for item_id, value in values.items():
            self.get_item(self._declared_id(item_id)).value = value
        return self

    def _declared_id(self, item_id: Any) -> Any:
        items = self._normalized_items()
        if item_id in items or not isinstance(item_id, str):
            return item_id
        for declared in items:
            if not isinstance(declared, str) and str(declared) == item_id:
                return declared
        return item_id

    def get_item_values(self) -> dict[Any, Any]:
        """Return ``id -> value`` for every item, extracting values never set."""

        return {item.id: item.value for item in self.get_items()}

    def get_item_value(self, item_id: Any) -> Any:
        return self.get_item(item_id).value

    def compose_config(self) -> dict[Any, Any]:
        """Merge every item's configuration fragment into one tree, later items winning."""

        items = self.get_items()
        config = merge_trees(item.compose_config() for item in items)
        log_debug("config_composed", **make_event(None, None, {"items": len(items)}))
        return config

    def save_values(self) -> bool:
        """Persist the current item values; the cached configuration is dropped on success."""

        values = self.get_item_values()
        result = self.storage.save(values)
        if result:
            self.invalidate_cache()
        log_info("values_saved", **make_event(None, None, {"keys": len(values), "success": result}))
        return result

    def restore_values(self) -> Manager:
        """Load item values from the storage."""

        values = self.storage.get()
        self.set_item_values(values)
        log_debug("values_restored", **make_event(None, None, {"keys": len(values)}))
        return self

    def clear_values(self) -> bool:
        """Remove every stored value; the cached configuration is dropped on success."""

        result = self.storage.clear()
        if result:
            self.invalidate_cache()
        log_info("values_cleared", **make_event(None, None, {"success": result}))
        return result

    def clear_value(self, item_id: Any) -> bool:
        """Remove the stored value of *item_id*; the cached configuration is dropped on success."""

        result = self.storage.clear_value(item_id)
        if result:
            self.invalidate_cache()
        log_info("value_cleared", **make_event(item_id, None, {"success": result}))
        return result

    def invalidate_cache(self) -> None:
        self.cache.delete(self.cache_id)

    def fetch_config(self) -> dict[Any, Any]:
        """Return the configuration composed from stored values, using the cache.

        On a cache miss values are restored from storage, composed, and cached
        for :attr:`cache_duration` seconds.

        A cache hit returns the cached tree itself, shared by every manager
        using the same :attr:`cache_id`. Treat it as read-only; copy it (for
        example with :func:`~lib_dynamic_config.application.merge.deep_merge`)
        before changing it.
        """

        config = self.cache.get(self.cache_id) if self.cache_duration >= 0 else None
        if config is not None:
            log_debug("config_cache_hit", **make_event(None, None, {"cache_id": self.cache_id}))
            return config
        log_debug("config_cache_miss", **make_event(None, None, {"cache_id": self.cache_id}))
        self.restore_values()
        config = self.compose_config()
        if self.cache_duration >= 0:
            self.cache.set(self.cache_id, config, self.cache_duration)
        return config

    def validate(self) -> bool:
        """Validate every item; ``True`` only when all of them pass.

        Every item is validated even after a failure, so :meth:`get_errors`
        reports all problems at once.
        """

        result = True
        for item in self.get_items():
            result = item.validate() and result
        return result

    def get_errors(self) -> dict[Any, list[str]]:
        """Return ``id -> messages`` for items that failed their last validation."""

        return {item.id: item.errors for item in self.get_items() if item.errors}

    def configure(self, target: Any, config: Mapping[Any, Any] | None = None) -> None:
        """Apply *config* (default: :meth:`fetch_config`) onto *target*.

        See :func:`lib_dynamic_config.application.configure.configure_target`
        for the ``components``/``modules``/``params`` rules.
        """

        if config is None:
            config = self.fetch_config()
        configure_target(target, config, ignore_errors=self.ignore_configure_error)
        log_info("configuration_applied", target=type(target).__name__, keys=sorted(str(key) for key in config))

    def _normalized_items(self) -> dict[Any, Any]:
        if self._items is None:
            self._items = _normalize_items(self._items_source)
        return self._items


def _normalize_items(source: ItemsSource) -> dict[Any, Any]:
    """Resolve an items source into an ``id -> descriptor or Item`` dictionary."""

    if isinstance(source, Mapping):
        return dict(source)
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        if not path.is_file():
            raise ConfigurationError(f'File "{source}" does not exist.')
        return dict(loader_for(path).load(str(path)))
    if callable(source):
        items = source()
        if not isinstance(items, Mapping):
            raise ConfigurationError("Callback for Manager items should return a mapping.")
        return dict(items)
    if isinstance(source, Iterable):
        normalized: dict[Any, Any] = {}
        for item in source:
            if not isinstance(item, Item):
                raise ConfigurationError(f"Items iterable must contain Item objects, got {type(item).__name__}.")
            normalized[item.id] = item
        return normalized
    raise ConfigurationError(f"Unsupported items source: {type(source).__name__}.")


def create_manager(settings: Mapping[str, Any] | str | os.PathLike[str]) -> Manager:
    """Build a :class:`Manager` from a settings mapping or a settings file.

    Relative ``items`` file paths in a settings file resolve against the
    settings file's directory.

    Examples
    --------
    >>> manager = create_manager({"items": {"page_size": {"value": 20}}, "storage": "memory"})
    >>> manager.get_item_value("page_size")
    20
    """

    base_dir: Path | None = None
    if isinstance(settings, (str, os.PathLike)):
        base_dir = Path(settings).parent
        settings = loader_for(settings).load(str(settings))
    unknown = sorted(str(key) for key in settings if key not in MANAGER_SETTINGS)
    if unknown:
        raise ConfigurationError(f"Unknown manager settings: {unknown}")
    options = dict(settings)
    items = options.get("items")
    if base_dir is not None and isinstance(items, str) and not Path(items).is_absolute():
        options["items"] = str(base_dir / items)
    return Manager(**options)


def bootstrap(manager: Manager, target: Any) -> bool:
    """Apply stored configuration onto *target*, logging instead of raising on failure.

    Meant for application startup, where storage may not be provisioned yet
    (e.g. before migrations ran). Returns whether the configuration was applied.
    """

    try:
        manager.configure(target)
    except Exception as exc:
        log_warning("bootstrap_failed", target=type(target).__name__, error=str(exc))
        return False
    return True
