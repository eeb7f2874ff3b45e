"""Host objects that dynamic configuration is extracted from and applied to.

Purpose
-------
Describe the structural shape the manager relies on when it walks or
reconfigures a live application: a *component container* whose components
are declared up front and instantiated on demand, and a *hierarchical module*
that additionally owns nested modules and a ``params`` bag.

Contents
--------
* :class:`ComponentContainer` / :class:`HierarchicalModule` – runtime
  checkable protocols used for structural dispatch.
* :class:`ServiceLocator` – reference component container.
* :class:`Module` – reference hierarchical module (an application is simply
  the root module).
* :func:`import_object` – resolve ``"package.module:Name"`` references.

System Role
-----------
Any object implementing the protocols works with
:func:`lib_dynamic_config.domain.item.extract_path_value` and
:func:`lib_dynamic_config.application.configure.configure_target`; the
reference classes exist so applications without a framework can still use the
structural ``components``/``modules``/``params`` semantics.
"""

from __future__ import annotations

import importlib
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from .errors import ConfigurationError

CLASS_KEY = "class"


@runtime_checkable
class ComponentContainer(Protocol):
    """Object holding lazily instantiated components keyed by id."""

    def get_components(self, realize: bool = False) -> dict[str, Any]:
        """Return declarations, or live instances when *realize* is true."""

    def set_components(self, components: Mapping[str, Any]) -> None:
        """Replace every component declaration."""


@runtime_checkable
class HierarchicalModule(ComponentContainer, Protocol):
    """Component container with nested modules and a parameters bag."""

    params: dict[str, Any]

    def get_modules(self, loaded_only: bool = False) -> dict[str, Any]:
        """Return nested modules; loaded ones as instances, others as declarations."""

    def set_modules(self, modules: Mapping[str, Any]) -> None:
        """Register nested module declarations or instances."""


def import_object(reference: str) -> Any:
    """Import the attribute named by *reference* (``"pkg.mod:Name"`` or ``"pkg.mod.Name"``).

    >>> import_object("collections:OrderedDict").__name__
    'OrderedDict'
    """

    module_name, _, attribute = reference.partition(":")
    if not attribute:
        module_name, _, attribute = reference.rpartition(".")
    if not module_name or not attribute:
        raise ConfigurationError(f'Invalid object reference "{reference}".')
    try:
        return getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as exc:
        raise ConfigurationError(f'Unable to import "{reference}": {exc}') from exc


def build_object(definition: Any, **defaults: Any) -> Any:
    """Instantiate *definition*.

    A mapping names its ``class`` (object or import reference) and the
    constructor keyword arguments; a class or factory is invoked with
    *defaults*; anything else is already an instance.
    """

    if isinstance(definition, Mapping):
        options = {**defaults, **definition}
        factory = options.pop(CLASS_KEY, None)
        if factory is None:
            raise ConfigurationError(f'Object configuration must contain a "{CLASS_KEY}" element: {dict(definition)!r}')
        if isinstance(factory, str):
            factory = import_object(factory)
        return factory(**options)
    if callable(definition):
        return definition(**defaults)
    return definition


class ServiceLocator:
    """Reference component container.

    Examples
    --------
    >>> locator = ServiceLocator(components={"clock": {"class": "datetime:timedelta", "hours": 1}})
    >>> locator.has("clock", instantiated=True)
    False
    >>> locator.get("clock").seconds
    3600
    >>> locator.has("clock", instantiated=True)
    True
    """

    def __init__(self, *, components: Mapping[str, Any] | None = None) -> None:
        self._definitions: dict[str, Any] = {}
        self._instances: dict[str, Any] = {}
        if components:
            self.set_components(components)

    def has(self, component_id: str, instantiated: bool = False) -> bool:
        if instantiated:
            return component_id in self._instances
        return component_id in self._definitions

    def get(self, component_id: str) -> Any:
        """Return the component, instantiating it on first access."""

        if component_id in self._instances:
            return self._instances[component_id]
        try:
            definition = self._definitions[component_id]
        except KeyError as exc:
            raise ConfigurationError(f'Unknown component ID: "{component_id}".') from exc
        instance = build_object(definition)
        self._instances[component_id] = instance
        return instance

    def set(self, component_id: str, definition: Any) -> None:
        """Declare (or with ``None`` remove) a component, dropping any live instance."""

        self._instances.pop(component_id, None)
        if definition is None:
            self._definitions.pop(component_id, None)
            return
        self._definitions[component_id] = definition

    def get_components(self, realize: bool = False) -> dict[str, Any]:
        if realize:
            return {component_id: self.get(component_id) for component_id in self._definitions}
        return dict(self._definitions)

    def set_components(self, components: Mapping[str, Any]) -> None:
        """Replace every declaration; an id handed back with the same declaration keeps its instance."""

        for component_id in list(self._definitions):
            if component_id not in components:
                self.set(component_id, None)
        for component_id, definition in components.items():
            if component_id in self._definitions and self._definitions[component_id] is definition:
                continue
            self.set(component_id, definition)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails: expose components as attributes.
        if not name.startswith("_") and name in self.__dict__.get("_definitions", {}):
            return self.get(name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")


class Module(ServiceLocator):
    """Reference hierarchical module; an application is the root module.

    Extra keyword arguments become plain attributes (``name``, ``layout``...).
    """

    def __init__(
        self,
        id: str = "app",
        *,
        parent: Module | None = None,
        components: Mapping[str, Any] | None = None,
        modules: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
        **properties: Any,
    ) -> None:
        super().__init__(components=components)
        self.id = id
        self.parent = parent
        self.params: dict[str, Any] = dict(params or {})
        self._modules: dict[str, Any] = {}
        if modules:
            self.set_modules(modules)
        for name, value in properties.items():
            setattr(self, name, value)

    @property
    def modules(self) -> dict[str, Any]:
        return self.get_modules()

    def get_modules(self, loaded_only: bool = False) -> dict[str, Any]:
        if loaded_only:
            return {key: module for key, module in self._modules.items() if isinstance(module, Module)}
        return dict(self._modules)

    def set_modules(self, modules: Mapping[str, Any]) -> None:
        for module_id, module in modules.items():
            if module is None:
                self._modules.pop(module_id, None)
            else:
                self._modules[module_id] = module

    def has_module(self, module_id: str) -> bool:
        return module_id in self._modules

    def get_module(self, module_id: str) -> Module:
        """Return the nested module, instantiating its declaration on first access."""

        try:
            module = self._modules[module_id]
        except KeyError as exc:
            raise ConfigurationError(f'Unknown module ID: "{module_id}".') from exc
        if not isinstance(module, Module):
            definition = {CLASS_KEY: Module, **module} if isinstance(module, Mapping) else module
            module = build_object(definition, id=module_id, parent=self)
            self._modules[module_id] = module
        return module
