"""
Module Graph Resolver

Turns a module class into a ModuleRef with its own container, resolving
imported modules first (leaves to root), then re-exporting the selected
tokens into the importer's container.

Module containers are siblings: each one is parented to the root container,
never to the importing module, so a module only sees what it imports.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Protocol

from ..exceptions import CircularModuleError, IocEngineError, ModuleExportError, describe_token
from .container import Container
from .module import ModuleMetadata, get_module_metadata
from .providers import register_provider
from .types import Lifecycle, ProviderConfig, ProviderToken

if TYPE_CHECKING:
    from ..controllers import ControllerRegistry

logger = logging.getLogger(__name__)


class ControllerRegistrar(Protocol):
    """Anything able to register a controller against a container."""

    def register(self, controller: type, container: Container) -> None: ...


@dataclass(eq=False)
class ModuleRef:
    """Resolved module: its descriptor, its container and its attachments."""

    module_class: type
    metadata: ModuleMetadata
    container: Container
    controllers_registered: bool = False
    attached_parents: list[Container] = field(default_factory=list)
    extensions: list[Any] = field(default_factory=list)
    middlewares: list[Any] = field(default_factory=list)
    imported_exports: list[ProviderToken] = field(default_factory=list)
    imports_aggregated: bool = False

    def is_attached_to(self, container: Container) -> bool:
        return any(parent is container for parent in self.attached_parents)


class ModuleRegistry:
    """
    Registers modules into a container tree.

    Usage:
        root = Container()
        ref = ModuleRegistry.get_instance().register(AppModule, root)
        users = root.resolve(UserService)  # exported by AppModule
    """

    _instance: Optional["ModuleRegistry"] = None

    def __init__(
        self,
        root_container: Optional[Container] = None,
        controller_registry: Optional[ControllerRegistrar] = None,
    ) -> None:
        self._root_container = root_container
        self._controller_registry = controller_registry
        self._module_refs: dict[type, ModuleRef] = {}
        self._processing: list[type] = []

    @classmethod
    def get_instance(cls) -> "ModuleRegistry":
        """Get the process-wide registry."""
        if cls._instance is None:
            cls._instance = ModuleRegistry()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the process-wide registry (useful for testing)."""
        cls._instance = None

    @property
    def root_container(self) -> Optional[Container]:
        return self._root_container

    @property
    def controller_registry(self) -> ControllerRegistrar:
        if self._controller_registry is None:
            from ..controllers import ControllerRegistry

            self._controller_registry = ControllerRegistry.get_instance()
        return self._controller_registry

    def register(self, module_class: type, parent_container: Container) -> ModuleRef:
        """
        Register a module (and, first, everything it imports).

        Idempotent: registering the same module again returns the same
        ModuleRef; attaching it to a parent it already exports into is a no-op.

        Raises:
            CircularModuleError: If the imports form a cycle
            ModuleExportError: If the module exports a token it never registered
        """
        if self._root_container is None:
            self._root_container = parent_container
        return self._process_module(module_class, parent_container)

    def get_module_ref(self, module_class: type) -> Optional[ModuleRef]:
        return self._module_refs.get(module_class)

    def module_refs(self) -> list[ModuleRef]:
        """All registered modules, in the order they were first reached."""
        return list(self._module_refs.values())

    def get_module_extensions(self, module_class: type) -> list[Any]:
        """Extensions of a module, including those of its imports."""
        ref = self._module_refs.get(module_class)
        return ref.extensions if ref else []

    def get_module_middlewares(self, module_class: type) -> list[Any]:
        """Middlewares of a module, including those of its imports."""
        ref = self._module_refs.get(module_class)
        return ref.middlewares if ref else []

    def clear(self) -> None:
        self._module_refs.clear()
        self._processing.clear()
        self._root_container = None

    def _process_module(self, module_class: type, parent_container: Container) -> ModuleRef:
        if module_class in self._processing:
            start = self._processing.index(module_class)
            raise CircularModuleError(self._processing[start:] + [module_class])

        ref = self._get_or_create_module_ref(module_class)

        self._processing.append(module_class)
        try:
            for imported in ref.metadata.imports:
                self._process_module(imported, ref.container)
        finally:
            self._processing.pop()

        self._register_controllers(ref)
        self._attach_module_to_parent(ref, parent_container)
        self._aggregate_imports(ref)
        return ref

    def _get_or_create_module_ref(self, module_class: type) -> ModuleRef:
        ref = self._module_refs.get(module_class)
        if ref is not None:
            return ref
        if self._root_container is None:
            raise IocEngineError("ModuleRegistry is not initialized with a root container")

        metadata = get_module_metadata(module_class)
        container = Container(parent=self._root_container)
        for provider in metadata.providers:
            register_provider(container, provider)

        ref = ModuleRef(
            module_class=module_class,
            metadata=metadata,
            container=container,
            extensions=list(metadata.extensions),
            middlewares=list(metadata.middlewares),
        )
        self._module_refs[module_class] = ref
        logger.debug(
            f"Created module {module_class.__name__} with {len(metadata.providers)} provider(s)"
        )
        return ref

    def _register_controllers(self, ref: ModuleRef) -> None:
        if ref.controllers_registered:
            return
        for controller in ref.metadata.controllers:
            self.controller_registry.register(controller, ref.container)
        ref.controllers_registered = True

    def _attach_module_to_parent(self, ref: ModuleRef, parent_container: Container) -> None:
        if ref.is_attached_to(parent_container):
            return
        for token in ref.metadata.exports:
            self._register_export(parent_container, ref, token)
        ref.attached_parents.append(parent_container)

    def _register_export(self, parent_container: Container, ref: ModuleRef, token: ProviderToken) -> None:
        module_container = ref.container
        if not module_container.is_registered(token):
            raise ModuleExportError(ref.module_class, token)
        if parent_container.is_registered(token):
            return
        # Forwarders never cache: the module container applies the real lifecycle.
        parent_container.register(
            token,
            ProviderConfig(
                lifecycle=Lifecycle.TRANSIENT,
                factory=lambda: module_container.resolve(token),
            ),
        )
        logger.debug(f"Module {ref.module_class.__name__} exported {describe_token(token)}")

    def _aggregate_imports(self, ref: ModuleRef) -> None:
        if ref.imports_aggregated:
            return
        for imported in ref.metadata.imports:
            imported_ref = self._module_refs.get(imported)
            if imported_ref is None:
                continue
            ref.extensions.extend(imported_ref.extensions)
            ref.middlewares.extend(imported_ref.middlewares)
            ref.imported_exports.extend(imported_ref.metadata.exports)
        ref.imports_aggregated = True
