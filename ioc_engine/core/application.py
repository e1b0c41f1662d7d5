"""
Application bootstrap.

Wires the root container, the interceptor machinery and the module graph
together, then warms up singletons.

Usage:
    app = Application(AppModule)
    async with app:
        users = app.resolve(UserService)
"""

import logging
from typing import Any, Iterable, Optional

from ..config import RuntimeConfig, get_runtime_config
from ..constants import LOG_METADATA_KEY
from ..controllers import ControllerRegistry
from ..di.container import Container
from ..di.module_registry import ModuleRef, ModuleRegistry
from ..di.types import Lifecycle, ProviderToken
from ..exceptions import IocEngineError
from ..interceptor.builtin import LogInterceptor
from ..interceptor.proxy import InterceptorPostProcessor
from ..interceptor.registry import INTERCEPTOR_REGISTRY_TOKEN, InterceptorRegistry
from ..observability import get_logger, timed_operation

logger = logging.getLogger(__name__)

contextual_logger = get_logger(__name__)


class Application:
    """
    A module graph bound to its own root container.

    This class orchestrates:
    - The root container (installed as the global container)
    - The interceptor registry and the post-processor that applies it
    - Module registration, starting from the root module
    - Eager construction of singletons when enabled in the config
    """

    def __init__(
        self,
        root_module: type,
        config: Optional[RuntimeConfig] = None,
        eager: Optional[Iterable[ProviderToken]] = None,
    ) -> None:
        """
        Args:
            root_module: Class decorated with @module
            config: Runtime settings (loaded from the environment if None)
            eager: Extra tokens to resolve at startup, besides the module singletons
        """
        self.root_module = root_module
        self.config = config or get_runtime_config()
        self._eager = list(eager or ())
        logging.getLogger("ioc_engine").setLevel(self.config.log_level.upper())

        self.container = Container(config=self.config)
        self.interceptors = InterceptorRegistry(default_priority=self.config.default_priority)
        self.controllers = ControllerRegistry()
        self.modules = ModuleRegistry(
            root_container=self.container,
            controller_registry=self.controllers,
        )

        self.container.register_instance(INTERCEPTOR_REGISTRY_TOKEN, self.interceptors)
        self.container.register_post_processor(InterceptorPostProcessor(self.interceptors))
        self.interceptors.register(LOG_METADATA_KEY, LogInterceptor())

        self._root_ref: Optional[ModuleRef] = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def root(self) -> ModuleRef:
        if self._root_ref is None:
            raise IocEngineError(
                "Application not bootstrapped. Call bootstrap() or initialize() first.",
                context={"module": self.root_module.__name__},
            )
        return self._root_ref

    def bootstrap(self) -> ModuleRef:
        """
        Register the root module graph. Idempotent.

        Raises:
            CircularModuleError: If the module imports form a cycle
            ModuleExportError: If a module exports a token it never registered
        """
        if self._root_ref is not None:
            return self._root_ref

        with timed_operation(
            contextual_logger, "bootstrap", root_module=self.root_module.__name__
        ) as fields:
            self._root_ref = self.modules.register(self.root_module, self.container)
            fields["module_count"] = len(self.modules.module_refs())

        Container.set_global(self.container)
        return self._root_ref

    async def initialize(self) -> None:
        """
        Bootstrap the module graph and build the singletons up front.

        Singleton factories may be async: every eager resolution goes through
        resolve_async.
        """
        if self._initialized:
            return
        self.bootstrap()

        if self.config.eager_singletons:
            with timed_operation(contextual_logger, "eager_singletons") as fields:
                fields["resolved"] = 0
                for ref in self.modules.module_refs():
                    for token in ref.container.tokens(Lifecycle.SINGLETON):
                        await ref.container.resolve_async(token)
                        fields["resolved"] += 1
                for token in self._eager:
                    await self.container.resolve_async(token)
                    fields["resolved"] += 1

        self._initialized = True

    async def shutdown(self) -> None:
        """
        Drop every registration and cached instance.

        Idempotent; the global container is reset if it is this one.
        """
        for ref in self.modules.module_refs():
            ref.container.clear()
        self.modules.clear()
        self.controllers.clear()
        self.interceptors.clear()
        self.container.clear()
        if Container.is_global(self.container):
            Container.reset_global()
        self._root_ref = None
        self._initialized = False
        logger.debug(f"Application {self.root_module.__name__} shut down")

    def resolve(self, token: ProviderToken) -> Any:
        return self.container.resolve(token)

    async def resolve_async(self, token: ProviderToken) -> Any:
        return await self.container.resolve_async(token)

    def get_module_container(self, module_class: type) -> Container:
        """Container owning the providers of a registered module."""
        ref = self.modules.get_module_ref(module_class)
        if ref is None:
            raise IocEngineError(
                f"Module {module_class.__name__} is not registered",
                context={"module": module_class.__name__},
            )
        return ref.container

    async def invoke(self, controller: type, method_name: str, *args: Any) -> Any:
        """Dispatch a call to a controller handler through its interceptors."""
        return await self.controllers.invoke(controller, method_name, *args)

    async def __aenter__(self) -> "Application":
        await self.initialize()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        await self.shutdown()
