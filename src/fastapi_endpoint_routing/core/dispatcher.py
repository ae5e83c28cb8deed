"""Request dispatch over a compiled route registry.

Each call runs MethodCheck -> PathMatch -> ResourceResolve -> Invoke.
Routing failures surface as MethodNotAllowedError (405) or
RouteNotFoundError (404); handler exceptions propagate unchanged.
"""

import functools
import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import anyio.to_thread

from fastapi_endpoint_routing.config import DispatcherConfig, normalize_methods
from fastapi_endpoint_routing.core.importer import CodeResolver, ModuleCodeResolver
from fastapi_endpoint_routing.core.matcher import match_route
from fastapi_endpoint_routing.core.paths import resolve_and_validate_path
from fastapi_endpoint_routing.core.tree import ResourceRef, RouteNode, loads
from fastapi_endpoint_routing.exceptions import MethodNotAllowedError, RouteNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedHandler:
    """A handler ready to be invoked.

    Attributes:
        handler: The callable serving the request.
        method: Uppercase HTTP method.
        params: Path parameter bindings for the request.
        ref: Reference the handler was loaded from.
    """

    handler: Callable[..., Any]
    method: str
    params: Mapping[str, str]
    ref: ResourceRef


def load_registry(registry_path: str | Path) -> RouteNode:
    """Read a registry file written by the compiler.

    Raises:
        PathValidationError: If the path does not exist or is not .json.
        RegistryFormatError: If the file is not a valid registry.
    """
    path = resolve_and_validate_path(registry_path, must_exist=True, must_be_json=True)
    return loads(path.read_bytes())


class EndpointDispatcher:
    """Resolve and invoke handlers for request paths.

    The registry is treated as read-only, so one dispatcher can serve
    any number of concurrent requests. Nothing is cached between calls:
    every dispatch resolves its handler through the resolver again.

    Args:
        registry: Compiled route tree.
        resolver: Loads the handlers behind a matched ResourceRef.
        allowed_methods: Method whitelist. None allows any method.

    Example:
        dispatcher = EndpointDispatcher.from_config(DispatcherConfig(allowed_methods=["GET"]))
        result = await dispatcher.dispatch("/users/4124", "get", request)
    """

    def __init__(
        self,
        registry: RouteNode,
        *,
        resolver: CodeResolver,
        allowed_methods: Iterable[str] | None = None,
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.allowed_methods = (
            normalize_methods(allowed_methods) if allowed_methods is not None else None
        )

    @classmethod
    def from_config(
        cls,
        config: DispatcherConfig | None = None,
        *,
        resolver: CodeResolver | None = None,
    ) -> "EndpointDispatcher":
        """Build a dispatcher from a registry file.

        Raises:
            PathValidationError: If registry_path or handlers_root is invalid.
            RegistryFormatError: If the registry cannot be decoded.
        """
        config = config or DispatcherConfig()
        handlers_root = resolve_and_validate_path(
            config.handlers_root, must_exist=True, must_be_dir=True
        )
        registry = load_registry(config.registry_path)

        logger.info(
            "Loaded route registry",
            extra={
                "registry_path": str(config.registry_path),
                "handlers_root": str(handlers_root),
            },
        )

        return cls(
            registry,
            resolver=resolver or ModuleCodeResolver(handlers_root=handlers_root),
            allowed_methods=config.allowed_methods,
        )

    def is_method_allowed(self, method: str) -> bool:
        return self.allowed_methods is None or method.upper() in self.allowed_methods

    async def resolve_handler(
        self,
        path: str,
        method: str,
        params: Mapping[str, str] | None = None,
    ) -> ResolvedHandler:
        """Find the handler serving method at path.

        Args:
            path: Request path.
            method: HTTP method, any case.
            params: Caller bindings to merge the extracted ones over.

        Returns:
            The resolved handler with its parameter bindings.

        Raises:
            MethodNotAllowedError: If method is not whitelisted.
            RouteNotFoundError: If no node matches, the node has no entry
                for method, or the handler cannot be resolved.
        """
        method = method.upper()

        if not self.is_method_allowed(method):
            raise MethodNotAllowedError(method)

        match = match_route(self.registry, path, params)
        if not match.found:
            logger.debug("No route matches path", extra={"path": path, "method": method})
            raise RouteNotFoundError("no-route")

        ref = match.method(method)
        if ref is None:
            logger.debug(
                "Route has no entry for method",
                extra={"path": path, "method": method, "methods": sorted(match.methods)},
            )
            raise RouteNotFoundError("no-method")

        handler = await self._resolve(ref, method)
        if handler is None:
            raise RouteNotFoundError("unresolvable")

        return ResolvedHandler(handler=handler, method=method, params=match.params, ref=ref)

    async def _resolve(self, ref: ResourceRef, method: str) -> Callable[..., Any] | None:
        try:
            handlers = await _call(self.resolver.resolve, ref)
        except Exception as exc:
            logger.warning(
                "Failed to resolve route handler",
                extra={"file": ref.file_path, "method": method, "error": str(exc)},
            )
            return None

        if not isinstance(handlers, Mapping):
            logger.warning(
                "Route file exposes no handlers",
                extra={"file": ref.file_path, "method": method},
            )
            return None

        handler = _lookup_method(handlers, method)
        if not callable(handler):
            logger.error(
                "Handler is not a function",
                extra={"file": ref.file_path, "method": method},
            )
            return None
        return handler

    async def exists(self, path: str, method: str) -> bool:
        """Check whether a handler would be resolved for path and method.

        Never raises.
        """
        try:
            await self.resolve_handler(path, method)
        except Exception:
            return False
        return True

    async def dispatch(
        self,
        path: str,
        method: str,
        request: Any = None,
        *,
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """Resolve the handler for path and method and invoke it.

        The handler is called as ``handler(request, params)``. Coroutine
        functions run on the event loop; any other callable runs in a worker
        thread so blocking handlers do not stall concurrent requests.
        Awaitable results are awaited.

        Returns:
            Whatever the handler returns.

        Raises:
            MethodNotAllowedError: If method is not whitelisted.
            RouteNotFoundError: If no handler serves the request.
            Exception: Anything the handler raises, unchanged.
        """
        resolved = await self.resolve_handler(path, method, params)

        return await _call(resolved.handler, request, resolved.params)


def _lookup_method(handlers: Mapping[str, Any], method: str) -> Any:
    if method in handlers:
        return handlers[method]
    for key, handler in handlers.items():
        if isinstance(key, str) and key.upper() == method:
            return handler
    return None


async def _call(fn: Callable[..., Any], *args: Any) -> Any:
    """Invoke fn without blocking the event loop.

    Coroutine functions are awaited directly; other callables run in a
    worker thread. An awaitable returned from the thread is awaited here.
    """
    if inspect.iscoroutinefunction(fn):
        return await fn(*args)

    result = await anyio.to_thread.run_sync(functools.partial(fn, *args))
    if inspect.isawaitable(result):
        result = await result
    return result
