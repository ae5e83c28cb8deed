"""Code resolution for endpoint routing.

A CodeResolver turns a ResourceRef into the method -> handler mapping of
the entry file it points at. ModuleCodeResolver imports Python files
dynamically; MappingCodeResolver serves a pre-registered table.
"""

import hashlib
import importlib.util
import re
import sys
import threading
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from types import ModuleType
from typing import Any, Protocol

from fastapi_endpoint_routing.core.paths import to_platform_path
from fastapi_endpoint_routing.core.tree import ResourceRef
from fastapi_endpoint_routing.exceptions import RouteFileError

# HTTP methods an entry file may export handlers for
HTTP_METHODS: frozenset[str] = frozenset(
    {
        "GET",
        "POST",
        "PUT",
        "PATCH",
        "DELETE",
        "HEAD",
        "OPTIONS",
        "TRACE",
        "CONNECT",
    }
)

HandlerMap = Mapping[str, Callable[..., Any]]

_UNSAFE_MODULE_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_MODULE_PREFIX = "_endpoint_routes"

# Serialises first imports; dispatch may resolve from worker threads
_import_lock = threading.RLock()


class CodeResolver(Protocol):
    """Capability that loads the handlers behind a ResourceRef.

    resolve() returns the method -> handler mapping, None when the file
    defines no handlers, or an awaitable of either. It may raise; callers
    treat any exception as "unresolvable".
    """

    def resolve(self, ref: ResourceRef) -> HandlerMap | None | Awaitable[HandlerMap | None]: ...


class ModuleCodeResolver:
    """Resolve entry files by importing them as Python modules.

    Modules are cached in sys.modules under a name derived from their
    path, so repeated resolution of the same file does not re-execute it.

    Args:
        base_dir: Directory relative file paths are resolved against.
            Defaults to the current working directory at resolve time.
        handlers_root: When set, files outside this directory are rejected.
    """

    def __init__(
        self,
        base_dir: str | Path | None = None,
        handlers_root: str | Path | None = None,
    ) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self.handlers_root = Path(handlers_root).resolve() if handlers_root is not None else None

    def resolve(self, ref: ResourceRef) -> dict[str, Callable[..., Any]] | None:
        """Import the file behind ref and extract its handlers.

        Raises:
            RouteFileError: If the path is invalid or the import fails.
        """
        file_path = self._validate_file_path(to_platform_path(ref.file_path))
        module = import_route_module(file_path)
        return extract_handlers(module) or None

    def _validate_file_path(self, file_path: Path) -> Path:
        # Check for path traversal attempts (.. as path component, not inside filenames)
        if ".." in file_path.parts:
            raise RouteFileError(f"Path traversal detected in file path: {file_path}")

        base = self.base_dir if self.base_dir is not None else Path.cwd()
        resolved = (base / file_path).resolve()

        if self.handlers_root is not None:
            try:
                resolved.relative_to(self.handlers_root)
            except ValueError:
                raise RouteFileError(
                    f"Route file outside allowed directory: {resolved}\n"
                    f"Allowed base: {self.handlers_root}"
                ) from None

        if not resolved.is_file():
            raise RouteFileError(f"Route file does not exist: {resolved}")

        return resolved


class MappingCodeResolver:
    """Resolve entry files from a registered table keyed by file path.

    Example:
        resolver = MappingCodeResolver({
            "endpoints/users/route.py": {"GET": list_users},
        })
    """

    def __init__(self, routes: Mapping[str, HandlerMap] | None = None) -> None:
        self._routes: dict[str, dict[str, Callable[..., Any]]] = {}
        for file_path, handlers in (routes or {}).items():
            self.register(file_path, handlers)

    def register(self, file_path: str, handlers: HandlerMap) -> None:
        """Register the handlers served for file_path (method names are uppercased)."""
        self._routes[file_path] = {method.upper(): fn for method, fn in handlers.items()}

    def resolve(self, ref: ResourceRef) -> dict[str, Callable[..., Any]] | None:
        return self._routes.get(ref.file_path)


def _path_to_module_name(file_path: Path) -> str:
    """Derive the sys.modules key for an entry file.

    The readable part mirrors the directory layout; the trailing digest of
    the full path keeps names distinct when sanitising makes two paths look
    alike (``a-b`` and ``a_b``, ``[id]`` and ``_id_``).

    Args:
        file_path: Absolute path to the entry file.

    Examples:
        /srv/endpoints/users/[userId]/route.py
            -> _endpoint_routes.srv.endpoints.users._userId_.route_3f1c0a9be2d4
    """
    parts = file_path.with_suffix("").parts
    if file_path.anchor:
        parts = parts[1:]

    converted = [_MODULE_PREFIX]
    for part in parts:
        safe = _UNSAFE_MODULE_CHARS.sub("_", part)
        if safe[:1].isdigit():
            safe = f"_{safe}"
        converted.append(safe)

    digest = hashlib.sha1(str(file_path).encode("utf-8")).hexdigest()[:12]
    converted[-1] = f"{converted[-1]}_{digest}"
    return ".".join(converted)


def import_route_module(file_path: Path) -> ModuleType:
    """Import an entry file once and return the cached module afterwards.

    The module is visible in sys.modules while it executes. A failed
    execution leaves no entry behind.

    Raises:
        RouteFileError: If the file cannot be loaded or raises on import.
    """
    file_path = file_path.resolve()
    module_name = _path_to_module_name(file_path)

    with _import_lock:
        cached = sys.modules.get(module_name)
        if cached is not None:
            return cached

        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise RouteFileError(f"Cannot load route file: {file_path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as exc:
            sys.modules.pop(module_name, None)
            raise RouteFileError(
                f"Failed to import module: {file_path}\nError: {type(exc).__name__}: {exc}"
            ) from exc

    return module


def extract_handlers(module: ModuleType) -> dict[str, Callable[..., Any]]:
    """Extract HTTP method handlers from an entry module.

    A handler is a public, module-level callable defined in the module
    itself whose name (any case) is an HTTP method: ``get``, ``POST``...
    Imported names and private helpers are ignored.

    Returns:
        Mapping of uppercase HTTP method to handler. Empty if none.
    """
    handlers: dict[str, Callable[..., Any]] = {}

    for name in dir(module):
        if name.startswith("_"):
            continue

        method = name.upper()
        if method not in HTTP_METHODS:
            continue

        obj = getattr(module, name)
        if not callable(obj):
            continue

        # Skip imported classes/functions (check module origin)
        if getattr(obj, "__module__", module.__name__) != module.__name__:
            continue

        handlers[method] = obj

    return handlers
