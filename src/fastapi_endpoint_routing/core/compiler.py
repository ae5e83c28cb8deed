"""Route compiler for endpoint routing.

Composes scanner, segment codec and code resolver to turn a handlers
directory into a route tree, and writes that tree as a JSON registry.
"""

import inspect
import logging
from collections.abc import Collection, Mapping
from pathlib import Path

from fastapi_endpoint_routing.config import CompilerConfig
from fastapi_endpoint_routing.core.importer import CodeResolver, ModuleCodeResolver
from fastapi_endpoint_routing.core.paths import resolve_and_validate_path, to_posix_path
from fastapi_endpoint_routing.core.scanner import (
    DEFAULT_ENTRY_FILE_NAME,
    DirectoryLister,
    FileSystemLister,
    RouteFile,
    walk_route_files,
)
from fastapi_endpoint_routing.core.segments import encode_segment
from fastapi_endpoint_routing.core.tree import (
    ResourceRef,
    RouteNode,
    check_route_keys,
    dumps,
    insert_route,
)
from fastapi_endpoint_routing.exceptions import (
    DynamicSegmentConflictError,
    PathValidationError,
    RouteCompileError,
    RouteFileError,
)

logger = logging.getLogger(__name__)


def compile_routes(
    root: str | Path,
    *,
    excluded_names: Collection[str] | None = None,
    entry_file_name: str = DEFAULT_ENTRY_FILE_NAME,
    resolver: CodeResolver | None = None,
    lister: DirectoryLister | None = None,
    base_dir: str | Path | None = None,
    verbose: bool = False,
) -> RouteNode:
    """Compile a handlers directory into an in-memory route tree.

    Every entry file is resolved through the code resolver and one method
    entry is inserted per handler it exposes. A file that fails to load,
    exposes no handlers, or would add a second dynamic sibling is logged
    and skipped; the rest of the tree still compiles.

    Args:
        root: Handlers root directory.
        excluded_names: Directory names pruned anywhere in the tree.
        entry_file_name: File name that marks a route directory.
        resolver: Loads entry files. Defaults to a ModuleCodeResolver
            restricted to root.
        lister: Lists directories. Defaults to the real filesystem.
        base_dir: Stored file paths are made relative to this directory.
            Defaults to the current working directory.
        verbose: Log progress at INFO instead of DEBUG.

    Returns:
        The compiled route tree.

    Raises:
        RouteCompileError: If root cannot be read.

    Example:
        tree = compile_routes("endpoints", excluded_names={"dev"})
    """
    level = logging.INFO if verbose else logging.DEBUG
    base = Path(base_dir).resolve() if base_dir is not None else Path.cwd()
    root_path = Path(root)

    if lister is None:
        lister = FileSystemLister()
        root_path = root_path.resolve()
        if not root_path.exists():
            raise RouteCompileError(f"Handlers root does not exist: {root_path}")
        if not root_path.is_dir():
            raise RouteCompileError(f"Handlers root is not a directory: {root_path}")
    if resolver is None:
        resolver = ModuleCodeResolver(base_dir=base, handlers_root=root_path)

    logger.log(level, "Searching for routes", extra={"handlers_root": str(root_path)})

    tree = RouteNode()
    compiled = 0
    try:
        for route_file in walk_route_files(
            root_path,
            lister=lister,
            entry_file_name=entry_file_name,
            excluded_names=excluded_names,
        ):
            if _compile_route_file(tree, route_file, resolver, base, level):
                compiled += 1
    except OSError as exc:
        raise RouteCompileError(f"Cannot read handlers root {root_path}: {exc}") from exc

    logger.log(
        level,
        "Route compilation complete",
        extra={"route_file_count": compiled, "handlers_root": str(root_path)},
    )
    return tree


def _compile_route_file(
    tree: RouteNode,
    route_file: RouteFile,
    resolver: CodeResolver,
    base_dir: Path,
    level: int,
) -> bool:
    """Insert the routes of one entry file. Returns False when it was skipped."""
    ref = ResourceRef(file_path=to_posix_path(route_file.file_path, base_dir=base_dir))
    logger.log(level, "Found route file", extra={"file": ref.file_path})

    try:
        handlers = _load_handlers(resolver, ref)
    except RouteFileError as exc:
        logger.warning(
            "Skipping route file that failed to load",
            extra={"file": ref.file_path, "error": str(exc)},
        )
        return False

    if not handlers:
        logger.warning("No valid handlers found in route file", extra={"file": ref.file_path})
        return False

    keys = [encode_segment(name) for name in route_file.directories]
    try:
        check_route_keys(tree, keys)
    except DynamicSegmentConflictError as exc:
        logger.warning(
            "Skipping route file with conflicting dynamic segment",
            extra={"file": ref.file_path, "error": str(exc)},
        )
        return False

    for method in handlers:
        insert_route(tree, keys, method, ref)

    logger.log(
        level,
        "Registered route",
        extra={
            "path": "".join(str(k) for k in keys) or "/",
            "methods": sorted(handlers),
            "file": ref.file_path,
        },
    )
    return True


def _load_handlers(resolver: CodeResolver, ref: ResourceRef) -> dict[str, object]:
    """Resolve ref at compile time and keep only callable handlers.

    Raises:
        RouteFileError: If the resolver fails or returns something other
            than a method mapping.
    """
    try:
        loaded = resolver.resolve(ref)
    except RouteFileError:
        raise
    except Exception as exc:
        raise RouteFileError(f"Failed to resolve {ref.file_path}: {exc}") from exc

    if inspect.isawaitable(loaded):
        # Compilation is synchronous; async resolvers are only supported at dispatch time
        close = getattr(loaded, "close", None)
        if close is not None:
            close()
        raise RouteFileError(f"Resolver returned an awaitable for {ref.file_path}")

    if loaded is None:
        return {}
    if not isinstance(loaded, Mapping):
        raise RouteFileError(
            f"Route file {ref.file_path} must expose a method mapping, "
            f"got {type(loaded).__name__}"
        )
    return {str(method).upper(): fn for method, fn in loaded.items() if callable(fn)}


def build_route_registry(
    config: CompilerConfig | None = None,
    *,
    resolver: CodeResolver | None = None,
    lister: DirectoryLister | None = None,
) -> RouteNode:
    """Compile the configured handlers root and write the registry file.

    Args:
        config: Compiler options. Defaults to CompilerConfig().
        resolver: Optional code resolver override.
        lister: Optional directory lister override.

    Returns:
        The compiled route tree that was written.

    Raises:
        RouteCompileError: If the handlers root is unreadable, the output
            path is invalid, or the registry cannot be written.

    Example:
        build_route_registry(CompilerConfig(excluded_names={"dev"}, verbose=True))
    """
    config = config or CompilerConfig()
    level = logging.INFO if config.verbose else logging.DEBUG

    try:
        output_path = resolve_and_validate_path(config.output_path, must_be_json=True)
        if lister is None:
            resolve_and_validate_path(config.handlers_root, must_exist=True, must_be_dir=True)
    except PathValidationError as exc:
        raise RouteCompileError(str(exc)) from exc

    tree = compile_routes(
        config.handlers_root,
        excluded_names=config.excluded_names,
        entry_file_name=config.entry_file_name,
        resolver=resolver,
        lister=lister,
        verbose=config.verbose,
    )

    logger.log(level, "Writing routes", extra={"output_path": str(output_path)})
    try:
        output_path.write_text(dumps(tree), encoding="utf-8")
    except OSError as exc:
        raise RouteCompileError(f"Cannot write route registry {output_path}: {exc}") from exc

    logger.log(level, "Routes compiled successfully", extra={"output_path": str(output_path)})
    return tree
