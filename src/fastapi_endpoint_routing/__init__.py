"""FastAPI endpoint routing compiled from a directory layout."""

# Primary API: compile a handlers directory, serve it through FastAPI
from fastapi_endpoint_routing.config import CompilerConfig, DispatcherConfig
from fastapi_endpoint_routing.core.compiler import build_route_registry, compile_routes
from fastapi_endpoint_routing.core.dispatcher import (
    EndpointDispatcher,
    ResolvedHandler,
    load_registry,
)

# Core types: for custom resolvers, listers and inspection
from fastapi_endpoint_routing.core.importer import (
    CodeResolver,
    MappingCodeResolver,
    ModuleCodeResolver,
)
from fastapi_endpoint_routing.core.matcher import RouteMatch, match_route
from fastapi_endpoint_routing.core.scanner import DirectoryLister, DirEntry, FileSystemLister
from fastapi_endpoint_routing.core.segments import RoutingKey, SegmentType, encode_segment
from fastapi_endpoint_routing.core.tree import ResourceRef, RouteNode

# Exceptions: for error handling
from fastapi_endpoint_routing.exceptions import (
    ConfigurationError,
    DynamicSegmentConflictError,
    EndpointRoutingError,
    MethodNotAllowedError,
    PathValidationError,
    RegistryFormatError,
    RouteCompileError,
    RouteFileError,
    RouteNotFoundError,
    RoutingError,
)
from fastapi_endpoint_routing.fastapi.router import (
    create_router_from_config,
    create_router_from_registry,
)

__all__ = [
    # Primary API
    "build_route_registry",
    "compile_routes",
    "create_router_from_config",
    "create_router_from_registry",
    "CompilerConfig",
    "DispatcherConfig",
    "EndpointDispatcher",
    "ResolvedHandler",
    "load_registry",
    # Core types
    "CodeResolver",
    "DirEntry",
    "DirectoryLister",
    "FileSystemLister",
    "MappingCodeResolver",
    "ModuleCodeResolver",
    "ResourceRef",
    "RouteMatch",
    "RouteNode",
    "RoutingKey",
    "SegmentType",
    "encode_segment",
    "match_route",
    # Exceptions
    "ConfigurationError",
    "DynamicSegmentConflictError",
    "EndpointRoutingError",
    "MethodNotAllowedError",
    "PathValidationError",
    "RegistryFormatError",
    "RouteCompileError",
    "RouteFileError",
    "RouteNotFoundError",
    "RoutingError",
]

__version__ = "1.0.0"
