"""Configuration for route compilation and dispatch."""

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from fastapi_endpoint_routing.core.scanner import DEFAULT_ENTRY_FILE_NAME
from fastapi_endpoint_routing.exceptions import ConfigurationError

DEFAULT_REGISTRY_PATH = "routes.json"
DEFAULT_HANDLERS_ROOT = "endpoints"


@dataclass(frozen=True)
class CompilerConfig:
    """Options for compiling a handlers directory into a route registry.

    Attributes:
        output_path: Registry file to write, overwritten on every compile.
        handlers_root: Directory to scan for entry files.
        excluded_names: Directory names pruned anywhere in the tree.
            None excludes nothing.
        entry_file_name: File name that marks a route directory.
        verbose: Log compile progress at INFO instead of DEBUG.
    """

    output_path: str | Path = DEFAULT_REGISTRY_PATH
    handlers_root: str | Path = DEFAULT_HANDLERS_ROOT
    excluded_names: frozenset[str] | None = None
    entry_file_name: str = DEFAULT_ENTRY_FILE_NAME
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.excluded_names is not None:
            if isinstance(self.excluded_names, str):
                raise ConfigurationError(
                    "excluded_names must be a collection of names, got a string"
                )
            object.__setattr__(self, "excluded_names", frozenset(self.excluded_names))

        if not self.entry_file_name or "/" in self.entry_file_name or "\\" in self.entry_file_name:
            raise ConfigurationError(
                f"entry_file_name must be a bare file name, got '{self.entry_file_name}'"
            )


@dataclass(frozen=True)
class DispatcherConfig:
    """Options for serving requests from a compiled route registry.

    Attributes:
        registry_path: Registry file produced by the compiler.
        handlers_root: Directory entry files must live under.
        allowed_methods: Method whitelist, stored uppercased. None allows
            any method.
    """

    registry_path: str | Path = DEFAULT_REGISTRY_PATH
    handlers_root: str | Path = DEFAULT_HANDLERS_ROOT
    allowed_methods: frozenset[str] | None = None

    def __post_init__(self) -> None:
        if self.allowed_methods is not None:
            object.__setattr__(
                self, "allowed_methods", normalize_methods(self.allowed_methods)
            )


def normalize_methods(methods: Iterable[str]) -> frozenset[str]:
    """Uppercase a collection of HTTP method names.

    Raises:
        ConfigurationError: If methods is a bare string or holds a non-string.
    """
    if isinstance(methods, str):
        raise ConfigurationError("allowed_methods must be a collection of methods, got a string")

    normalized = set()
    for method in methods:
        if not isinstance(method, str) or not method:
            raise ConfigurationError(f"Invalid HTTP method in allowed_methods: {method!r}")
        normalized.add(method.upper())
    return frozenset(normalized)
