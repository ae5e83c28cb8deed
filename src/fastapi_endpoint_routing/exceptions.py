"""Exception hierarchy for endpoint routing errors."""

from typing import Any


class EndpointRoutingError(Exception):
    """Base exception for all endpoint routing errors.

    Catching this exception will catch every error raised by the
    fastapi-endpoint-routing package. Handler exceptions are never
    wrapped and therefore never inherit from it.

    Example:
        try:
            build_route_registry(CompilerConfig())
        except EndpointRoutingError as e:
            logger.error(f"Failed to compile routes: {e}")
    """


class ConfigurationError(EndpointRoutingError):
    """Raised when a compiler or dispatcher config has invalid values.

    Example:
        ConfigurationError("entry_file_name must be a bare file name, got 'a/route.py'")
    """


class PathValidationError(EndpointRoutingError):
    """Raised when a configured path fails a validation constraint.

    Examples of failed constraints:
        - The path does not exist
        - A registry path that is not a .json file
        - A handlers root that is a file, not a directory

    Example:
        PathValidationError("Expected a .json file but received: /srv/routes.txt")
    """


class RegistryFormatError(EndpointRoutingError):
    """Raised when a route registry document cannot be decoded.

    Example:
        RegistryFormatError("Method 'GET' at '/users' must map to an object with 'filePath'")
    """


class RouteFileError(EndpointRoutingError):
    """Raised when a single entry file cannot be loaded as a route definition.

    This error is non-fatal during compilation: the compiler logs it and
    moves on to the next entry file.

    Example:
        RouteFileError(
            "Failed to import module: endpoints/users/route.py\\n"
            "Error: SyntaxError: invalid syntax"
        )
    """


class RouteCompileError(EndpointRoutingError):
    """Raised when compilation as a whole cannot proceed.

    This covers an unreadable handlers root and an unwritable registry
    destination. Individual route files never raise this.

    Example:
        RouteCompileError("Handlers root does not exist: /srv/app/endpoints")
    """


class DynamicSegmentConflictError(EndpointRoutingError):
    """Raised when a second dynamic segment is added beside an existing one.

    Matching is only deterministic when a node has at most one dynamic
    child, so ``users/[id]`` and ``users/[name]`` cannot coexist.

    Example:
        DynamicSegmentConflictError(
            "Dynamic segment '/:name' conflicts with existing sibling '/:id'"
        )
    """


class RoutingError(EndpointRoutingError):
    """Base class for request-time routing failures.

    Routing failures are normalised into one structured shape so the
    host framework can render a consistent response.

    Attributes:
        code: Machine-readable error code.
        error: Human-readable error message.
        status: HTTP status code to respond with.
    """

    code: str = "ROUTING_ERROR"
    status: int = 500

    def __init__(self, error: str) -> None:
        super().__init__(error)
        self.error = error

    def to_dict(self) -> dict[str, Any]:
        """Return the structured error payload."""
        return {
            "success": False,
            "code": self.code,
            "error": self.error,
            "status": self.status,
        }


class MethodNotAllowedError(RoutingError):
    """Raised when the request method is outside the configured whitelist.

    Example:
        MethodNotAllowedError("POST").to_dict()
        # {"success": False, "code": "NOT_ALLOWED",
        #  "error": "Method 'POST' not supported.", "status": 405}
    """

    code = "NOT_ALLOWED"
    status = 405

    def __init__(self, method: str) -> None:
        super().__init__(f"Method '{method}' not supported.")
        self.method = method


class RouteNotFoundError(RoutingError):
    """Raised when no handler can serve the requested path and method.

    The public payload is identical for every cause. ``reason`` records
    which stage failed for logging and tests:

        - ``"no-route"``: the path matched no node
        - ``"no-method"``: the node has no entry for the method
        - ``"unresolvable"``: the referenced handler could not be loaded

    Example:
        RouteNotFoundError("no-method").to_dict()
        # {"success": False, "code": "NOT_FOUND",
        #  "error": "Route not found.", "status": 404}
    """

    code = "NOT_FOUND"
    status = 404

    def __init__(self, reason: str = "no-route") -> None:
        super().__init__("Route not found.")
        self.reason = reason
