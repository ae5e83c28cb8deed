"""Router factory for endpoint routing.

Mounts an EndpointDispatcher behind one catch-all FastAPI route, so the
compiled registry decides which handler serves each request.
"""

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from fastapi_endpoint_routing.config import DispatcherConfig
from fastapi_endpoint_routing.core.dispatcher import EndpointDispatcher
from fastapi_endpoint_routing.core.importer import HTTP_METHODS, CodeResolver
from fastapi_endpoint_routing.core.tree import iter_routes
from fastapi_endpoint_routing.exceptions import RoutingError

logger = logging.getLogger(__name__)

_CATCH_ALL_PATH = "/{path:path}"


def create_router_from_registry(
    dispatcher: EndpointDispatcher,
    *,
    prefix: str = "",
) -> APIRouter:
    """Create a FastAPI APIRouter that serves requests through a dispatcher.

    Every standard HTTP method is routed to the dispatcher, so the method
    whitelist and 404s are answered in the dispatcher's structured shape
    rather than by FastAPI.

    Handlers are called as ``handler(request, params)`` where ``request``
    is the Starlette Request and ``params`` the path parameter bindings.
    Their return value is handed back to FastAPI unchanged, and their
    exceptions (including HTTPException) propagate to FastAPI.

    Args:
        dispatcher: Dispatcher holding the compiled registry.
        prefix: Optional URL prefix; it is not part of the matched path.

    Returns:
        A FastAPI APIRouter with the catch-all route registered.

    Example:
        from fastapi import FastAPI

        app = FastAPI()
        dispatcher = EndpointDispatcher.from_config(DispatcherConfig())
        app.include_router(create_router_from_registry(dispatcher))
    """
    router = APIRouter(prefix=prefix)

    async def endpoint(request: Request) -> Any:
        path = "/" + request.path_params.get("path", "")
        try:
            return await dispatcher.dispatch(path, request.method, request)
        except RoutingError as exc:
            logger.debug(
                "Routing failed",
                extra={"path": path, "method": request.method, "code": exc.code},
            )
            return JSONResponse(exc.to_dict(), status_code=exc.status)

    router.add_api_route(
        path=_CATCH_ALL_PATH,
        endpoint=endpoint,
        methods=sorted(HTTP_METHODS),
        response_model=None,
        include_in_schema=False,
    )

    logger.info(
        "Route registration complete",
        extra={
            "route_count": sum(1 for _ in iter_routes(dispatcher.registry)),
            "prefix": prefix or "(none)",
        },
    )

    return router


def create_router_from_config(
    config: DispatcherConfig | None = None,
    *,
    resolver: CodeResolver | None = None,
    prefix: str = "",
) -> APIRouter:
    """Load a registry file and create a router serving it.

    Raises:
        PathValidationError: If registry_path or handlers_root is invalid.
        RegistryFormatError: If the registry cannot be decoded.

    Example:
        app.include_router(create_router_from_config(DispatcherConfig(allowed_methods=["GET"])))
    """
    dispatcher = EndpointDispatcher.from_config(config, resolver=resolver)
    return create_router_from_registry(dispatcher, prefix=prefix)
