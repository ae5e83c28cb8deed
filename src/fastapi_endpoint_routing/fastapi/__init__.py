"""FastAPI adapter for endpoint routing."""

from fastapi_endpoint_routing.fastapi.router import (
    create_router_from_config,
    create_router_from_registry,
)

__all__ = ["create_router_from_config", "create_router_from_registry"]
