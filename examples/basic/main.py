"""Basic example demonstrating fastapi-endpoint-routing.

Compiles endpoints/ into routes.json at startup, then serves the
registry through one catch-all router. The dev/ tree is excluded from
the compiled registry.

Run from this directory with:
    uvicorn main:app --reload

Available endpoints:
    GET    /health          - Health check
    GET    /users           - List all users
    POST   /users           - Create a new user
    GET    /users/{userId}  - Get user by ID
    DELETE /users/{userId}  - Delete user
"""

import logging

from fastapi import FastAPI
from fastapi_endpoint_routing import (
    CompilerConfig,
    DispatcherConfig,
    build_route_registry,
    create_router_from_config,
)

logging.basicConfig(level=logging.INFO)

build_route_registry(CompilerConfig(excluded_names={"dev"}, verbose=True))

app = FastAPI(title="Basic Example")
app.include_router(
    create_router_from_config(DispatcherConfig(allowed_methods=["GET", "POST", "DELETE"]))
)
