"""End-to-end integration tests for endpoint routing.

Tests the full pipeline: handlers directory -> compiler -> routes.json
-> dispatcher -> router factory -> FastAPI app -> HTTP requests.

Each test lays out real route.py files under tmp_path/endpoints, compiles
them with tmp_path as the working directory, and serves the written
registry through TestClient.
"""

import json
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fastapi_endpoint_routing import (
    CompilerConfig,
    DispatcherConfig,
    EndpointDispatcher,
    build_route_registry,
    create_router_from_config,
)


def _serve(config: DispatcherConfig | None = None) -> TestClient:
    app = FastAPI()
    app.include_router(create_router_from_config(config))
    return TestClient(app)


# ---------------------------------------------------------------------------
# 1. Compile then serve
# ---------------------------------------------------------------------------


class TestCompileAndServe:
    """Routes compiled from disk respond to HTTP requests."""

    def test_users_routes(
        self,
        in_tmp_cwd: Path,
        create_route_tree,
        users_route_source: str,
        user_detail_route_source: str,
    ):
        create_route_tree(
            {
                "users": users_route_source,
                "users/[userId]": user_detail_route_source,
            }
        )
        build_route_registry(CompilerConfig())

        client = _serve()

        assert client.get("/users").json() == {"users": []}
        assert client.post("/users").json() == {"created": True}
        assert client.get("/users/4124").json() == {"params": {"userId": "4124"}}

    def test_registry_content(self, in_tmp_cwd: Path, create_route_tree, users_route_source: str):
        create_route_tree({"users": users_route_source})

        build_route_registry(CompilerConfig())

        assert json.loads((in_tmp_cwd / "routes.json").read_text()) == {
            "/users": {
                "GET": {"filePath": "endpoints/users/route.py"},
                "POST": {"filePath": "endpoints/users/route.py"},
            }
        }

    def test_exact_segment_beats_dynamic(self, in_tmp_cwd: Path, create_route_tree):
        create_route_tree(
            {
                "users/me": "def get(request, params):\n    return {'who': 'me'}\n",
                "users/[userId]": "def get(request, params):\n    return dict(params)\n",
            }
        )
        build_route_registry(CompilerConfig())

        client = _serve()

        assert client.get("/users/me").json() == {"who": "me"}
        assert client.get("/users/you").json() == {"userId": "you"}

    def test_root_route(self, in_tmp_cwd: Path, create_route_tree):
        create_route_tree({".": "def get(request, params):\n    return {'index': True}\n"})
        build_route_registry(CompilerConfig())

        assert _serve().get("/").json() == {"index": True}

    def test_nested_dynamic_segments(self, in_tmp_cwd: Path, create_route_tree):
        create_route_tree(
            {
                "orgs/[orgId]/repos/[repoId]": (
                    "async def get(request, params):\n    return dict(params)\n"
                ),
            }
        )
        build_route_registry(CompilerConfig())

        response = _serve().get("/orgs/acme/repos/widgets")

        assert response.json() == {"orgId": "acme", "repoId": "widgets"}

    def test_lookalike_directories_serve_their_own_code(self, in_tmp_cwd: Path, create_route_tree):
        create_route_tree(
            {
                "a-b": "def get(request, params):\n    return 'dash'\n",
                "a_b": "def get(request, params):\n    return 'underscore'\n",
            }
        )
        build_route_registry(CompilerConfig())

        client = _serve()

        assert client.get("/a-b").json() == "dash"
        assert client.get("/a_b").json() == "underscore"

    def test_request_object_reaches_handler(self, in_tmp_cwd: Path, create_route_tree):
        create_route_tree(
            {
                "echo": (
                    "async def post(request, params):\n"
                    "    body = await request.json()\n"
                    "    return {'echo': body, 'agent': request.headers.get('x-agent')}\n"
                ),
            }
        )
        build_route_registry(CompilerConfig())

        response = _serve().post("/echo", json={"a": 1}, headers={"X-Agent": "test"})

        assert response.json() == {"echo": {"a": 1}, "agent": "test"}


# ---------------------------------------------------------------------------
# 2. Compile-time exclusion and skipping
# ---------------------------------------------------------------------------


class TestCompileOptions:
    def test_excluded_directory_is_not_served(self, in_tmp_cwd: Path, create_route_tree):
        create_route_tree(
            {
                "dev/generate-key": "def post(request, params):\n    return {'key': 'k'}\n",
                "health": "def get(request, params):\n    return {'ok': True}\n",
            }
        )
        build_route_registry(CompilerConfig(excluded_names={"dev"}))

        client = _serve()

        assert client.get("/health").status_code == 200
        assert client.post("/dev/generate-key").status_code == 404

    def test_broken_file_does_not_block_others(self, in_tmp_cwd: Path, create_route_tree):
        create_route_tree(
            {
                "broken": "import does_not_exist_anywhere\n",
                "health": "def get(request, params):\n    return {'ok': True}\n",
            }
        )
        build_route_registry(CompilerConfig())

        client = _serve()

        assert client.get("/health").json() == {"ok": True}
        assert client.get("/broken").status_code == 404

    def test_custom_entry_file_and_paths(self, tmp_path: Path):
        handlers = tmp_path / "handlers" / "ping"
        handlers.mkdir(parents=True)
        (handlers / "index.py").write_text("def get(request, params):\n    return 'pong'\n")
        (handlers / "route.py").write_text("def get(request, params):\n    return 'ignored'\n")
        registry = tmp_path / "build" / "registry.json"
        registry.parent.mkdir()

        build_route_registry(
            CompilerConfig(
                output_path=registry,
                handlers_root=tmp_path / "handlers",
                entry_file_name="index.py",
            )
        )

        client = _serve(DispatcherConfig(registry_path=registry, handlers_root=tmp_path / "handlers"))

        assert client.get("/ping").json() == "pong"


# ---------------------------------------------------------------------------
# 3. Dispatcher used without FastAPI
# ---------------------------------------------------------------------------


class TestDispatcherWithoutFramework:
    @pytest.mark.anyio()
    async def test_dispatch_and_exists(self, in_tmp_cwd: Path, create_route_tree):
        create_route_tree(
            {"users/[userId]": "def get(request, params):\n    return params['userId']\n"}
        )
        build_route_registry(CompilerConfig())

        dispatcher = EndpointDispatcher.from_config(DispatcherConfig(allowed_methods=["GET"]))

        assert await dispatcher.dispatch("/users/4124", "GET") == "4124"
        assert await dispatcher.exists("/users/4124", "get") is True
        assert await dispatcher.exists("/users/4124", "POST") is False
        assert await dispatcher.exists("/users", "GET") is False
