"""Shared pytest fixtures for fastapi-endpoint-routing tests."""

from collections.abc import Iterable
from pathlib import Path, PurePath, PurePosixPath
from typing import Any

import pytest

from fastapi_endpoint_routing.core.scanner import DirEntry


class InMemoryLister:
    """DirectoryLister over a nested dict.

    Dict values are subdirectories, any other value is a file.
    """

    def __init__(self, tree: dict[str, Any], root: PurePath = PurePosixPath("endpoints")):
        self.tree = tree
        self.root = root
        self.listed: list[PurePath] = []

    def list_dir(self, path: PurePath) -> Iterable[DirEntry]:
        self.listed.append(path)
        node = self.tree
        for part in PurePosixPath(path).relative_to(self.root).parts:
            node = node[part]
        return [DirEntry(name=name, is_dir=isinstance(value, dict)) for name, value in node.items()]


@pytest.fixture
def memory_lister():
    """Return a factory building an InMemoryLister rooted at 'endpoints'."""

    def _create(tree: dict[str, Any]) -> InMemoryLister:
        return InMemoryLister(tree)

    return _create


@pytest.fixture
def create_route_file(tmp_path: Path):
    """Create a route.py file with given content in a directory.

    Returns a callable that accepts:
    - content: Python code as string
    - parent_dir: Path to parent directory (defaults to tmp_path / "endpoints")
    - subdir: Optional subdirectory name (e.g., "users" or "users/[userId]")

    Returns the Path to the created route.py file.
    """

    def _create(
        content: str,
        parent_dir: Path | None = None,
        subdir: str = "",
    ) -> Path:
        base = parent_dir or tmp_path / "endpoints"
        target_dir = base / subdir if subdir else base
        target_dir.mkdir(parents=True, exist_ok=True)

        route_file = target_dir / "route.py"
        route_file.write_text(content)
        return route_file

    return _create


@pytest.fixture
def create_route_tree(tmp_path: Path, create_route_file):
    """Create a handlers directory from a dict specification.

    Keys are directory paths relative to the handlers root ("." for the
    root itself), values are route.py contents.

    Example:
        {
            "users": "def get(request, params): return {'users': []}",
            "users/[userId]": "def get(request, params): return dict(params)",
        }

    Returns the handlers root (tmp_path / "endpoints").
    """

    def _create(spec: dict[str, str]) -> Path:
        root = tmp_path / "endpoints"
        root.mkdir(exist_ok=True)
        for subdir, content in spec.items():
            create_route_file(content=content, parent_dir=root, subdir="" if subdir == "." else subdir)
        return root

    return _create


@pytest.fixture
def in_tmp_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run the test with tmp_path as the working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def users_route_source() -> str:
    """Return a route module serving GET and POST."""
    return """
def get(request, params):
    return {"users": []}

async def post(request, params):
    return {"created": True}
"""


@pytest.fixture
def user_detail_route_source() -> str:
    """Return a route module echoing its path parameters."""
    return """
async def get(request, params):
    return {"params": dict(params)}
"""


@pytest.fixture
def anyio_backend() -> str:
    """Run anyio-marked tests on asyncio; the suite uses asyncio APIs directly."""
    return "asyncio"
