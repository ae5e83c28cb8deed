"""Directory scanner for endpoint routing.

Walks a handlers directory depth-first to discover entry files and the
raw directory names leading to them. Directory access goes through a
DirectoryLister so the walk can run against an in-memory tree.
"""

import logging
from collections.abc import Collection, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_FILE_NAME = "route.py"

# Never part of a route tree
_ALWAYS_SKIPPED = frozenset({"__pycache__"})


@dataclass(frozen=True)
class DirEntry:
    """A single directory listing entry.

    Attributes:
        name: Entry name (no path separators).
        is_dir: Whether the entry is a directory.
    """

    name: str
    is_dir: bool


class DirectoryLister(Protocol):
    """Capability that lists the entries of a directory."""

    def list_dir(self, path: PurePath) -> Iterable[DirEntry]: ...


class FileSystemLister:
    """DirectoryLister backed by the real filesystem.

    OSError from the filesystem propagates unchanged.
    """

    def list_dir(self, path: PurePath) -> Iterable[DirEntry]:
        return [DirEntry(name=child.name, is_dir=child.is_dir()) for child in Path(path).iterdir()]


@dataclass(frozen=True)
class RouteFile:
    """A discovered entry file.

    Attributes:
        directories: Raw directory names from the handlers root down to
            the directory holding the file. Empty for a root entry file.
        file_path: Path to the entry file.
    """

    directories: tuple[str, ...]
    file_path: PurePath


def walk_route_files(
    root: PurePath,
    *,
    lister: DirectoryLister,
    entry_file_name: str = DEFAULT_ENTRY_FILE_NAME,
    excluded_names: Collection[str] | None = None,
) -> Iterator[RouteFile]:
    """Walk a handlers directory and yield every entry file.

    Entries are visited in sorted name order so repeated walks over an
    unchanged tree yield the same sequence.

    Args:
        root: Handlers root directory.
        lister: Capability used to list directories.
        entry_file_name: File name that marks a route directory.
        excluded_names: Directory names pruned wherever they appear.
            Matching is on raw names (``[id]``), not routing keys.

    Yields:
        RouteFile for each entry file found.

    Raises:
        OSError: If the lister cannot read a directory.

    Examples:
        for route_file in walk_route_files(Path("endpoints"), lister=FileSystemLister()):
            print(route_file.directories, route_file.file_path)
    """
    excluded = frozenset(excluded_names or ())
    yield from _walk(root, (), lister, entry_file_name, excluded)


def _walk(
    directory: PurePath,
    directories: tuple[str, ...],
    lister: DirectoryLister,
    entry_file_name: str,
    excluded: frozenset[str],
) -> Iterator[RouteFile]:
    for entry in sorted(lister.list_dir(directory), key=lambda e: e.name):
        if entry.is_dir:
            if entry.name in _ALWAYS_SKIPPED or entry.name.startswith("."):
                continue
            if entry.name in excluded:
                logger.debug(
                    "Skipping excluded directory",
                    extra={"directory": str(directory / entry.name)},
                )
                continue
            yield from _walk(
                directory / entry.name,
                (*directories, entry.name),
                lister,
                entry_file_name,
                excluded,
            )
        elif entry.name == entry_file_name:
            yield RouteFile(directories=directories, file_path=directory / entry.name)
