"""Path validation helpers for configured routing paths."""

from pathlib import Path, PurePath, PurePosixPath

from fastapi_endpoint_routing.exceptions import PathValidationError


def resolve_and_validate_path(
    path: str | Path,
    *,
    must_exist: bool = False,
    must_be_json: bool = False,
    must_be_dir: bool = False,
) -> Path:
    """Resolve a path and enforce the requested constraints.

    Args:
        path: Relative or absolute path to validate.
        must_exist: Fail if the resolved path does not exist.
        must_be_json: Fail if the path does not have a .json suffix.
        must_be_dir: Fail if the path exists but is not a directory.

    Returns:
        The resolved absolute path.

    Raises:
        PathValidationError: If any constraint is not met.

    Examples:
        resolve_and_validate_path("routes.json", must_exist=True, must_be_json=True)
        resolve_and_validate_path("endpoints", must_exist=True, must_be_dir=True)
    """
    resolved = Path(path).resolve()

    if must_exist and not resolved.exists():
        raise PathValidationError(f"Path does not exist: {resolved}")

    if must_be_json and resolved.suffix != ".json":
        raise PathValidationError(f"Expected a .json file but received: {resolved}")

    if must_be_dir and resolved.exists() and not resolved.is_dir():
        raise PathValidationError(f"Expected a directory but received a file: {resolved}")

    return resolved


def to_posix_path(path: PurePath, *, base_dir: Path | None = None) -> str:
    """Render a file path the way the registry stores it.

    Paths below base_dir are stored relative to it, others absolute.
    Separators are always "/".
    """
    if base_dir is not None:
        try:
            path = Path(path).relative_to(base_dir)
        except ValueError:
            pass
    return PurePosixPath(*PurePath(path).parts).as_posix()


def to_platform_path(registry_path: str) -> Path:
    """Convert a "/"-separated registry path to a native Path.

    Example:
        to_platform_path("endpoints/users/[id]/route.py")
        # Windows: WindowsPath('endpoints/users/[id]/route.py')
    """
    return Path(*PurePosixPath(registry_path).parts)
