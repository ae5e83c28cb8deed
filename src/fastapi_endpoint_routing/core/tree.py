"""Route tree and its JSON registry format.

The registry is a nested mapping. Keys starting with "/" are routing keys
leading to child nodes; every other key is an HTTP method whose value
points at the file that implements it:

    {
      "/users": {
        "GET": {"filePath": "endpoints/users/route.py"},
        "/:userId": {
          "GET": {"filePath": "endpoints/users/[userId]/route.py"}
        }
      }
    }
"""

import json
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from fastapi_endpoint_routing.core.segments import RoutingKey, SegmentType, parse_key
from fastapi_endpoint_routing.exceptions import (
    DynamicSegmentConflictError,
    RegistryFormatError,
)

_FILE_PATH_KEY = "filePath"


@dataclass(frozen=True)
class ResourceRef:
    """Pointer to externally loadable handler code.

    Attributes:
        file_path: Posix-style path to the entry file.
    """

    file_path: str

    def to_dict(self) -> dict[str, str]:
        return {_FILE_PATH_KEY: self.file_path}


@dataclass
class RouteNode:
    """One level of the route tree.

    Attributes:
        children: Child nodes keyed by routing key.
        methods: Method table, uppercase HTTP method -> ResourceRef.
    """

    children: dict[RoutingKey, "RouteNode"] = field(default_factory=dict)
    methods: dict[str, ResourceRef] = field(default_factory=dict)

    @property
    def has_methods(self) -> bool:
        return bool(self.methods)

    @property
    def is_empty(self) -> bool:
        return not self.children and not self.methods

    @property
    def dynamic_child(self) -> tuple[RoutingKey, "RouteNode"] | None:
        """Return the (key, node) pair of the dynamic child, if any."""
        for key, node in self.children.items():
            if key.is_dynamic:
                return key, node
        return None

    def child(self, key: RoutingKey) -> "RouteNode | None":
        return self.children.get(key)

    def literal_child(self, name: str) -> "RouteNode | None":
        return self.children.get(RoutingKey(name=name, segment_type=SegmentType.LITERAL))

    def add_child(self, key: RoutingKey) -> "RouteNode":
        """Return the child at key, creating it when missing.

        Raises:
            DynamicSegmentConflictError: If key is dynamic and a dynamic
                child with a different name already exists.
        """
        existing = self.children.get(key)
        if existing is not None:
            return existing

        _check_dynamic_sibling(self, key)
        node = RouteNode()
        self.children[key] = node
        return node


def check_route_keys(root: RouteNode, keys: Sequence[RoutingKey]) -> None:
    """Check that keys can be inserted without a dynamic sibling conflict.

    Raises:
        DynamicSegmentConflictError: If a key would add a second dynamic
            child to a node.
    """
    node = root
    for key in keys:
        existing = node.child(key)
        if existing is None:
            # Everything below a new node is new as well
            _check_dynamic_sibling(node, key)
            return
        node = existing


def _check_dynamic_sibling(node: RouteNode, key: RoutingKey) -> None:
    if not key.is_dynamic:
        return
    sibling = node.dynamic_child
    if sibling is not None and sibling[0] != key:
        raise DynamicSegmentConflictError(
            f"Dynamic segment '{key}' conflicts with existing sibling '{sibling[0]}'"
        )


def insert_route(
    root: RouteNode,
    keys: Sequence[RoutingKey],
    method: str,
    ref: ResourceRef,
) -> None:
    """Insert a method entry into the tree, creating missing nodes.

    Args:
        root: Tree root, mutated in place.
        keys: Routing keys from the root down to the route. An empty
            sequence targets the root itself.
        method: HTTP method, stored uppercased.
        ref: Reference to the file implementing the method.

    Raises:
        DynamicSegmentConflictError: If a key would add a second dynamic
            child to a node. The tree is left unchanged.
    """
    check_route_keys(root, keys)
    node = root
    for key in keys:
        node = node.add_child(key)
    node.methods[method.upper()] = ref


def serialize(root: RouteNode) -> dict[str, Any]:
    """Convert a route tree into its registry mapping."""
    data: dict[str, Any] = {}
    for method, ref in root.methods.items():
        data[method] = ref.to_dict()
    for key, child in root.children.items():
        data[key.stringify()] = serialize(child)
    return data


def deserialize(data: Mapping[str, Any], *, _location: str = "/") -> RouteNode:
    """Rebuild a route tree from its registry mapping.

    Raises:
        RegistryFormatError: If the mapping is not a valid registry.
    """
    if not isinstance(data, Mapping):
        raise RegistryFormatError(
            f"Registry node at '{_location}' must be an object, got {type(data).__name__}"
        )

    node = RouteNode()
    for raw_key, value in data.items():
        if raw_key.startswith("/"):
            key = parse_key(raw_key)
            sibling = node.dynamic_child if key.is_dynamic else None
            if sibling is not None:
                raise RegistryFormatError(
                    f"Dynamic segment '{key}' conflicts with existing sibling "
                    f"'{sibling[0]}' at '{_location}'"
                )
            node.children[key] = deserialize(
                value, _location=_location.rstrip("/") + raw_key
            )
            continue

        if not isinstance(value, Mapping) or not isinstance(value.get(_FILE_PATH_KEY), str):
            raise RegistryFormatError(
                f"Method '{raw_key}' at '{_location}' must map to an object with "
                f"'{_FILE_PATH_KEY}'"
            )
        node.methods[raw_key.upper()] = ResourceRef(file_path=value[_FILE_PATH_KEY])

    return node


def dumps(root: RouteNode) -> str:
    """Serialize a route tree to registry JSON text.

    Keys are sorted so compiling an unchanged tree twice yields
    byte-identical output.
    """
    return json.dumps(serialize(root), indent=2, sort_keys=True) + "\n"


def loads(text: str | bytes) -> RouteNode:
    """Parse registry JSON text into a route tree.

    Raises:
        RegistryFormatError: If text is not valid registry JSON.
    """
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise RegistryFormatError(f"Registry is not valid JSON: {exc}") from exc
    return deserialize(data)


def iter_routes(
    root: RouteNode,
    *,
    _prefix: str = "",
) -> Iterator[tuple[str, str, ResourceRef]]:
    """Yield (route_path, method, ref) for every method entry in the tree.

    Examples:
        ("/", "GET", ResourceRef("endpoints/route.py"))
        ("/users/:userId", "GET", ResourceRef("endpoints/users/[userId]/route.py"))
    """
    for method in sorted(root.methods):
        yield _prefix or "/", method, root.methods[method]
    for key in sorted(root.children, key=str):
        yield from iter_routes(root.children[key], _prefix=_prefix + key.stringify())
