"""Request path matching against a route tree.

Matching is a greedy, single-pass descent: at each node a literal child
equal to the segment wins, otherwise the node's dynamic child (if any)
binds the segment. There is no backtracking, so a dynamic choice made
early is never revisited.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from fastapi_endpoint_routing.core.tree import ResourceRef, RouteNode

_EMPTY: Mapping[str, str] = MappingProxyType({})


@dataclass(frozen=True)
class RouteMatch:
    """Result of matching a request path.

    Attributes:
        node: The node reached, or None when the path matched nothing.
        params: Read-only parameter bindings (caller bindings merged
            underneath the extracted ones).
    """

    node: RouteNode | None
    params: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    @property
    def found(self) -> bool:
        return self.node is not None

    @property
    def methods(self) -> Mapping[str, ResourceRef]:
        """Method table of the matched node (empty when nothing matched)."""
        if self.node is None:
            return MappingProxyType({})
        return MappingProxyType(self.node.methods)

    def method(self, method: str) -> ResourceRef | None:
        """Look up the reference registered for method, case-insensitively."""
        return self.methods.get(method.upper())


def split_path(path: str) -> list[str]:
    """Split a request path into non-empty segments.

    Only "/" separates segments. The path must already be stripped of any
    query string; "?" and "#" inside a segment are matched literally.

    Examples:
        "/users/4124" -> ["users", "4124"]
        "/a//b/" -> ["a", "b"]
        "/files/what?now" -> ["files", "what?now"]
    """
    return [segment for segment in path.split("/") if segment]


def match_route(
    root: RouteNode,
    path: str,
    params: Mapping[str, str] | None = None,
) -> RouteMatch:
    """Resolve a request path to a route node.

    Args:
        root: Route tree to search.
        path: Request path, e.g. "/users/4124".
        params: Existing bindings to merge with. Extracted bindings win on
            key collision. The mapping is never modified.

    Returns:
        RouteMatch with the reached node and bindings, or with node None
        when some segment has no literal or dynamic child to descend into.

    Examples:
        match_route(tree, "/users/4124").params -> {"userId": "4124"}
        match_route(tree, "/users/4124/extra").found -> False
    """
    node = root
    extracted: dict[str, str] = {}

    for segment in split_path(path):
        literal = node.literal_child(segment)
        if literal is not None:
            node = literal
            continue

        dynamic = node.dynamic_child
        if dynamic is None:
            return RouteMatch(node=None)

        key, node = dynamic
        extracted[key.name] = segment

    merged = {**params, **extracted} if params else extracted
    return RouteMatch(node=node, params=MappingProxyType(merged))
