"""Directory-name codec for endpoint routing.

Converts directory names into routing keys:
- [param] -> /:param (dynamic segment, binds one path segment)
- anything else -> /name (literal segment)
"""

import re
from dataclasses import dataclass
from enum import Enum

from fastapi_endpoint_routing.exceptions import RegistryFormatError


class SegmentType(Enum):
    """Type of a routing key."""

    LITERAL = "literal"
    DYNAMIC = "dynamic"


@dataclass(frozen=True)
class RoutingKey:
    """A typed path-segment matcher."""

    name: str
    segment_type: SegmentType = SegmentType.LITERAL

    @property
    def is_dynamic(self) -> bool:
        return self.segment_type is SegmentType.DYNAMIC

    def stringify(self) -> str:
        """Return the registry key for this segment.

        Examples:
            LITERAL "users" -> "/users"
            DYNAMIC "id" -> "/:id"
        """
        if self.is_dynamic:
            return f"/:{self.name}"
        return f"/{self.name}"

    def __str__(self) -> str:
        return self.stringify()


_DYNAMIC_PATTERN = re.compile(r"^\[([^\[\]]+)\]$")


def encode_segment(directory_name: str) -> RoutingKey:
    """Encode a raw directory name as a routing key.

    Args:
        directory_name: Directory name as found on disk.

    Returns:
        A dynamic key when the whole name is wrapped in one bracket pair,
        a literal key otherwise.

    Examples:
        "users" -> RoutingKey("users", LITERAL)
        "[userId]" -> RoutingKey("userId", DYNAMIC)
        "[[v]]" -> RoutingKey("[[v]]", LITERAL)
    """
    if match := _DYNAMIC_PATTERN.match(directory_name):
        return RoutingKey(name=match.group(1), segment_type=SegmentType.DYNAMIC)
    return RoutingKey(name=directory_name)


def parse_key(text: str) -> RoutingKey:
    """Decode a registry key produced by RoutingKey.stringify().

    Raises:
        RegistryFormatError: If text is not a routing key.
    """
    if not text.startswith("/"):
        raise RegistryFormatError(f"Invalid routing key '{text}': must start with '/'")
    if text.startswith("/:") and len(text) > 2:
        return RoutingKey(name=text[2:], segment_type=SegmentType.DYNAMIC)
    return RoutingKey(name=text[1:])
