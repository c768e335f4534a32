"""Locate the result array in a page body regardless of envelope shape.

The provider has used several envelope conventions across endpoint
versions. Matchers are tried in SHAPE_MATCHERS order and the first one
that finds a list wins, so more specific envelopes are checked before the
generic fallbacks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple


class ResponseShape(str, Enum):
    RESOURCE_LIST = "ResourceList"
    EMBEDDED = "_embedded"
    ROOT_ARRAY = "root array"
    ITEMS = "items"
    UNKNOWN = "unknown"


@dataclass
class ShapeMatch:
    shape: ResponseShape
    items: List[Any] = field(default_factory=list)
    path: Optional[str] = None
    top_level_keys: List[str] = field(default_factory=list)

    @property
    def shape_name(self) -> str:
        return self.shape.value


Matcher = Callable[[Any], Optional[Tuple[List[Any], str]]]


def _match_resource_list(body: Any):
    if isinstance(body, dict) and isinstance(body.get("ResourceList"), list):
        return body["ResourceList"], "ResourceList"
    return None


def _match_embedded(body: Any):
    if not isinstance(body, dict):
        return None
    embedded = body.get("_embedded")
    if not isinstance(embedded, dict):
        return None
    for key, value in embedded.items():
        if isinstance(value, list):
            return value, f"_embedded.{key}"
    return None


def _match_root_array(body: Any):
    if isinstance(body, list):
        return body, "$"
    return None


def _match_items(body: Any):
    if isinstance(body, dict) and isinstance(body.get("items"), list):
        return body["items"], "items"
    return None


SHAPE_MATCHERS: List[Tuple[ResponseShape, Matcher]] = [
    (ResponseShape.RESOURCE_LIST, _match_resource_list),
    (ResponseShape.EMBEDDED, _match_embedded),
    (ResponseShape.ROOT_ARRAY, _match_root_array),
    (ResponseShape.ITEMS, _match_items),
]

TOTAL_FIELDS = ("TotalResults", "totalResults", "total")


def extract_items(body: Any) -> ShapeMatch:
    """Return the result records and which envelope carried them. Never raises."""
    for shape, matcher in SHAPE_MATCHERS:
        found = matcher(body)
        if found is not None:
            items, path = found
            return ShapeMatch(shape=shape, items=list(items), path=path)

    keys = sorted(str(k) for k in body.keys()) if isinstance(body, dict) else []
    return ShapeMatch(shape=ResponseShape.UNKNOWN, items=[], path=None, top_level_keys=keys)


def reported_total(body: Any) -> Optional[int]:
    """Provider's self-reported collection size, when the envelope has one."""
    if not isinstance(body, dict):
        return None
    for name in TOTAL_FIELDS:
        value = body.get(name)
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
    return None
