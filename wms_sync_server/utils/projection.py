"""Field projection for synced records."""

from __future__ import annotations

from typing import Any, Dict, List, Optional


def project_items(items: List[Any], fields: Optional[List[str]]) -> List[Any]:
    """Project a list of dicts to only include the requested fields.

    - fields=None or []: returns items unchanged
    - fields=["*"]: returns items unchanged
    - non-dict items are passed through as-is
    """
    if not fields or "*" in fields:
        return items
    allowed = set(fields)
    projected: List[Any] = []
    for it in items:
        if isinstance(it, dict):
            projected.append({k: v for k, v in it.items() if k in allowed})
        else:
            projected.append(it)
    return projected


def project_dict(data: Dict[str, Any], fields: Optional[List[str]]) -> Dict[str, Any]:
    """Single-dict variant of project_items."""
    if not fields or "*" in fields:
        return data
    allowed = set(fields)
    return {k: v for k, v in data.items() if k in allowed}
