"""
Search, sort and paging for list tools
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Union

DEFAULT_PAGE_SIZE = 10


def _field_value(item: Dict[str, Any], path: str) -> Any:
    """Look up a possibly dotted field path ("team.slug")."""
    value: Any = item
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def _sort_key(value: Any):
    # None sorts first; strings compare case-insensitively
    if value is None:
        return (0, "")
    if isinstance(value, str):
        return (2, value.lower())
    if isinstance(value, (int, float)):
        return (1, value)
    return (3, str(value))


def wants_collection_options(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    search: Optional[str] = None
) -> bool:
    return any(option is not None for option in (page, limit, sort_by, search))


def apply_collection_options(
    items: List[Dict[str, Any]],
    default_search_fields: Sequence[str],
    page: Optional[int] = None,
    limit: Optional[int] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    search: Optional[str] = None,
    search_fields: Optional[Union[str, List[str]]] = None
) -> Union[List[Dict[str, Any]], Dict[str, Any]]:
    """
    Filter, sort and page a list of items.

    Without any option the items are returned as they are. Otherwise the result is
    {"data": [...], "metadata": {"total", "page", "pages", "limit"}} where total
    counts the items left after searching.
    """
    if not wants_collection_options(page, limit, sort_by, search):
        return items

    result = list(items)

    if search:
        if isinstance(search_fields, str):
            fields = [search_fields]
        else:
            fields = list(search_fields or default_search_fields)
        term = search.lower()
        result = [
            item for item in result
            if any(
                isinstance(_field_value(item, name), str) and term in _field_value(item, name).lower()
                for name in fields
            )
        ]

    if sort_by:
        result.sort(
            key=lambda item: _sort_key(_field_value(item, sort_by)),
            reverse=(sort_order or "asc").lower() == "desc"
        )

    total = len(result)
    page_size = limit if limit and limit > 0 else DEFAULT_PAGE_SIZE
    current_page = page if page and page > 0 else 1
    offset = (current_page - 1) * page_size

    return {
        "data": result[offset:offset + page_size],
        "metadata": {
            "total": total,
            "page": current_page,
            "pages": math.ceil(total / page_size),
            "limit": page_size,
        },
    }
