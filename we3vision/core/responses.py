"""
Success envelope and pagination helpers shared by all endpoints.
"""

import math
from typing import Any, Dict, Optional, Tuple


MAX_PAGE_SIZE = 100


def success_response(
    data: Any = None,
    pagination: Optional[Dict[str, Any]] = None,
    message: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": "success"}
    if message is not None:
        body["message"] = message
    if data is not None or message is None:
        body["data"] = data
    if pagination is not None:
        body["pagination"] = pagination
    return body


def normalize_page(page: int, limit: int) -> Tuple[int, int, int]:
    """Clamp page/limit and return (page, limit, skip)."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "currentPage": page,
        "totalPages": total_pages,
        "total": total,
        "hasNext": page * limit < total,
        "hasPrev": page > 1,
    }
