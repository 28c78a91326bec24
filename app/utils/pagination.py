# ============================================================================
# FILE: app/utils/pagination.py
# ============================================================================
from typing import Any, List
import math


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def paginated(label: str, items: List[Any], total: int, page: int, limit: int) -> dict:
    """
    Page envelope shared by every list endpoint

    Example:
        {"videos": [...], "total_docs": 42, "limit": 10, "page": 2,
         "total_pages": 5, "has_prev_page": True, "has_next_page": True,
         "prev_page": 1, "next_page": 3}
    """
    total_pages = math.ceil(total / limit) if limit else 0
    has_prev = page > 1
    has_next = page < total_pages
    return {
        label: items,
        "total_docs": total,
        "limit": limit,
        "page": page,
        "total_pages": total_pages,
        "has_prev_page": has_prev,
        "has_next_page": has_next,
        "prev_page": page - 1 if has_prev else None,
        "next_page": page + 1 if has_next else None,
    }
