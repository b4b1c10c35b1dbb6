"""Pagination metadata helpers."""

import math
from typing import Dict, Any


def offset_for(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def build_pagination(page: int, page_size: int, total: int) -> Dict[str, Any]:
    """Pagination block returned next to every paged listing."""
    total_pages = math.ceil(total / page_size) if page_size > 0 else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_items": total,
        "items_per_page": page_size,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
