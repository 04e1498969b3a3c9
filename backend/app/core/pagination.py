"""Pagination — page/limit arithmetic for listing endpoints.

Invariants:
    - Pages are 1-based; page N covers rows [(N-1)*limit, N*limit)
    - page_count(0, limit) == 0
"""

import math


def page_bounds(page: int, limit: int) -> tuple[int, int]:
    """Return (offset, limit) for a 1-based page."""
    if page < 1 or limit < 1:
        raise ValueError("page and limit must be >= 1")
    return (page - 1) * limit, limit


def page_count(total: int, limit: int) -> int:
    """Number of pages needed to show `total` rows, `limit` per page."""
    if limit < 1:
        raise ValueError("limit must be >= 1")
    return math.ceil(total / limit)
