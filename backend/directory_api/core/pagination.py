"""Pagination helpers shared by the listing endpoints"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page:
    page: int
    per_page: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.per_page


def build_page(page: Optional[int] = None, limit: Optional[int] = None) -> Page:
    """Clamp page to >= 1 and limit to 1..100"""
    return Page(
        page=max(1, page or 1),
        per_page=min(MAX_PAGE_SIZE, max(1, limit or DEFAULT_PAGE_SIZE)),
    )


def pagination_meta(total: int, page: Page) -> Dict[str, Any]:
    total_pages = math.ceil(total / page.per_page) if total else 0
    return {
        "total": total,
        "page": page.page,
        "perPage": page.per_page,
        "totalPages": total_pages,
        "hasNextPage": page.page < total_pages,
        "hasPrevPage": page.page > 1,
    }
