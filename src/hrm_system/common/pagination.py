from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit

    def to_dict(self, items: Sequence[dict]) -> dict:
        return {
            "items": list(items),
            "pagination": {
                "page": self.page,
                "limit": self.limit,
                "total": self.total,
                "totalPages": self.total_pages,
            },
        }


def normalize_paging(page: Optional[int], limit: Optional[int]) -> tuple[int, int]:
    p = max(1, int(page or 1))
    lim = int(limit or DEFAULT_PAGE_SIZE)
    lim = max(1, min(lim, MAX_PAGE_SIZE))
    return p, lim
