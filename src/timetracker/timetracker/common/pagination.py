from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def normalize_paging(page: int | None, limit: int | None) -> tuple[int, int, int]:
    """Clamp page/limit and return (page, limit, offset)."""

    page = max(1, int(page or 1))
    limit = min(MAX_PAGE_SIZE, max(1, int(limit or DEFAULT_PAGE_SIZE)))
    return page, limit, (page - 1) * limit
