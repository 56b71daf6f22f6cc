from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar

from .errors import ConfigurationError

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    number: int
    posts: tuple[T, ...]
    total_pages: int

    @property
    def is_first(self) -> bool:
        return self.number == 1

    @property
    def is_last(self) -> bool:
        return self.number == self.total_pages

    @property
    def previous_number(self) -> Optional[int]:
        return None if self.is_first else self.number - 1

    @property
    def next_number(self) -> Optional[int]:
        return None if self.is_last else self.number + 1


@dataclass(frozen=True)
class PaginationPlan(Generic[T]):
    page_size: int
    total_pages: int
    pages: tuple[Page[T], ...]

    def page(self, number: int) -> Page[T]:
        if not 1 <= number <= self.total_pages:
            raise IndexError(f"page {number} does not exist (1-{self.total_pages})")
        return self.pages[number - 1]


def paginate(posts: Sequence[T], page_size: int) -> PaginationPlan[T]:
    if isinstance(page_size, bool) or not isinstance(page_size, int) or page_size < 1:
        raise ConfigurationError(f"page size must be a positive integer, got {page_size!r}")
    total_pages = max(1, math.ceil(len(posts) / page_size))
    pages = tuple(
        Page(
            number=number,
            posts=tuple(posts[(number - 1) * page_size : number * page_size]),
            total_pages=total_pages,
        )
        for number in range(1, total_pages + 1)
    )
    return PaginationPlan(page_size=page_size, total_pages=total_pages, pages=pages)
