from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class NeighborLinks(Generic[T]):
    newer: Optional[T]
    older: Optional[T]


def sequence(posts: Sequence[T]) -> list[T]:
    """Newest first. Posts sharing a timestamp keep their input order."""
    # list.sort is stable with reverse=True as well.
    return sorted(posts, key=lambda post: post.date, reverse=True)


def neighbors(sorted_posts: Sequence[T], index: int) -> NeighborLinks[T]:
    if not 0 <= index < len(sorted_posts):
        raise IndexError(f"post index {index} out of range for {len(sorted_posts)} posts")
    newer = sorted_posts[index - 1] if index > 0 else None
    older = sorted_posts[index + 1] if index < len(sorted_posts) - 1 else None
    return NeighborLinks(newer=newer, older=older)
