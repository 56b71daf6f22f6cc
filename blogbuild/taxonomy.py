from __future__ import annotations

import sys
import unicodedata
from dataclasses import dataclass
from typing import Iterable

from .content import PublishedPost
from .errors import TaxonomyCollisionError

KINDS = ("tag", "category")
DIRECTORIES = {"tag": "tags", "category": "categories"}


@dataclass(frozen=True)
class TaxonomyEntry:
    kind: str
    name: str
    slug: str
    posts: tuple[PublishedPost, ...]

    @property
    def directory(self) -> str:
        return DIRECTORIES[self.kind]

    @property
    def path(self) -> str:
        return f"{self.directory}/{self.slug}/"


def collation_key(name: str) -> tuple[str, str, str]:
    """Case- and accent-insensitive ordering that does not depend on the process locale."""
    folded = unicodedata.normalize("NFKD", name)
    base = "".join(ch for ch in folded if not unicodedata.combining(ch)).casefold()
    return base, name.casefold(), name


def aggregate(
    posts: Iterable[PublishedPost], kind: str, *, on_collision: str = "first"
) -> list[TaxonomyEntry]:
    """Group posts by tag or category slug.

    Members keep the order of ``posts``. When two display names share a slug
    the first one seen is kept; ``on_collision="warn"`` also reports it and
    ``"error"`` raises ``TaxonomyCollisionError``.
    """
    if kind not in KINDS:
        raise ValueError(f"Unknown taxonomy kind: {kind!r}")
    if on_collision not in {"first", "warn", "error"}:
        raise ValueError(f"Unknown collision policy: {on_collision!r}")

    names: dict[str, str] = {}
    members: dict[str, list[PublishedPost]] = {}
    for post in posts:
        for term in post.terms(kind):
            if term.slug not in names:
                names[term.slug] = term.name
                members[term.slug] = []
            elif term.name != names[term.slug]:
                message = (
                    f"{kind} {term.name!r} in {post.source or post.slug} has the same slug "
                    f"as {names[term.slug]!r}"
                )
                if on_collision == "error":
                    raise TaxonomyCollisionError(post.source or post.slug, f"{kind}s", message)
                if on_collision == "warn":
                    print(f"Warning: {message}; using {names[term.slug]!r}.", file=sys.stderr)
            entry_posts = members[term.slug]
            if not entry_posts or entry_posts[-1] is not post:
                entry_posts.append(post)

    entries = [
        TaxonomyEntry(kind=kind, name=names[slug], slug=slug, posts=tuple(members[slug]))
        for slug in names
    ]
    entries.sort(key=lambda entry: (collation_key(entry.name), entry.slug))
    return entries
