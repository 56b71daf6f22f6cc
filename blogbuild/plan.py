"""Decide which logical pages a build emits and what each one holds.

Nothing here renders strings or touches the filesystem. Identifiers are
site-relative: an identifier ending in ``/`` (or the empty root
identifier) names a directory page, anything else names a file.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Iterator, Sequence, Union

from .chronology import NeighborLinks, neighbors, sequence
from .config import SiteConfig
from .content import PublishedPost
from .pagination import Page, paginate
from .taxonomy import DIRECTORIES, KINDS, TaxonomyEntry, aggregate

EMPTY_MESSAGES = {
    "tag": "No tags have been published yet.",
    "category": "No categories have been published yet.",
}
OVERVIEW_TITLES = {"tag": "Browse by Tag", "category": "Browse by Category"}
NO_POSTS_MESSAGE = "No posts have been published yet."


def post_path(slug: str) -> str:
    return f"posts/{slug}/"


def index_path(number: int) -> str:
    return "" if number == 1 else f"page/{number}/"


@dataclass(frozen=True)
class PostPage:
    post: PublishedPost
    links: NeighborLinks[PublishedPost]

    @property
    def path(self) -> str:
        return post_path(self.post.slug)

    @property
    def markdown_path(self) -> str:
        return f"posts/{self.post.slug}.md"

    @property
    def json_path(self) -> str:
        return f"posts/{self.post.slug}.json"

    def identifiers(self) -> list[str]:
        return [self.path, self.markdown_path, self.json_path]


@dataclass(frozen=True)
class IndexPage:
    page: Page[PublishedPost]

    @property
    def path(self) -> str:
        return index_path(self.page.number)

    @property
    def is_empty(self) -> bool:
        return not self.page.posts

    @property
    def empty_message(self) -> str:
        return NO_POSTS_MESSAGE

    def identifiers(self) -> list[str]:
        return [self.path]


@dataclass(frozen=True)
class TaxonomyOverviewPage:
    kind: str
    entries: tuple[TaxonomyEntry, ...]

    @property
    def path(self) -> str:
        return f"{DIRECTORIES[self.kind]}/"

    @property
    def title(self) -> str:
        return OVERVIEW_TITLES[self.kind]

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def empty_message(self) -> str:
        return EMPTY_MESSAGES[self.kind]

    def identifiers(self) -> list[str]:
        return [self.path]


@dataclass(frozen=True)
class TaxonomyDetailPage:
    entry: TaxonomyEntry

    @property
    def kind(self) -> str:
        return self.entry.kind

    @property
    def path(self) -> str:
        return self.entry.path

    def identifiers(self) -> list[str]:
        return [self.path]


@dataclass(frozen=True)
class FeedDocument:
    posts: tuple[PublishedPost, ...]
    path: str

    def identifiers(self) -> list[str]:
        return [self.path]


LogicalPage = Union[PostPage, IndexPage, TaxonomyOverviewPage, TaxonomyDetailPage, FeedDocument]


@dataclass(frozen=True)
class SitePlan:
    posts: tuple[PublishedPost, ...]
    post_pages: tuple[PostPage, ...]
    index_pages: tuple[IndexPage, ...]
    overviews: tuple[TaxonomyOverviewPage, ...]
    details: tuple[TaxonomyDetailPage, ...]
    feed: FeedDocument

    @property
    def pages(self) -> Iterator[LogicalPage]:
        yield from self.post_pages
        yield from self.index_pages
        yield from self.overviews
        yield from self.details
        yield self.feed

    def identifiers(self) -> list[str]:
        return [identifier for page in self.pages for identifier in page.identifiers()]

    def overview(self, kind: str) -> TaxonomyOverviewPage:
        for page in self.overviews:
            if page.kind == kind:
                return page
        raise KeyError(kind)


def plan_site(posts: Sequence[PublishedPost], config: SiteConfig) -> SitePlan:
    ordered = sequence(posts)
    post_pages = tuple(
        PostPage(post=post, links=neighbors(ordered, index)) for index, post in enumerate(ordered)
    )

    pagination = paginate(ordered, config.posts_per_page)
    index_pages = tuple(IndexPage(page=page) for page in pagination.pages)

    overviews = []
    details = []
    for kind in KINDS:
        entries = []
        for entry in aggregate(ordered, kind, on_collision=config.taxonomy_collisions):
            if not entry.slug:
                # Its detail page would land on top of the overview page.
                print(
                    f"Warning: {kind} {entry.name!r} has an empty slug and is not listed.",
                    file=sys.stderr,
                )
                continue
            entries.append(entry)
        overviews.append(TaxonomyOverviewPage(kind=kind, entries=tuple(entries)))
        details.extend(TaxonomyDetailPage(entry=entry) for entry in entries)

    feed = FeedDocument(posts=tuple(ordered[: config.feed_limit]), path=config.feed_path)
    return SitePlan(
        posts=tuple(ordered),
        post_pages=post_pages,
        index_pages=index_pages,
        overviews=tuple(overviews),
        details=tuple(details),
        feed=feed,
    )
