import datetime as dt

import pytest

from blogbuild.content import Post, PublishedPost, TaxonomyTerm


def _utc(value: str) -> dt.datetime:
    parsed = dt.datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


@pytest.fixture
def make_post():
    def factory(title, date="2024-01-01", tags=(), categories=(), slug=None, html="<p>Body</p>"):
        return PublishedPost(
            Post(
                slug=slug or title.lower().replace(" ", "-"),
                title=title,
                date=_utc(date),
                tags=tuple(TaxonomyTerm.from_name(name) for name in tags),
                categories=tuple(TaxonomyTerm.from_name(name) for name in categories),
                excerpt=f"{title} excerpt",
                description=f"{title} description",
                html=html,
                markdown="Body",
                raw=f"---\ntitle: {title}\n---\nBody\n",
                source=f"{title}.md",
            )
        )

    return factory
