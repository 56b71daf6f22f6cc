from __future__ import annotations

import datetime as dt
import html as html_lib
import re
import sys
import unicodedata
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Callable, Iterable, NewType, Optional

import yaml

from .chronology import sequence
from .errors import ValidationError
from .render import render_markdown, strip_tags
from .utils import iso_date, long_date, parse_bool, to_utc

NON_SLUG_RE = re.compile(r"[^a-z0-9]+")
WHITESPACE_RE = re.compile(r"\s+")
ELLIPSIS = "…"
DATE_FORMATS = (
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)


class FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps timestamps as strings; dates are parsed by parse_post_date."""


FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def slugify(text: object) -> str:
    text = unicodedata.normalize("NFKD", str(text))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = NON_SLUG_RE.sub("-", text.lower())
    return text.strip("-")


@dataclass(frozen=True)
class RawDocument:
    filename: str
    text: str


@dataclass(frozen=True)
class TaxonomyTerm:
    name: str
    slug: str

    @classmethod
    def from_name(cls, name: str) -> "TaxonomyTerm":
        return cls(name=name, slug=slugify(name))


@dataclass(frozen=True)
class Post:
    slug: str
    title: str
    date: dt.datetime
    tags: tuple[TaxonomyTerm, ...]
    categories: tuple[TaxonomyTerm, ...]
    excerpt: str
    description: str
    html: str
    markdown: str
    raw: str
    source: str = ""
    draft: bool = False

    @property
    def iso_date(self) -> str:
        return iso_date(self.date)

    @property
    def formatted_date(self) -> str:
        return long_date(self.date)

    def terms(self, kind: str) -> tuple[TaxonomyTerm, ...]:
        if kind == "tag":
            return self.tags
        if kind == "category":
            return self.categories
        raise ValueError(f"Unknown taxonomy kind: {kind!r}")


# Posts that survived draft filtering. Aggregation, pagination and page
# planning only accept these.
PublishedPost = NewType("PublishedPost", Post)


def parse_front_matter(text: str, source: str = "") -> tuple[dict, str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}, clean_text

    end = None
    for i in range(1, len(lines)):
        if lines[i].strip() in {"---", "..."}:
            end = i
            break
    if end is None:
        return {}, clean_text

    block = "\n".join(lines[1:end])
    try:
        meta = yaml.load(block, Loader=FrontMatterLoader) if block.strip() else {}
    except yaml.YAMLError as exc:
        raise ValidationError(source, "front matter", f"invalid YAML front matter: {exc}") from exc
    if meta is None:
        meta = {}
    if not isinstance(meta, dict):
        raise ValidationError(source, "front matter", "front matter must be a mapping")
    body = "\n".join(lines[end + 1 :])
    return meta, body


def normalize_taxonomy(value: object) -> list[str]:
    """Accept a list or a comma-separated string; keep order and duplicates."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items: Iterable[object] = value
    else:
        items = str(value).split(",")
    names = [str(item).strip() for item in items if item is not None]
    return [name for name in names if name]


def parse_post_date(value: object, source: str, now: dt.datetime) -> dt.datetime:
    if value is None or value == "":
        return to_utc(now)
    if isinstance(value, dt.datetime):
        return to_utc(value)
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time(), tzinfo=dt.timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
        try:
            return to_utc(dt.datetime.fromisoformat(iso_text))
        except ValueError:
            pass
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            parsed = None
        if parsed is not None:
            return to_utc(parsed)
        for layout in DATE_FORMATS:
            try:
                return to_utc(dt.datetime.strptime(text, layout))
            except ValueError:
                continue
    raise ValidationError(source, "date", f"invalid date value {value!r}")


def create_excerpt(html_text: str, max_length: int = 200) -> str:
    # Tag stripping is a regex, so text that contains "<" can be cut short.
    text = html_lib.unescape(strip_tags(html_text))
    text = WHITESPACE_RE.sub(" ", text).strip()
    if len(text) <= max_length:
        return text
    return text[:max_length].strip() + ELLIPSIS


def _optional_text(meta: dict, key: str) -> str:
    value = meta.get(key)
    if value is None:
        return ""
    return str(value).strip()


def build_post(
    document: RawDocument,
    *,
    now: dt.datetime,
    excerpt_length: int = 200,
    render: Callable[[str], str] = render_markdown,
) -> Post:
    source = document.filename
    meta, body = parse_front_matter(document.text, source)

    title = _optional_text(meta, "title")
    if not title:
        raise ValidationError(source, "title", 'missing required front matter field "title"')

    date = parse_post_date(meta.get("date"), source, now)

    explicit_slug = _optional_text(meta, "slug")
    slug = slugify(explicit_slug) if explicit_slug else slugify(Path(source).stem)

    html_content = render(body)
    summary = _optional_text(meta, "summary")
    description = _optional_text(meta, "description")
    excerpt = summary or description or create_excerpt(html_content, excerpt_length)

    return Post(
        slug=slug,
        title=title,
        date=date,
        tags=tuple(TaxonomyTerm.from_name(name) for name in normalize_taxonomy(meta.get("tags"))),
        categories=tuple(
            TaxonomyTerm.from_name(name) for name in normalize_taxonomy(meta.get("categories"))
        ),
        excerpt=excerpt,
        description=description or summary or excerpt,
        html=html_content,
        markdown=body.strip(),
        raw=document.text,
        source=source,
        draft=parse_bool(meta.get("draft")),
    )


def read_documents(posts_dir: Path) -> list[RawDocument]:
    if not posts_dir.exists():
        return []
    files = sorted(
        (path for path in posts_dir.iterdir() if path.is_file() and path.suffix.lower() == ".md"),
        key=lambda p: p.name,
    )
    documents = []
    for path in files:
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError(path.name, "encoding", "file is not valid UTF-8") from exc
        documents.append(RawDocument(path.name, text))
    return documents


def load_posts(
    documents: Iterable[RawDocument],
    *,
    now: Optional[dt.datetime] = None,
    excerpt_length: int = 200,
    render: Callable[[str], str] = render_markdown,
) -> list[Post]:
    now = now or dt.datetime.now(dt.timezone.utc)
    posts = [build_post(doc, now=now, excerpt_length=excerpt_length, render=render) for doc in documents]
    seen: dict[str, str] = {}
    for post in posts:
        if post.draft:
            continue
        if post.slug in seen:
            print(
                f"Warning: {post.source} and {seen[post.slug]} share slug {post.slug!r}; "
                "the last one written wins.",
                file=sys.stderr,
            )
        else:
            seen[post.slug] = post.source
    return posts


def publish(posts: Iterable[Post]) -> list[PublishedPost]:
    """Drop drafts and order the rest newest first."""
    return sequence([PublishedPost(post) for post in posts if not post.draft])
