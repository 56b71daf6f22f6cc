from __future__ import annotations

import datetime as dt
import html
import json
from xml.sax.saxutils import escape as xml_escape

from .config import SiteConfig
from .content import PublishedPost, TaxonomyTerm
from .plan import (
    FeedDocument,
    IndexPage,
    PostPage,
    SitePlan,
    TaxonomyDetailPage,
    TaxonomyOverviewPage,
    index_path,
    post_path,
)
from .render import render_template
from .utils import rfc822_date

STYLESHEET_PATH = "assets/styles.css"
PYGMENTS_CSS_PATH = "assets/pygments.css"
XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_xml(value: str) -> str:
    return xml_escape(value or "", XML_ENTITIES)


def cdata(value: str) -> str:
    return "<![CDATA[" + (value or "").replace("]]>", "]]]]><![CDATA[>") + "]]>"


def render_layout(
    template: str,
    config: SiteConfig,
    *,
    title: str,
    content: str,
    description: str = "",
    canonical: str = "",
    page_heading: str = "",
) -> str:
    if not title:
        full_title = config.site_name
    elif title == config.site_name or title.endswith(f" · {config.site_name}"):
        full_title = title
    else:
        full_title = f"{title} · {config.site_name}"
    return render_template(
        template,
        title=html.escape(full_title),
        description=html.escape(description or config.site_description),
        canonical_link=f'<link rel="canonical" href="{html.escape(canonical)}" />' if canonical else "",
        language=html.escape(config.language),
        site_name=html.escape(config.site_name),
        feed_href=config.url(config.feed_path),
        stylesheet_href=config.url(STYLESHEET_PATH),
        pygments_href=config.url(PYGMENTS_CSS_PATH),
        home_href=config.url(),
        tags_href=config.url("tags/"),
        categories_href=config.url("categories/"),
        page_heading=f'<h1 class="page-title">{html.escape(page_heading)}</h1>' if page_heading else "",
        content=content,
        year=str(dt.date.today().year),
    )


def render_meta_group(label: str, terms: tuple[TaxonomyTerm, ...], directory: str, config: SiteConfig) -> str:
    if not terms:
        return ""
    links = ", ".join(
        f'<a href="{config.url(f"{directory}/{term.slug}/")}">{html.escape(term.name)}</a>' for term in terms
    )
    return f"<span>{label}: {links}</span>"


def render_post_footer(post: PublishedPost, config: SiteConfig) -> str:
    tags = ""
    if post.tags:
        links = " ".join(
            f'<a href="{config.url(f"tags/{tag.slug}/")}">#{html.escape(tag.name)}</a>' for tag in post.tags
        )
        tags = f'<div class="taxonomy-tags"><span>Filed under:</span>{links}</div>'
    categories = ""
    if post.categories:
        links = " ".join(
            f'<a href="{config.url(f"categories/{cat.slug}/")}">{html.escape(cat.name)}</a>'
            for cat in post.categories
        )
        categories = f'<div class="taxonomy-categories"><span>Categories:</span>{links}</div>'
    if not tags and not categories:
        return ""
    return f'<footer class="post-footer">{categories}{tags}</footer>'


def render_post_neighbors(page: PostPage, config: SiteConfig) -> str:
    newer, older = page.links.newer, page.links.older
    if newer is None and older is None:
        return ""
    newer_link = (
        f'<a class="post-nav-link newer" href="{config.url(post_path(newer.slug))}">'
        f"← {html.escape(newer.title)}</a>"
        if newer is not None
        else "<span></span>"
    )
    older_link = (
        f'<a class="post-nav-link older" href="{config.url(post_path(older.slug))}">'
        f"{html.escape(older.title)} →</a>"
        if older is not None
        else "<span></span>"
    )
    return f'<nav class="post-pagination" aria-label="Post pagination">{newer_link}{older_link}</nav>'


def render_post_page(page: PostPage, template: str, config: SiteConfig) -> str:
    post = page.post
    taxonomy_meta = "\n".join(
        group
        for group in (
            render_meta_group("Categories", post.categories, "categories", config),
            render_meta_group("Tags", post.tags, "tags", config),
        )
        if group
    )
    content = (
        '<article class="post">'
        '<header class="post-header">'
        f"<h1>{html.escape(post.title)}</h1>"
        '<div class="post-meta">'
        f'<time datetime="{post.iso_date}">{html.escape(post.formatted_date)}</time>'
        f"{taxonomy_meta}"
        "</div>"
        '<div class="post-formats">'
        f'<a class="format-link" href="{config.url(page.markdown_path)}">Markdown</a>'
        f'<a class="format-link" href="{config.url(page.json_path)}">JSON</a>'
        "</div>"
        "</header>"
        f'<div class="post-content">{post.html}</div>'
        f"{render_post_footer(post, config)}"
        "</article>"
        f"{render_post_neighbors(page, config)}"
    )
    return render_layout(
        template,
        config,
        title=post.title,
        description=post.description,
        canonical=config.absolute_url(page.path),
        content=content,
    )


def render_post_preview(post: PublishedPost, config: SiteConfig) -> str:
    url = config.url(post_path(post.slug))
    tags = post.tags[:3]
    tag_list = ""
    if tags:
        items = "".join(
            f'<li><a href="{config.url(f"tags/{tag.slug}/")}">#{html.escape(tag.name)}</a></li>' for tag in tags
        )
        tag_list = f'<ul class="inline-tags">{items}</ul>'
    return (
        '<article class="post-preview">'
        f'<h2><a href="{url}">{html.escape(post.title)}</a></h2>'
        '<div class="post-preview-meta">'
        f'<time datetime="{post.iso_date}">{html.escape(post.formatted_date)}</time>'
        f"{tag_list}"
        "</div>"
        f"<p>{html.escape(post.excerpt)}</p>"
        '<div class="post-preview-links">'
        f'<a class="button" href="{url}">Read article</a>'
        f'<a class="button secondary" href="{config.url(f"posts/{post.slug}.md")}">Markdown</a>'
        f'<a class="button secondary" href="{config.url(f"posts/{post.slug}.json")}">JSON</a>'
        "</div>"
        "</article>"
    )


def render_pagination(page: IndexPage, config: SiteConfig) -> str:
    current = page.page
    if current.total_pages <= 1:
        return ""
    numbers = []
    for number in range(1, current.total_pages + 1):
        if number == current.number:
            numbers.append(f'<span class="current">{number}</span>')
        else:
            numbers.append(f'<a href="{config.url(index_path(number))}">{number}</a>')
    prev_link = "<span></span>"
    if current.previous_number is not None:
        prev_link = f'<a class="prev" href="{config.url(index_path(current.previous_number))}">Previous</a>'
    next_link = "<span></span>"
    if current.next_number is not None:
        next_link = f'<a class="next" href="{config.url(index_path(current.next_number))}">Next</a>'
    return (
        '<nav class="pagination" aria-label="Pagination">'
        f'{prev_link}<div class="pages">{"".join(numbers)}</div>{next_link}'
        "</nav>"
    )


def render_index_page(page: IndexPage, template: str, config: SiteConfig) -> str:
    number = page.page.number
    if page.is_empty:
        content = f'<p class="empty-state">{html.escape(page.empty_message)}</p>'
    else:
        content = "\n".join(render_post_preview(post, config) for post in page.page.posts)
    return render_layout(
        template,
        config,
        title=config.site_name if number == 1 else f"Page {number} · {config.site_name}",
        description=config.site_description,
        canonical=config.absolute_url(page.path),
        page_heading="Latest Posts" if number == 1 else f"Posts · Page {number}",
        content=f"{content}{render_pagination(page, config)}",
    )


def render_taxonomy_overview(page: TaxonomyOverviewPage, template: str, config: SiteConfig) -> str:
    if page.is_empty:
        content = f'<p class="empty-state">{html.escape(page.empty_message)}</p>'
    else:
        items = []
        for entry in page.entries:
            count = len(entry.posts)
            items.append(
                f'<li><a href="{config.url(entry.path)}">{html.escape(entry.name)}</a>'
                f'<span>{count} post{"" if count == 1 else "s"}</span></li>'
            )
        content = '<ul class="taxonomy-list">' + "\n".join(items) + "</ul>"
    directory = page.path.rstrip("/")
    return render_layout(
        template,
        config,
        title=f"{directory.capitalize()} · {config.site_name}",
        description=config.site_description,
        canonical=config.absolute_url(page.path),
        page_heading=page.title,
        content=content,
    )


def render_taxonomy_detail(page: TaxonomyDetailPage, template: str, config: SiteConfig) -> str:
    entry = page.entry
    heading = f"{entry.kind.capitalize()}: {entry.name}"
    return render_layout(
        template,
        config,
        title=f"{heading} · {config.site_name}",
        description=f"Posts filed under {entry.name}.",
        canonical=config.absolute_url(entry.path),
        page_heading=heading,
        content="\n".join(render_post_preview(post, config) for post in entry.posts),
    )


def post_json(page: PostPage, config: SiteConfig) -> dict:
    post = page.post
    return {
        "title": post.title,
        "slug": post.slug,
        "date": post.iso_date,
        "formattedDate": post.formatted_date,
        "description": post.description,
        "excerpt": post.excerpt,
        "tags": [tag.name for tag in post.tags],
        "categories": [cat.name for cat in post.categories],
        "author": config.author,
        "urls": {
            "html": config.absolute_url(page.path),
            "markdown": config.absolute_url(page.markdown_path),
            "json": config.absolute_url(page.json_path),
        },
        "content": {
            "markdown": post.markdown,
            "html": post.html,
        },
    }


def render_post_json(page: PostPage, config: SiteConfig) -> str:
    return json.dumps(post_json(page, config), indent=2, ensure_ascii=False) + "\n"


def render_feed(feed: FeedDocument, config: SiteConfig) -> str:
    items = []
    for post in feed.posts:
        link = escape_xml(config.absolute_url(post_path(post.slug)))
        items.append(
            "\n".join(
                [
                    "  <item>",
                    f"    <title>{escape_xml(post.title)}</title>",
                    f"    <link>{link}</link>",
                    f"    <guid>{link}</guid>",
                    f"    <pubDate>{rfc822_date(post.date)}</pubDate>",
                    f"    <description>{cdata(post.excerpt)}</description>",
                    f"    <content:encoded>{cdata(post.html)}</content:encoded>",
                    "  </item>",
                ]
            )
        )
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/" '
        'xmlns:atom="http://www.w3.org/2005/Atom">',
        "<channel>",
        f"  <title>{escape_xml(config.site_name)}</title>",
        f"  <link>{escape_xml(config.absolute_url())}</link>",
        f"  <description>{escape_xml(config.site_description)}</description>",
        f"  <language>{escape_xml(config.language)}</language>",
        f'  <atom:link href="{escape_xml(config.absolute_url(feed.path))}" rel="self" '
        'type="application/rss+xml" />',
    ]
    lines.extend(items)
    lines.extend(["</channel>", "</rss>", ""])
    return "\n".join(lines)


def render_site(plan: SitePlan, template: str, config: SiteConfig) -> dict[str, str]:
    """Render every logical page of ``plan``, keyed by identifier."""
    rendered: dict[str, str] = {}
    for page in plan.post_pages:
        rendered[page.path] = render_post_page(page, template, config)
        rendered[page.markdown_path] = page.post.raw
        rendered[page.json_path] = render_post_json(page, config)
    for page in plan.index_pages:
        rendered[page.path] = render_index_page(page, template, config)
    for page in plan.overviews:
        rendered[page.path] = render_taxonomy_overview(page, template, config)
    for page in plan.details:
        rendered[page.path] = render_taxonomy_detail(page, template, config)
    rendered[plan.feed.path] = render_feed(plan.feed, config)
    return rendered
