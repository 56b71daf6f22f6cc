from __future__ import annotations

import argparse
import datetime as dt
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .config import COLLISION_POLICIES, SiteConfig, load_config
from .content import load_posts, publish, read_documents
from .errors import BuildError
from .pages import PYGMENTS_CSS_PATH, STYLESHEET_PATH, render_site
from .plan import SitePlan, plan_site
from .render import copy_static, pygments_css, read_template, write_text
from .utils import clean_output_dir


def output_path(output_dir: Path, identifier: str) -> Path:
    if not identifier or identifier.endswith("/"):
        return output_dir / identifier / "index.html"
    return output_dir / identifier


def prepare_site(config: SiteConfig, now: Optional[dt.datetime] = None) -> tuple[SitePlan, dict[str, str]]:
    """Load, validate, plan and render everything without writing a file."""
    documents = read_documents(config.posts_dir)
    posts = load_posts(documents, now=now, excerpt_length=config.excerpt_length)
    published = publish(posts)
    drafts = len(posts) - len(published)
    print(f"Loaded {len(published)} posts ({drafts} drafts skipped).")
    plan = plan_site(published, config)
    template = read_template(config.templates_dir)
    return plan, render_site(plan, template, config)


def write_site(rendered: dict[str, str], config: SiteConfig, project_root: Path) -> None:
    output_dir = config.output_dir
    if config.clean:
        clean_output_dir(output_dir, project_root)
    output_dir.mkdir(parents=True, exist_ok=True)
    if config.assets_dir.exists():
        copy_static(config.assets_dir, output_dir / "assets")
    stylesheet = output_dir / STYLESHEET_PATH
    if not stylesheet.exists():
        write_text(stylesheet, read_template(name="styles.css"))
    write_text(output_dir / PYGMENTS_CSS_PATH, pygments_css(config.highlight_style))
    for identifier, text in rendered.items():
        write_text(output_path(output_dir, identifier), text)


def build_site(args: argparse.Namespace) -> SiteConfig:
    config = SiteConfig.from_mapping(
        load_config(Path(args.config)),
        site_name=args.site_name,
        site_description=args.site_description,
        site_url=args.site_url,
        base_path=args.base_path,
        posts_per_page=args.posts_per_page,
        feed_path=args.feed_path,
        feed_limit=args.feed_limit,
        excerpt_length=args.excerpt_length,
        taxonomy_collisions=args.taxonomy_collisions,
        highlight_style=args.highlight_style,
        posts_dir=args.posts,
        output_dir=args.output,
        assets_dir=args.assets,
        templates_dir=args.templates,
        clean=args.clean,
    )
    plan, rendered = prepare_site(config)
    write_site(rendered, config, Path.cwd())
    print(f"Wrote {len(rendered)} pages ({len(plan.index_pages)} index, {len(plan.details)} taxonomy).")
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Markdown blog builder.")
    parser.add_argument("--config", default="site.toml", help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--posts", help="Directory containing Markdown posts.")
    parser.add_argument("--output", help="Output directory for the site.")
    parser.add_argument("--assets", help="Directory copied to <output>/assets.")
    parser.add_argument("--templates", help="Directory holding a base.html override.")
    parser.add_argument("--site-name", help="Site title.")
    parser.add_argument("--site-description", help="Site description.")
    parser.add_argument("--site-url", help="Public site URL used for canonical links and the feed.")
    parser.add_argument("--base-path", help="URL path prefix the site is served from.")
    parser.add_argument("--posts-per-page", type=int, help="Number of posts per index page.")
    parser.add_argument("--feed-path", help="Feed location inside the output directory.")
    parser.add_argument("--feed-limit", type=int, help="Maximum number of posts in the feed.")
    parser.add_argument("--excerpt-length", type=int, help="Length of generated excerpts.")
    parser.add_argument(
        "--taxonomy-collisions",
        choices=COLLISION_POLICIES,
        help="What to do when two tag or category names share a slug.",
    )
    parser.add_argument("--highlight-style", help="Pygments style for code blocks.")
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Clean output directory before build.",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    start = time.perf_counter()
    try:
        config = build_site(args)
    except (BuildError, OSError) as exc:
        print(f"Build failed: {exc}", file=sys.stderr)
        sys.exit(1)
    elapsed = time.perf_counter() - start
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"Site generated in: {config.output_dir}")
