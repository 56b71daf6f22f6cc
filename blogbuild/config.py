from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

try:
    import tomllib as toml
except ImportError:
    try:
        import tomli as toml
    except ImportError:  # pragma: no cover - optional dependency
        toml = None

from .errors import ConfigurationError
from .utils import canonical_url, ensure_trailing_slash, normalize_base_path, parse_bool, with_base

POSTS_PER_PAGE = 5
FEED_PATH = "feed.xml"
FEED_LIMIT = 20
EXCERPT_LENGTH = 200
COLLISION_POLICIES = ("first", "warn", "error")


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ConfigurationError(f"Config file {path} is not valid UTF-8") from exc
    if suffix == ".toml":
        if toml is None:
            raise ConfigurationError("TOML config requires tomllib (Python 3.11+) or tomli.")
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            raise ConfigurationError(f"Invalid TOML in config file {path}: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in config file {path}: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid JSON in config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config must be a mapping: {path}")
    return data


def positive_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        number = value
    else:
        try:
            number = int(str(value).strip())
        except ValueError as exc:
            raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc
    if number < 1:
        raise ConfigurationError(f"{name} must be a positive integer, got {number}")
    return number


def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


@dataclass(frozen=True)
class SiteConfig:
    """Build settings, created once per build and passed to each stage."""

    site_name: str = "Markdown Blog"
    site_description: str = ""
    site_url: str = ""
    base_path: str = "/"
    author: Optional[dict] = None
    language: str = "en"
    posts_per_page: int = POSTS_PER_PAGE
    feed_path: str = FEED_PATH
    feed_limit: int = FEED_LIMIT
    excerpt_length: int = EXCERPT_LENGTH
    taxonomy_collisions: str = "first"
    highlight_style: str = "default"
    posts_dir: Path = Path("posts")
    output_dir: Path = Path("docs")
    assets_dir: Path = Path("src/assets")
    templates_dir: Optional[Path] = None
    clean: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "posts_per_page", positive_int("posts_per_page", self.posts_per_page))
        object.__setattr__(self, "feed_limit", positive_int("feed.limit", self.feed_limit))
        object.__setattr__(self, "excerpt_length", positive_int("excerpt_length", self.excerpt_length))
        if self.taxonomy_collisions not in COLLISION_POLICIES:
            raise ConfigurationError(
                f"taxonomy_collisions must be one of {', '.join(COLLISION_POLICIES)}, "
                f"got {self.taxonomy_collisions!r}"
            )
        if not self.feed_path.strip("/"):
            raise ConfigurationError("feed.path must not be empty")
        try:
            get_style_by_name(self.highlight_style)
        except ClassNotFound as exc:
            raise ConfigurationError(f"Unknown highlight_style {self.highlight_style!r}") from exc
        object.__setattr__(self, "feed_path", self.feed_path.lstrip("/"))
        object.__setattr__(self, "site_url", ensure_trailing_slash(self.site_url))
        object.__setattr__(self, "base_path", normalize_base_path(self.base_path))

    @classmethod
    def from_mapping(cls, data: dict, **overrides: Any) -> "SiteConfig":
        """Build a config from a loaded file; overrides that are not None win."""
        feed = data.get("feed") or {}
        if not isinstance(feed, dict):
            raise ConfigurationError("feed must be a mapping with 'path' and 'limit'")
        author = data.get("author")
        if author is not None and not isinstance(author, dict):
            author = {"name": str(author)}
        values: dict[str, Any] = {
            "site_name": _first(data, "site_name", "siteName"),
            "site_description": _first(data, "site_description", "siteDescription"),
            "site_url": _first(data, "site_url", "siteUrl"),
            "base_path": _first(data, "base_path", "basePath"),
            "author": author,
            "language": data.get("language"),
            "posts_per_page": _first(data, "posts_per_page", "postsPerPage"),
            "feed_path": _first(feed, "path") or data.get("feed_path"),
            "feed_limit": _first(feed, "limit") if "limit" in feed else data.get("feed_limit"),
            "excerpt_length": data.get("excerpt_length"),
            "taxonomy_collisions": data.get("taxonomy_collisions"),
            "highlight_style": data.get("highlight_style"),
            "posts_dir": data.get("posts"),
            "output_dir": data.get("output"),
            "assets_dir": data.get("assets"),
            "templates_dir": data.get("templates"),
            "clean": parse_bool(data["clean"]) if data.get("clean") is not None else None,
        }
        for key, value in overrides.items():
            if value is not None:
                values[key] = value
        for key in ("site_name", "site_description", "site_url", "base_path", "language",
                    "feed_path", "taxonomy_collisions", "highlight_style"):
            if values[key] is not None:
                values[key] = str(values[key])
        for key in ("posts_dir", "output_dir", "assets_dir", "templates_dir"):
            if values[key] is not None:
                values[key] = Path(values[key])
        return cls(**{key: value for key, value in values.items() if value is not None})

    def url(self, path: str = "") -> str:
        return with_base(self.base_path, path)

    def absolute_url(self, path: str = "") -> str:
        return canonical_url(self.site_url, self.base_path, path)
