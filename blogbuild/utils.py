from __future__ import annotations

import datetime as dt
import re
import shutil
from pathlib import Path
from urllib.parse import urljoin

from .errors import BuildError

MULTI_SLASH_RE = re.compile(r"/{2,}")


def parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y", "on"}
    return False


def ensure_trailing_slash(value: str) -> str:
    value = (value or "").strip()
    if not value:
        return ""
    return value if value.endswith("/") else f"{value}/"


def normalize_base_path(value: str | None) -> str:
    value = (value or "").strip()
    if not value or value == "/":
        return "/"
    if not value.startswith("/"):
        value = f"/{value}"
    if not value.endswith("/"):
        value = f"{value}/"
    return value


def with_base(base_path: str, path: str = "") -> str:
    if not path:
        return base_path
    path = path[1:] if path.startswith("/") else path
    return MULTI_SLASH_RE.sub("/", f"{base_path}{path}")


def canonical_url(site_url: str, base_path: str, path: str = "") -> str:
    """Absolute URL for a site-relative path.

    Without a configured site URL the base-relative path is returned, so
    links stay usable when the site is served from its base path.
    """
    local = with_base(base_path, path) or "/"
    if not local.startswith("/"):
        local = f"/{local}"
    if not site_url:
        return local
    return urljoin(site_url, local)


def to_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def rfc822_date(value: dt.datetime) -> str:
    return to_utc(value).strftime("%a, %d %b %Y %H:%M:%S GMT")


def iso_date(value: dt.datetime) -> str:
    value = to_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S") + f".{value.microsecond // 1000:03d}Z"


def long_date(value: dt.datetime) -> str:
    value = to_utc(value)
    return f"{value:%B} {value.day}, {value.year}"


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise BuildError("Refusing to clean project root.")
    if not output_resolved.is_relative_to(root_resolved):
        raise BuildError("Refusing to clean output directory outside project root.")
    shutil.rmtree(output_dir)
