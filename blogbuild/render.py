from __future__ import annotations

import re
import shutil
from pathlib import Path

import markdown
from pygments.formatters import HtmlFormatter

TAG_RE = re.compile(r"<[^>]*>")
PLACEHOLDER_RE = re.compile(r"{{\s*(\w+)\s*}}")
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc", "codehilite"]
CODEHILITE_CLASS = "codehilite"
DEFAULT_TEMPLATES = Path(__file__).parent / "templates"


def render_markdown(text: str) -> str:
    md = markdown.Markdown(
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs={"codehilite": {"css_class": CODEHILITE_CLASS, "guess_lang": False}},
    )
    return md.convert(text)


def pygments_css(style: str = "default") -> str:
    return HtmlFormatter(style=style).get_style_defs(f".{CODEHILITE_CLASS}")


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def render_template(template: str, **context: str) -> str:
    # Single pass, so placeholders inside substituted content are left alone.
    def repl(match: re.Match) -> str:
        key = match.group(1)
        if key not in context:
            return match.group(0)
        return context[key]

    return PLACEHOLDER_RE.sub(repl, template)


def read_template(templates_dir: Path | None = None, name: str = "base.html") -> str:
    if templates_dir is not None and (templates_dir / name).exists():
        return (templates_dir / name).read_text(encoding="utf-8")
    return (DEFAULT_TEMPLATES / name).read_text(encoding="utf-8")


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def copy_static(static_dir: Path, output_dir: Path) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    for item in static_dir.iterdir():
        dest = output_dir / item.name
        if item.is_dir():
            if dest.exists():
                shutil.rmtree(dest)
            shutil.copytree(item, dest)
        else:
            shutil.copy2(item, dest)
