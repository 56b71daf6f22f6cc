import datetime as dt
import re

import pytest

from blogbuild.content import (
    RawDocument,
    build_post,
    create_excerpt,
    load_posts,
    normalize_taxonomy,
    parse_front_matter,
    parse_post_date,
    publish,
    read_documents,
    slugify,
)
from blogbuild.errors import ValidationError

NOW = dt.datetime(2025, 6, 1, 12, 30, tzinfo=dt.timezone.utc)
SLUG_RE = re.compile(r"[a-z0-9]+(-[a-z0-9]+)*")
SAMPLES = [
    "Hello, World!",
    "Český Krumlov",
    "¡Hola señor!",
    "  --Already-a-slug--  ",
    "C++ & Rust: a comparison",
    "snake_case_name",
    "Ünïcödé ÅÇÇÉÑTS",
    "日本語",
    "!!!",
    "",
    "multiple   spaces\tand\nnewlines",
]


def _doc(text, filename="post.md"):
    return RawDocument(filename, text)


def _build(text, filename="post.md", **kwargs):
    return build_post(_doc(text, filename), now=NOW, **kwargs)


def test_slugify_examples():
    assert slugify("Hello, World!") == "hello-world"
    assert slugify("Český Krumlov") == "cesky-krumlov"
    assert slugify("¡Hola señor!") == "hola-senor"
    assert slugify("snake_case_name") == "snake-case-name"
    assert slugify("!!!") == ""
    assert slugify("") == ""


@pytest.mark.parametrize("text", SAMPLES)
def test_slugify_is_idempotent_and_url_safe(text):
    slug = slugify(text)
    assert slugify(slug) == slug
    assert slug == "" or SLUG_RE.fullmatch(slug)


def test_normalize_taxonomy_accepts_string_and_list():
    assert normalize_taxonomy("go, rust") == ["go", "rust"]
    assert normalize_taxonomy(["Go", " ", "Rust ", "Go"]) == ["Go", "Rust", "Go"]
    assert normalize_taxonomy("a,,b,") == ["a", "b"]
    assert normalize_taxonomy(None) == []
    assert normalize_taxonomy([]) == []


def test_parse_front_matter_without_block_returns_whole_text():
    meta, body = parse_front_matter("# Heading\n\ntext")
    assert meta == {}
    assert body == "# Heading\n\ntext"


def test_parse_front_matter_keeps_dates_as_strings():
    meta, body = parse_front_matter("---\ntitle: Hi\ndate: 2024-03-01\n---\nBody")
    assert meta == {"title": "Hi", "date": "2024-03-01"}
    assert body == "Body"


def test_parse_front_matter_rejects_invalid_yaml():
    with pytest.raises(ValidationError) as excinfo:
        parse_front_matter("---\ntitle: [unclosed\n---\nBody", "broken.md")
    assert "broken.md" in str(excinfo.value)


def test_parse_front_matter_rejects_non_mapping():
    with pytest.raises(ValidationError):
        parse_front_matter("---\n- a\n- b\n---\nBody", "list.md")


def test_build_post_normalizes_comma_separated_tags():
    post = _build('---\ntitle: "Hi"\ntags: "go, rust"\n---\nHello there.')
    assert [tag.name for tag in post.tags] == ["go", "rust"]
    assert [tag.slug for tag in post.tags] == ["go", "rust"]
    assert post.categories == ()


def test_build_post_requires_title():
    with pytest.raises(ValidationError) as excinfo:
        _build("---\ntags: go\n---\nNo title here.", filename="untitled.md")
    assert excinfo.value.source == "untitled.md"
    assert excinfo.value.field == "title"
    assert "untitled.md" in str(excinfo.value)


def test_build_post_rejects_blank_title():
    with pytest.raises(ValidationError):
        _build('---\ntitle: "   "\n---\nBody')


@pytest.mark.parametrize("value", ["not a date", "2024-02-30", "2024-13-01"])
def test_build_post_rejects_invalid_date(value):
    with pytest.raises(ValidationError) as excinfo:
        _build(f"---\ntitle: Hi\ndate: {value}\n---\nBody", filename="dated.md")
    assert excinfo.value.field == "date"


def test_build_post_defaults_date_to_build_time():
    post = _build("---\ntitle: Hi\n---\nBody")
    assert post.date == NOW


def test_parse_post_date_formats():
    utc = dt.timezone.utc
    assert parse_post_date("2024-03-01", "a.md", NOW) == dt.datetime(2024, 3, 1, tzinfo=utc)
    assert parse_post_date("2024-03-01T10:15:00Z", "a.md", NOW) == dt.datetime(2024, 3, 1, 10, 15, tzinfo=utc)
    assert parse_post_date("2024-03-01T10:15:00+02:00", "a.md", NOW) == dt.datetime(
        2024, 3, 1, 8, 15, tzinfo=utc
    )
    assert parse_post_date("Fri, 01 Mar 2024 10:00:00 GMT", "a.md", NOW) == dt.datetime(
        2024, 3, 1, 10, 0, tzinfo=utc
    )
    assert parse_post_date(dt.date(2024, 3, 1), "a.md", NOW) == dt.datetime(2024, 3, 1, tzinfo=utc)
    assert parse_post_date(None, "a.md", NOW) == NOW


def test_build_post_slug_from_field_or_filename():
    assert _build("---\ntitle: Hi\nslug: My Custom Slug\n---\n").slug == "my-custom-slug"
    assert _build("---\ntitle: Hi\n---\n", filename="2024 Trip Report.md").slug == "2024-trip-report"


def test_build_post_derived_fields():
    text = "---\ntitle: Hi\ndate: 2024-03-01\n---\n# Heading\n\nSome *emphasis* &amp; text.\n"
    post = _build(text)
    assert post.excerpt == "Heading Some emphasis & text."
    assert post.description == post.excerpt
    assert post.markdown == "# Heading\n\nSome *emphasis* &amp; text."
    assert post.raw == text
    assert post.iso_date == "2024-03-01T00:00:00.000Z"
    assert post.formatted_date == "March 1, 2024"
    assert post.draft is False


def test_build_post_prefers_summary_then_description():
    post = _build("---\ntitle: Hi\nsummary: Short one\ndescription: Longer one\n---\nBody")
    assert post.excerpt == "Short one"
    assert post.description == "Longer one"
    post = _build("---\ntitle: Hi\ndescription: Only description\n---\nBody")
    assert post.excerpt == "Only description"
    assert post.description == "Only description"


def test_create_excerpt_truncates_with_marker():
    html = "<p>" + "word " * 100 + "</p>"
    excerpt = create_excerpt(html, 20)
    assert excerpt == "word word word word…"
    assert create_excerpt("<p>short</p>", 20) == "short"
    assert create_excerpt("<p>" + "x" * 20 + "</p>", 20) == "x" * 20


def test_build_post_uses_configured_excerpt_length():
    post = _build("---\ntitle: Hi\n---\n" + "abc " * 100, excerpt_length=10)
    assert post.excerpt.endswith("…")
    assert len(post.excerpt) <= 11


def test_build_post_renders_code_with_pygments():
    post = _build("---\ntitle: Code\n---\n```python\nprint('hi')\n```\n")
    assert 'class="codehilite"' in post.html


def test_build_post_draft_flag():
    assert _build("---\ntitle: Hi\ndraft: true\n---\n").draft is True
    assert _build("---\ntitle: Hi\ndraft: no\n---\n").draft is False


def test_publish_drops_drafts_and_sorts_newest_first():
    docs = [
        _doc("---\ntitle: Old\ndate: 2023-01-01\n---\n", "old.md"),
        _doc("---\ntitle: Draft\ndate: 2025-01-01\ndraft: true\n---\n", "draft.md"),
        _doc("---\ntitle: New\ndate: 2024-01-01\n---\n", "new.md"),
    ]
    posts = load_posts(docs, now=NOW)
    assert len(posts) == 3
    assert [post.title for post in publish(posts)] == ["New", "Old"]


def test_load_posts_warns_on_duplicate_slug(capsys):
    docs = [
        _doc("---\ntitle: One\nslug: same\n---\n", "one.md"),
        _doc("---\ntitle: Two\nslug: same\n---\n", "two.md"),
    ]
    posts = load_posts(docs, now=NOW)
    assert [post.slug for post in posts] == ["same", "same"]
    assert "share slug 'same'" in capsys.readouterr().err


def test_load_posts_stops_at_first_invalid_document():
    docs = [
        _doc("---\ntitle: Fine\n---\n", "fine.md"),
        _doc("---\nsummary: nope\n---\n", "broken.md"),
    ]
    with pytest.raises(ValidationError, match="broken.md"):
        load_posts(docs, now=NOW)


def test_read_documents(tmp_path):
    (tmp_path / "b.md").write_text("B", encoding="utf-8")
    (tmp_path / "a.MD").write_text("A", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("skip", encoding="utf-8")
    (tmp_path / "nested").mkdir()
    (tmp_path / "nested" / "c.md").write_text("C", encoding="utf-8")
    docs = read_documents(tmp_path)
    assert [doc.filename for doc in docs] == ["a.MD", "b.md"]
    assert docs[0].text == "A"
    assert read_documents(tmp_path / "missing") == []


def test_read_documents_rejects_undecodable_file(tmp_path):
    (tmp_path / "bad.md").write_bytes(b"---\ntitle: X\n---\n\xff\xfe body")
    with pytest.raises(ValidationError) as excinfo:
        read_documents(tmp_path)
    assert excinfo.value.source == "bad.md"
    assert excinfo.value.field == "encoding"


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024/03/01", dt.datetime(2024, 3, 1)),
        ("2024/03/01 10:15", dt.datetime(2024, 3, 1, 10, 15)),
        ("March 1, 2024", dt.datetime(2024, 3, 1)),
        ("Mar 1, 2024", dt.datetime(2024, 3, 1)),
        ("1 March 2024", dt.datetime(2024, 3, 1)),
    ],
)
def test_parse_post_date_accepts_written_layouts(value, expected):
    assert parse_post_date(value, "a.md", NOW) == expected.replace(tzinfo=dt.timezone.utc)


def test_build_post_accepts_long_form_date():
    post = _build("---\ntitle: Hi\ndate: March 1, 2024\n---\nBody")
    assert post.formatted_date == "March 1, 2024"
