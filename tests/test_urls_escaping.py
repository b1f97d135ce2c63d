import pytest

from writeonly.engine.escaping import escape, escape_quotes
from writeonly.engine.urls import is_safe_url, sanitize_url


def test_escape_text():
    assert escape("<a href='x'>&</a>") == "&lt;a href='x'&gt;&amp;&lt;/a&gt;"


def test_escape_with_quotes():
    assert escape("\"'<", quote=True) == "&quot;&#039;&lt;"


def test_escape_is_not_idempotent():
    assert escape(escape("&")) == "&amp;amp;"


def test_escape_quotes_only():
    assert escape_quotes("<\"'>") == "<&quot;&#039;>"


@pytest.mark.parametrize(
    "url",
    [
        "/abs",
        "#frag",
        "./rel",
        "../up",
        "http://example.com",
        "https://example.com",
        "mailto:a@b.c",
        "  HTTPS://EXAMPLE.COM",
    ],
)
def test_safe_urls_are_returned_unchanged(url):
    assert sanitize_url(url) == url


@pytest.mark.parametrize(
    "url",
    [
        None,
        "",
        "javascript:alert(1)",
        "JavaScript:alert(1)",
        "vbscript:x",
        "data:text/html,hi",
        "ftp://example.com",
        "&#106;avascript:alert(1)",
        "example.com",
        "//evil.example.com",
        "/\\evil.example.com",
    ],
)
def test_unsafe_urls_are_rejected(url):
    assert sanitize_url(url) is None
    assert not is_safe_url(url)


def test_data_images_need_opt_in():
    url = "data:image/png;base64,AAAA"
    assert sanitize_url(url) is None
    assert sanitize_url(url, allow_data_images=True) == url


def test_data_non_image_rejected_even_with_opt_in():
    assert sanitize_url("data:text/html;base64,AAAA", allow_data_images=True) is None
