import pytest

from writeonly.app.sample import SAMPLE_MARKDOWN
from writeonly.engine.parser import (
    CODE_RULES,
    HEADING_RULES,
    MARKUP_RULES,
    PLACEHOLDER_HTML,
    render,
    wrap_paragraphs,
)
from writeonly.engine.rules import find_rule


@pytest.mark.parametrize("text", ["", "   ", "\n\n", "\t \n "])
def test_blank_input_renders_placeholder(text):
    assert render(text) == PLACEHOLDER_HTML


def test_headings_are_not_wrapped_in_paragraphs():
    assert render("# A\n## B") == "<h1>A</h1>\n<h2>B</h2>"


@pytest.mark.parametrize("level", range(1, 7))
def test_each_heading_level(level):
    assert render(f"{'#' * level} Title") == f"<h{level}>Title</h{level}>"


def test_seven_hashes_is_not_a_heading():
    assert render("####### seven") == "<p>####### seven</p>"


def test_heading_needs_a_space():
    assert render("#tag") == "<p>#tag</p>"


def test_heading_rules_run_from_six_down_to_one():
    assert [r.name for r in HEADING_RULES] == [f"heading_{n}" for n in range(6, 0, -1)]


def test_bold_and_italic_side_by_side():
    assert render("**a** and *b*") == "<p><strong>a</strong> and <em>b</em></p>"


def test_underscore_emphasis():
    assert render("__a__ and _b_") == "<p><strong>a</strong> and <em>b</em></p>"


@pytest.mark.parametrize("marker", ["***", "___"])
def test_triple_marker_is_bold_italic(marker):
    assert render(f"{marker}x{marker}") == "<p><strong><em>x</em></strong></p>"


def test_strikethrough():
    assert render("~~gone~~") == "<p><del>gone</del></p>"


def test_blockquote_per_line():
    assert render("> one\n> two") == "<blockquote>one</blockquote>\n<blockquote>two</blockquote>"


@pytest.mark.parametrize("line", ["---", "***", "___"])
def test_horizontal_rule(line):
    assert render(f"a\n\n{line}\n\nb") == "<p>a</p>\n<hr>\n<p>b</p>"


def test_link_gets_target_and_rel():
    assert render("[site](https://example.com)") == (
        '<p><a href="https://example.com" target="_blank" rel="noopener noreferrer">site</a></p>'
    )


def test_link_with_title():
    html = render('[site](https://example.com "Home page")')
    assert '<a href="https://example.com" title="Home page" target="_blank"' in html


@pytest.mark.parametrize("href", ["/docs", "#top", "./page", "../up", "mailto:me@example.com", "HTTP://EXAMPLE.COM"])
def test_safe_link_targets_are_kept(href):
    assert f'href="{href}"' in render(f"[x]({href})")


def test_javascript_link_degrades_to_text():
    assert render("[x](javascript:alert(1))") == "<p>x</p>"


def test_link_target_keeps_balanced_parentheses():
    html = render("[w](https://example.com/wiki/Foo(bar))")
    assert '<a href="https://example.com/wiki/Foo(bar)"' in html
    assert html.endswith(">w</a></p>")


def test_image_source_keeps_balanced_parentheses():
    assert render("![pic](/img/a(1).png)") == '<p><img src="/img/a(1).png" alt="pic"></p>'


def test_text_after_link_survives():
    assert render("[a](/x) tail") == (
        '<p><a href="/x" target="_blank" rel="noopener noreferrer">a</a> tail</p>'
    )


@pytest.mark.parametrize(
    "href",
    [
        "vbscript:msgbox",
        "data:text/html;base64,PHNjcmlwdD4=",
        "data:image/png;base64,AAAA",
        " javascript:alert(1)",
        "&#106;avascript:alert",
        "//evil.example.com/x",
    ],
)
def test_unsafe_link_targets_degrade_to_label(href):
    html = render(f"[label]({href})")
    assert "<a" not in html
    assert "label" in html


def test_attribute_breakout_is_escaped():
    html = render('[a](https://example.com"onmouseover="alert)')
    assert 'onmouseover="' not in html
    assert "&quot;" in html


def test_image():
    assert render("![logo](https://example.com/logo.png)") == (
        '<p><img src="https://example.com/logo.png" alt="logo"></p>'
    )


def test_data_image_is_allowed_for_images_only():
    html = render("![pic](data:image/png;base64,AAAA)")
    assert '<img src="data:image/png;base64,AAAA" alt="pic">' in html


def test_unsafe_image_degrades_to_alt_text():
    html = render("![alt text](javascript:alert(1))")
    assert "<img" not in html
    assert "alt text" in html


def test_image_is_not_read_as_link():
    html = render("![a](https://example.com/a.png)")
    assert "<a " not in html


def test_consecutive_items_form_one_list():
    assert render("- one\n- two") == "<ul><li>one</li>\n<li>two</li></ul>"


def test_star_bullets():
    html = render("* one\n* two")
    assert html.count("<ul>") == 1
    assert html.count("<li>") == 2


def test_ordered_list():
    assert render("1. one\n2. two") == "<ol><li>one</li>\n<li>two</li></ol>"


def test_unordered_and_ordered_runs_do_not_merge():
    assert render("1. a\n- b") == "<ol><li>a</li></ol>\n<ul><li>b</li></ul>"


def test_blank_line_splits_list():
    html = render("- a\n\n- b")
    assert html.count("<ul>") == 2


def test_paragraph_after_list_is_kept_separate():
    assert render("- a\ntext") == "<ul><li>a</li></ul>\n<p>text</p>"


def test_paragraph_lines_are_joined():
    assert render("line one\nline two\n\nnext") == "<p>line one line two</p>\n<p>next</p>"


def test_raw_html_is_escaped():
    assert render("<script>alert(1)</script>") == "<p>&lt;script&gt;alert(1)&lt;/script&gt;</p>"


@pytest.mark.parametrize("text", ["**open", "[broken](", "~~half", "`tick"])
def test_unmatched_markup_stays_literal(text):
    html = render(text)
    assert html.startswith("<p>")
    assert "<strong>" not in html
    assert "<a" not in html


def test_fenced_code_block():
    html = render("```python\nprint('hi')\n```")
    assert html == '<pre><code class="language-python">print(&#039;hi&#039;)</code></pre>'


def test_fenced_code_language_is_alphanumeric():
    html = render("```c_sharp\nx\n```")
    assert 'class="language-csharp"' in html


def test_fenced_code_is_trimmed():
    html = render("```\n\n  code\n\n```")
    assert "<code class=\"language-\">code</code>" in html


def test_fenced_code_content_is_not_reformatted():
    html = render("```\n**not bold** _nor this_ [x](https://example.com)\n```")
    assert "<strong>" not in html
    assert "<em>" not in html
    assert "<a " not in html
    assert "**not bold** _nor this_ [x](https://example.com)" in html


def test_fenced_code_escapes_html_once():
    html = render("```\n<b>&</b>\n```")
    assert "&lt;b&gt;&amp;&lt;/b&gt;" in html


def test_inline_code_is_protected():
    assert render("use `_a_ and **b**` here") == "<p>use <code>_a_ and **b**</code> here</p>"


def test_code_inside_link_label_cannot_break_attribute():
    html = render('![`"x`](https://example.com/a.png)')
    assert 'alt="<code>&quot;x</code>"' in html


def test_unclosed_fence_is_literal():
    assert "<pre>" not in render("```python\nx")


def test_crlf_matches_lf():
    assert render("# A\r\n## B") == render("# A\n## B")


def test_nul_cannot_forge_code_token():
    html = render("a\x00B0\x00b")
    assert "\x00" not in html
    assert "\ufffd" in html


def test_render_is_idempotent():
    assert render(SAMPLE_MARKDOWN) == render(SAMPLE_MARKDOWN)


def test_single_rule_stage():
    strike = find_rule(MARKUP_RULES, "strikethrough")
    assert strike.apply("~~a~~ b") == "<del>a</del> b"


def test_code_rules_order():
    assert [r.name for r in CODE_RULES] == ["fenced_code", "inline_code"]


def test_find_rule_unknown_name():
    with pytest.raises(KeyError):
        find_rule(MARKUP_RULES, "tables")


def test_wrap_paragraphs_passes_block_lines_through():
    assert wrap_paragraphs("a\n<hr>\nb") == "<p>a</p>\n<hr>\n<p>b</p>"
