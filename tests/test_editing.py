import pytest

from writeonly.engine.editing import (
    ENTER_KEY,
    INDENT,
    TAB_KEY,
    Splice,
    apply_key,
    clamp_selection,
    parse_list_item,
)


def test_enter_continues_unordered_list():
    result = apply_key("- item", 6, 6, ENTER_KEY)
    assert result.handled
    assert result.text == "- item\n- "
    assert result.sel_start == result.sel_end == len("- item\n- ")


def test_enter_continues_star_list():
    result = apply_key("* item", 6, 6, ENTER_KEY)
    assert result.text == "* item\n* "


def test_enter_increments_ordered_marker():
    result = apply_key("1. item", 7, 7, ENTER_KEY)
    assert result.text == "1. item\n2. "
    assert result.sel_start == len(result.text)


def test_enter_keeps_indentation():
    result = apply_key("    - nested", 12, 12, ENTER_KEY)
    assert result.text == "    - nested\n    - "


def test_enter_on_empty_item_exits_list():
    result = apply_key("- a\n- ", 6, 6, ENTER_KEY)
    assert result.handled
    assert result.text == "- a\n\n"
    assert result.sel_start == result.sel_end == 5


@pytest.mark.parametrize("line", ["-", "- ", "1.", "3. ", "  -   "])
def test_bare_markers_exit_list(line):
    result = apply_key(line, len(line), len(line), ENTER_KEY)
    assert result.handled
    assert result.text == "\n"
    assert result.sel_start == 1


def test_enter_replaces_selection():
    result = apply_key("- abcdef", 3, 6, ENTER_KEY)
    assert result.text == "- a\n- ef"
    assert result.sel_start == 6


def test_enter_only_looks_before_cursor():
    # The line up to the cursor is "- one"; the rest moves to the new item.
    result = apply_key("- one two", 5, 5, ENTER_KEY)
    assert result.text == "- one\n-  two"


def test_enter_on_plain_line_is_not_handled():
    result = apply_key("hello", 5, 5, ENTER_KEY)
    assert not result.handled
    assert result.text == "hello"
    assert result.splice is None


def test_enter_on_dash_without_space_is_not_a_list():
    assert not apply_key("-x", 2, 2, ENTER_KEY).handled


def test_tab_inserts_indent():
    result = apply_key("ab", 1, 1, TAB_KEY)
    assert result.text == "a" + INDENT + "b"
    assert result.sel_start == result.sel_end == 5


def test_tab_replaces_selection():
    result = apply_key("abcd", 1, 3, TAB_KEY)
    assert result.text == "a    d"
    assert result.splice == Splice(1, 3, INDENT)


@pytest.mark.parametrize("key", ["a", "Escape", "Backspace", ""])
def test_other_keys_are_not_handled(key):
    result = apply_key("- item", 6, 6, key)
    assert not result.handled
    assert result.text == "- item"


def test_splice_reproduces_result():
    text = "1. first"
    result = apply_key(text, len(text), len(text), ENTER_KEY)
    assert result.splice.apply(text) == result.text


def test_selection_is_clamped():
    assert clamp_selection("abc", -5, 10) == (0, 3)
    assert clamp_selection("abc", 2, 1) == (1, 2)
    result = apply_key("- x", 99, 99, ENTER_KEY)
    assert result.text == "- x\n- "


def test_parse_list_item():
    item = parse_list_item("  7. seven")
    assert item.ordered
    assert item.indent == "  "
    assert item.next_marker() == "8."
    assert parse_list_item("plain") is None
