"""Tests for the canonical Markdown formatter."""

from __future__ import annotations

import pytest

from sitegate.config.models import FormatterConfig
from sitegate.errors import MalformedDocumentError
from sitegate.formatter.markdown import format_markdown, validate_markdown


# ── Headings ─────────────────────────────────────────────────────────


class TestHeadings:
    def test_collapses_space_after_hashes(self):
        assert format_markdown("#   Title\n") == "# Title\n"

    def test_removes_closing_sequence(self):
        assert format_markdown("## Setup ##\n") == "## Setup\n"

    def test_trailing_hash_inside_word_kept(self):
        assert format_markdown("# C#\n") == "# C#\n"

    def test_hashtag_is_not_a_heading(self):
        assert format_markdown("#hashtag\n") == "#hashtag\n"

    def test_empty_heading(self):
        assert format_markdown("###   ###\n") == "###\n"

    def test_seven_hashes_untouched(self):
        assert format_markdown("####### nope\n") == "####### nope\n"


# ── Lists ────────────────────────────────────────────────────────────


class TestLists:
    def test_star_and_plus_become_dash(self):
        assert format_markdown("* a\n+ b\n- c\n") == "- a\n- b\n- c\n"

    def test_configured_marker(self):
        cfg = FormatterConfig(list_marker="*")
        assert format_markdown("- a\n+ b\n", cfg) == "* a\n* b\n"

    def test_thematic_break_untouched(self):
        assert format_markdown("a\n\n* * *\n\nb\n") == "a\n\n* * *\n\nb\n"

    def test_nested_bullets_in_list(self):
        assert format_markdown("- a\n    * b\n") == "- a\n    - b\n"

    def test_indented_code_block_not_treated_as_list(self):
        text = "para\n\n    * not a list\n"
        assert format_markdown(text) == text

    def test_emphasis_at_line_start_untouched(self):
        assert format_markdown("*emphasis* here\n") == "*emphasis* here\n"


# ── Whitespace ───────────────────────────────────────────────────────


class TestWhitespace:
    def test_strips_trailing_whitespace(self):
        assert format_markdown("a \t\nb\n") == "a\nb\n"

    def test_collapses_blank_runs(self):
        assert format_markdown("a\n\n\n\nb\n") == "a\n\nb\n"

    def test_max_blank_lines_config(self):
        cfg = FormatterConfig(max_blank_lines=2)
        assert format_markdown("a\n\n\n\n\nb\n", cfg) == "a\n\n\nb\n"

    def test_removes_leading_blank_lines(self):
        assert format_markdown("\n\n# T\n") == "# T\n"

    def test_single_trailing_newline_added(self):
        assert format_markdown("text") == "text\n"

    def test_extra_trailing_newlines_removed(self):
        assert format_markdown("text\n\n\n") == "text\n"

    def test_empty_document_stays_empty(self):
        assert format_markdown("") == ""
        assert format_markdown("\n\n  \n") == ""

    def test_hard_break_kept_as_two_spaces(self):
        assert format_markdown("line one    \nline two\n") == "line one  \nline two\n"

    def test_hard_break_before_blank_line_stripped(self):
        assert format_markdown("line one   \n\nnext\n") == "line one\n\nnext\n"

    def test_crlf_input_normalized(self):
        assert format_markdown("a\r\nb\r\n") == "a\nb\n"

    def test_crlf_output(self):
        cfg = FormatterConfig(line_ending="crlf")
        assert format_markdown("a\nb\n", cfg) == "a\r\nb\r\n"


# ── Protected regions ────────────────────────────────────────────────


class TestFencedCode:
    def test_fence_content_untouched(self):
        text = "```py\nx = 1   \n\n\n\n* y\n# not a heading\n```\n"
        assert format_markdown(text) == text

    def test_tilde_fence(self):
        text = "~~~\n+ keep\n~~~\n"
        assert format_markdown(text) == text

    def test_longer_fence_needs_longer_close(self):
        text = "````\n```\n* inside\n````\n"
        assert format_markdown(text) == text

    def test_unclosed_fence_is_malformed(self):
        with pytest.raises(MalformedDocumentError) as exc_info:
            format_markdown("text\n```\ncode\n", path="docs/a.md")
        assert exc_info.value.line == 2
        assert exc_info.value.path == "docs/a.md"
        assert "never closed" in str(exc_info.value)

    def test_fence_indented_four_spaces_is_indented_code(self):
        text = "Example:\n\n    ```\n    not a fence here, indented code\n"
        validate_markdown(text)
        assert format_markdown(text) == text

    def test_fence_inside_list_item(self):
        text = "- step\n\n    ```\n    * keep\n    ```\n"
        assert format_markdown(text) == text

    def test_inline_backticks_are_not_a_fence(self):
        text = "```not a fence``` really\n"
        assert format_markdown(text) == text


class TestFrontMatter:
    def test_front_matter_preserved(self):
        text = "---\ntitle: Home\ntags:\n- a\n- b\n---\n# Home\n"
        assert format_markdown(text, FormatterConfig(list_marker="*")) == text

    def test_front_matter_trailing_whitespace_stripped(self):
        assert format_markdown("---\ntitle: x   \n---\nbody\n") == "---\ntitle: x\n---\nbody\n"

    def test_invalid_yaml_is_malformed(self):
        with pytest.raises(MalformedDocumentError, match="not valid YAML"):
            format_markdown("---\ntitle: [unclosed\n---\nbody\n")

    def test_non_mapping_is_malformed(self):
        with pytest.raises(MalformedDocumentError, match="must be a mapping"):
            format_markdown("---\n- a\n- b\n---\nbody\n")

    def test_unclosed_leading_rule_is_not_front_matter(self):
        assert format_markdown("---\nbody\n") == "---\nbody\n"


# ── Properties ───────────────────────────────────────────────────────


MESSY = (
    "\n\n"
    "#Not heading\n"
    "##   Install   ##\n"
    "*   first item\n"
    "+ second item\n"
    "    * nested\n"
    "\n\n"
    "Some text with a hard break   \n"
    "next line.\n"
    "\n"
    "```sh\n"
    "npm install    \n"
    "\n\n"
    "```\n"
    "~~~\n"
    "unchanged   \n"
    "~~~\n"
    "\n\n\n"
    "* * *\n"
)


def test_idempotent():
    once = format_markdown(MESSY)
    assert format_markdown(once) == once


def test_idempotent_with_custom_config():
    cfg = FormatterConfig(max_blank_lines=2, list_marker="+", line_ending="crlf")
    once = format_markdown(MESSY, cfg)
    assert format_markdown(once, cfg) == once


def test_formatted_output_still_valid():
    validate_markdown(MESSY)
    validate_markdown(format_markdown(MESSY))


def test_messy_sample_expected_output():
    assert format_markdown(MESSY) == (
        "#Not heading\n"
        "## Install\n"
        "-   first item\n"
        "- second item\n"
        "    - nested\n"
        "\n"
        "Some text with a hard break  \n"
        "next line.\n"
        "\n"
        "```sh\n"
        "npm install    \n"
        "\n"
        "\n"
        "```\n"
        "~~~\n"
        "unchanged   \n"
        "~~~\n"
        "\n"
        "* * *\n"
    )
