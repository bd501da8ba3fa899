"""
Tests for the directive tokenizer: tag recognition and value boundaries.
"""

import pytest
from doclink.frontend.directive_parser import DirectiveToken


def pairs(tokens):
    return [(t.tag, t.value) for t in tokens]


class TestTags:
    def test_doc_comment_lines(self, directive_parser):
        text = "*\n * @module app\n * @requires lib\n * @export app.js\n "
        assert pairs(directive_parser.parse(text)) == [
            ("module", "app"),
            ("requires", "lib"),
            ("export", "app.js"),
        ]

    def test_tag_after_star_without_space(self, directive_parser):
        assert pairs(directive_parser.parse("*@module x")) == [("module", "x")]

    def test_free_text_is_ignored(self, directive_parser):
        text = "*\n * Helpers for the login form.\n * @module login\n"
        assert pairs(directive_parser.parse(text)) == [("module", "login")]

    def test_email_is_not_a_tag(self, directive_parser):
        text = "* contact admin@example.com\n * @module x"
        assert pairs(directive_parser.parse(text)) == [("module", "x")]

    def test_at_sign_without_identifier(self, directive_parser):
        assert pairs(directive_parser.parse("* @ 1 @module x")) == [("module", "x")]

    def test_hyphenated_tags(self, directive_parser):
        assert pairs(directive_parser.parse("* @my-tag v")) == [("my-tag", "v")]

    def test_empty_text(self, directive_parser):
        assert directive_parser.parse("") == []
        assert directive_parser.parse("\n\n") == []


class TestValues:
    def test_value_stops_at_next_tag(self, directive_parser):
        assert pairs(directive_parser.parse("* @module x @requires y")) == [
            ("module", "x"),
            ("requires", "y"),
        ]

    def test_value_stops_at_end_of_line(self, directive_parser):
        text = "* @requires\n * @module x"
        assert pairs(directive_parser.parse(text)) == [("requires", ""), ("module", "x")]

    def test_values_are_trimmed(self, directive_parser):
        assert pairs(directive_parser.parse("*   @module    spaced name   ")) == [("module", "spaced name")]

    @pytest.mark.parametrize("newline", ["\r\n", "\r"])
    def test_carriage_returns_normalised(self, directive_parser, newline):
        text = f"*{newline} * @module x{newline} * @requires y"
        assert pairs(directive_parser.parse(text)) == [("module", "x"), ("requires", "y")]


class TestPositions:
    def test_line_and_column(self, directive_parser):
        tokens = directive_parser.parse("*\n * @module x\n *   @requires y")
        assert [(t.line, t.column) for t in tokens] == [(2, 4), (3, 6)]

    def test_token_str(self):
        assert str(DirectiveToken("requires", "y", 1, 1)) == "@requires y"
        assert str(DirectiveToken("export", "", 1, 1)) == "@export"
