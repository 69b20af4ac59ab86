"""
Unit tests for the semantic block pre-processor.
"""

import pytest

from mdcompose.blocks import _seal_blank_lines, container_class, preprocess
from mdcompose.markdown import ParseState


def _identity(text):
    return text


def _pipeline(parser, source):
    """Pre-process and parse the way the renderer does."""
    state = ParseState()
    prepared = preprocess(source, lambda text: parser.parse_fragment(text, state))
    return parser.parse(prepared, state), state


class TestContainerClass:
    """Test vocabulary matching on tag attributes."""

    @pytest.mark.parametrize(
        "attrs,expected",
        [
            (' class="theory"', "theory"),
            (" class='solution'", "solution"),
            (' id="x" class="wide proof"', "proof"),
            (' class="unknown"', None),
            (' id="theory"', None),
        ],
    )
    def test_matching(self, attrs, expected):
        assert container_class(attrs) == expected


class TestPreprocess:
    """Test container body handling."""

    def test_container_body_is_parsed(self, parser):
        """Markdown inside a known container is rendered."""
        html, _ = _pipeline(parser, '<div class="theory">\n**Definition** of _linear_\n</div>')

        assert '<div class="theory">' in html
        assert "<strong>Definition</strong>" in html
        assert "<em>linear</em>" in html
        assert "**" not in html

    def test_container_with_blank_lines_stays_one_block(self, parser):
        """Paragraph breaks inside a container do not leak out of it."""
        source = '<div class="solution">\nfirst paragraph\n\nsecond **bold**\n</div>\n\nafter'
        html, _ = _pipeline(parser, source)

        assert "<strong>bold</strong>" in html
        assert html.index("second") < html.index("</div>") < html.index("after")
        assert "<p>after</p>" in html

    def test_unknown_class_is_untouched(self):
        """Containers outside the vocabulary are passed through verbatim."""
        source = '<div class="banner">**x**</div>'
        assert preprocess(source, _identity) == source

    def test_unclosed_container_is_literal_text(self, parser):
        """An opener without a close tag is shown, not interpreted."""
        html, _ = _pipeline(parser, '<div class="theory">\nbody text')

        assert '<div class="theory">' not in html
        assert "&lt;div class=" in html
        assert "body text" in html

    def test_inline_span_escapes_survive(self, parser):
        """Escaped emphasis markers inside the inline container stay literal."""
        source = '<span class="important">\\*literal\\* and 2\\_x\\_</span>'
        html, _ = _pipeline(parser, source)

        assert "<em>" not in html
        assert "*literal*" in html
        assert "2_x_" in html

    def test_inline_span_body_is_left_to_main_pass(self):
        seen = []

        def record(text):
            seen.append(text)
            return text

        source = 'a <span class="important">  **b**  </span> c'
        assert preprocess(source, record) == 'a <span class="important">**b**</span> c'
        assert seen == []

    def test_inline_important_span(self, parser):
        """The inline container keeps its span and renders its body inline."""
        html, _ = _pipeline(parser, 'Note: <span class="important">**check units**</span> here')

        assert '<span class="important"><strong>check units</strong></span>' in html
        assert "<p>Note:" in html

    def test_first_close_tag_ends_container(self):
        """Only one nesting level is processed."""
        seen = []

        def record(text):
            seen.append(text)
            return text

        preprocess('<div class="theory">a<div class="proof">b</div>c</div>', record)
        assert seen == ['a<div class="proof">b']

    def test_container_headings_get_ids(self, parser):
        """Headings inside a container are anchored and listed in document order."""
        html, state = _pipeline(parser, '<div class="example">\n## Inner\n</div>\n\n# Outer')

        assert 'id="inner-1"' in html
        assert [h.id for h in state.headings] == ["inner-1", "outer-2"]


class TestSealBlankLines:
    """Test blank-line sealing of pre-rendered container bodies."""

    def test_blank_line_folded(self):
        assert _seal_blank_lines("a\n\nb") == "a\n&#10;b"

    def test_no_blank_lines(self):
        assert _seal_blank_lines("<p>a</p>\n<p>b</p>") == "<p>a</p>\n<p>b</p>"
