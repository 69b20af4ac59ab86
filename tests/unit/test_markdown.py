"""
Unit tests for the prose parser adapter and TOC builder.
"""

from mdcompose.markdown import HeadingEntry, ParseState, is_container_block, slugify
from mdcompose.toc import build_toc


class TestSlugify:
    """Test heading slug generation."""

    def test_basic(self):
        assert slugify("Results and Discussion") == "results-and-discussion"

    def test_punctuation_stripped(self):
        assert slugify("1. Intro!") == "1-intro"

    def test_unicode_letters_kept(self):
        assert slugify("מבוא כללי") == "מבוא-כללי"

    def test_empty_falls_back(self):
        assert slugify("???") == "section"


class TestProseParser:
    """Test markdown-it configuration and custom rules."""

    def test_heading_ids_are_unique(self, parser):
        """Repeated heading text still gets distinct anchors."""
        state = ParseState()
        html = parser.parse("# Same\n\n# Same", state)

        ids = [h.id for h in state.headings]
        assert ids == ["same-1", "same-2"]
        for heading_id in ids:
            assert f'id="{heading_id}"' in html

    def test_only_top_levels_collected(self, parser):
        """Level 3+ headings are anchored but not collected."""
        state = ParseState()
        html = parser.parse("# A\n## B\n### C", state)

        assert [h.level for h in state.headings] == [1, 2]
        assert 'id="c-3"' in html

    def test_heading_text_is_rendered_inline(self, parser):
        """Collected text is inline markup, not raw source."""
        state = ParseState()
        parser.parse("## Some *emphasis*", state)
        assert state.headings[0].text == "Some <em>emphasis</em>"

    def test_single_newline_is_line_break(self, parser):
        html = parser.parse("line one\nline two", ParseState())
        assert "<br" in html

    def test_tables_enabled(self, parser):
        html = parser.parse("| a | b |\n|---|---|\n| 1 | 2 |", ParseState())
        assert "<table>" in html
        assert "<td>1</td>" in html

    def test_strikethrough_enabled(self, parser):
        html = parser.parse("~~gone~~", ParseState())
        assert "<s>gone</s>" in html

    def test_task_checkboxes_are_disabled(self, parser):
        """Task list items render as read-only themed checkboxes."""
        html = parser.parse("- [x] done\n- [ ] todo", ParseState())

        assert html.count('class="task-checkbox"') == 2
        assert '<input type="checkbox" class="task-checkbox" disabled checked>' in html
        assert '<input type="checkbox" class="task-checkbox" disabled>' in html

    def test_raw_html_passes_through(self, parser):
        html = parser.parse("a <kbd>Ctrl</kbd> b", ParseState())
        assert "<kbd>Ctrl</kbd>" in html

    def test_fragment_headings_wait_for_main_pass(self, parser):
        """Container headings are queued, then listed once the document is parsed."""
        state = ParseState()
        parser.parse_fragment("# Inside", state)
        assert state.headings == []
        assert state.heading_count == 1
        assert [h.id for h in state.pending_blocks[0]] == ["inside-1"]

        parser.parse("# After", state)

        assert [h.id for h in state.headings] == ["after-2", "inside-1"]
        assert not state.pending_blocks

    def test_container_block_detection(self):
        assert is_container_block('<div class="proof">\n<p>x</p>\n</div>')
        assert not is_container_block('<div class="banner">x</div>')
        assert not is_container_block('<span class="important">x</span>')


class TestBuildToc:
    """Test table-of-contents generation."""

    def test_entries_link_to_body_anchors(self, parser):
        """Every TOC entry points at a heading id present in the body."""
        state = ParseState()
        body = parser.parse("# A\n## B\n# C", state)
        toc = build_toc(state.headings, enabled=True)

        assert [h.level for h in state.headings] == [1, 2, 1]
        assert toc.count("<li") == 3
        for entry in state.headings:
            assert f'href="#{entry.id}"' in toc
            assert f'id="{entry.id}"' in body

    def test_level_classes(self):
        entries = [HeadingEntry("a-1", "A", 1), HeadingEntry("b-2", "B", 2)]
        toc = build_toc(entries, enabled=True)
        assert 'class="toc-level-1"' in toc
        assert 'class="toc-level-2"' in toc

    def test_disabled_is_empty(self):
        assert build_toc([HeadingEntry("a-1", "A", 1)], enabled=False) == ""

    def test_no_headings_is_empty(self):
        assert build_toc([], enabled=True) == ""

    def test_title_follows_direction(self):
        entries = [HeadingEntry("a-1", "A", 1)]
        assert "Contents" in build_toc(entries, True, "ltr")
        assert "תוכן עניינים" in build_toc(entries, True, "rtl")
