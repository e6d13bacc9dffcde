"""Tests for line segmentation and rule priority."""

from core.blocks.models import BlockType
from editor.parsing.segmenter import (
    Segmenter,
    fence_closes,
    indent_width,
    is_table_row,
    is_table_separator,
    line_kind,
    segment,
)
from editor.utils.text_adapter import split_lines


def spans_of(text):
    return list(segment(split_lines(text)))


def kinds_of(text):
    return [s.kind for s in spans_of(text)]


class TestPredicates:
    def test_table_row(self):
        assert is_table_row("| a | b |")
        assert is_table_row("a | b | c")
        assert is_table_row("|a|")
        assert not is_table_row("a | b")
        assert not is_table_row("no pipes")

    def test_table_separator(self):
        assert is_table_separator("|---|---|")
        assert is_table_separator("| :-- | --: |")
        assert is_table_separator("---|---")
        assert not is_table_separator("| a | b |")

    def test_indent_width(self):
        assert indent_width("    x") == 4
        assert indent_width("\tx") == 4
        assert indent_width("  \tx") == 4
        assert indent_width("\tx", tab_width=8) == 8
        assert indent_width("x") == 0

    def test_fence_closes(self):
        assert fence_closes("```", "```")
        assert fence_closes("`````", "```")
        assert not fence_closes("``", "```")
        assert not fence_closes("~~~", "```")
        assert not fence_closes("```js", "```")


class TestBasicBlocks:
    def test_heading_and_paragraphs(self):
        assert kinds_of("# Title\n\npara one\n\npara two") == [
            BlockType.HEADING,
            BlockType.PARAGRAPH,
            BlockType.PARAGRAPH,
        ]

    def test_heading_needs_space(self):
        assert kinds_of("#hashtag") == [BlockType.PARAGRAPH]
        assert kinds_of("####### seven") == [BlockType.PARAGRAPH]

    def test_horizontal_rules(self):
        assert kinds_of("---\n\n***\n\n___") == [BlockType.HR] * 3

    def test_paragraph_spans_lines(self):
        spans = spans_of("line one\nline two\n\nnext")
        assert [(s.start, s.end) for s in spans] == [(0, 2), (3, 4)]

    def test_blank_lines_skipped(self):
        assert spans_of("\n\n\n") == []
        assert spans_of("") == []


class TestCodeFences:
    def test_fenced_block(self):
        spans = spans_of("```python\nx = 1\n```\nafter")
        assert spans[0].kind == BlockType.CODE
        assert (spans[0].start, spans[0].end) == (0, 3)
        assert not spans[0].unterminated
        assert spans[1].kind == BlockType.PARAGRAPH

    def test_fence_hides_other_markers(self):
        spans = spans_of("```\n# not a heading\n- not a list\n```")
        assert [s.kind for s in spans] == [BlockType.CODE]

    def test_tilde_fence_not_closed_by_backticks(self):
        spans = spans_of("~~~\n```\n~~~")
        assert len(spans) == 1
        assert spans[0].end == 3

    def test_unterminated_runs_to_eof(self):
        spans = spans_of("intro\n\n```js\nlet x = 1\n# still code")
        assert [s.kind for s in spans] == [BlockType.PARAGRAPH, BlockType.CODE]
        assert spans[1].unterminated
        assert spans[1].end == 5


class TestComponents:
    def test_self_closing_single_line(self):
        assert kinds_of('<Card title="x" />') == [BlockType.COMPONENT_EMBED]

    def test_multi_line_self_closing(self):
        spans = spans_of('<Card\n  title="x"\n  size={2}\n/>\n\ntext')
        assert spans[0].kind == BlockType.COMPONENT_EMBED
        assert (spans[0].start, spans[0].end) == (0, 4)
        assert spans[1].kind == BlockType.PARAGRAPH

    def test_paired_tags(self):
        spans = spans_of("<Note>\n# inside\n</Note>")
        assert [s.kind for s in spans] == [BlockType.COMPONENT_EMBED]
        assert spans[0].end == 3

    def test_unclosed_falls_through(self):
        assert kinds_of("<Box>\ntext") == [BlockType.PARAGRAPH]

    def test_lowercase_html_is_still_a_tag(self):
        assert kinds_of("<br/>") == [BlockType.COMPONENT_EMBED]


class TestTables:
    def test_table_needs_separator(self):
        assert kinds_of("| a | b |\n|---|---|\n| 1 | 2 |") == [BlockType.TABLE]
        assert kinds_of("| a | b |\n| 1 | 2 |") == [BlockType.PARAGRAPH]

    def test_table_ends_at_non_row(self):
        spans = spans_of("| a | b |\n|---|---|\n| 1 | 2 |\nplain text")
        assert spans[0].end == 3
        assert spans[1].kind == BlockType.PARAGRAPH

    def test_ragged_rows_stay_in_table(self):
        spans = spans_of("| a | b |\n|---|---|\n| 1 | 2 | 3 |\n| 4 |")
        assert len(spans) == 1
        assert spans[0].end == 4


class TestBlockquotes:
    def test_single_blank_continues(self):
        spans = spans_of("> a\n\n> b")
        assert [s.kind for s in spans] == [BlockType.BLOCKQUOTE]
        assert spans[0].end == 3

    def test_double_blank_splits(self):
        assert kinds_of("> a\n\n\n> b") == [BlockType.BLOCKQUOTE, BlockType.BLOCKQUOTE]

    def test_quote_ends_at_plain_line(self):
        assert kinds_of("> a\nplain") == [BlockType.BLOCKQUOTE, BlockType.PARAGRAPH]


class TestLists:
    def test_list_with_continuation(self):
        spans = spans_of("- a\n- b\n  continued\n\npara")
        assert spans[0].kind == BlockType.LIST
        assert (spans[0].start, spans[0].end) == (0, 3)
        assert spans[1].kind == BlockType.PARAGRAPH

    def test_ordered_list(self):
        assert kinds_of("1. one\n2) two") == [BlockType.LIST]

    def test_heading_ends_list(self):
        assert kinds_of("- a\n# H") == [BlockType.LIST, BlockType.HEADING]

    def test_rule_outranks_list_marker(self):
        assert kinds_of("- - -") == [BlockType.LIST]
        assert kinds_of("---") == [BlockType.HR]


class TestPriority:
    def test_paragraph_interrupted_by_block_start(self):
        assert kinds_of("text\n# H") == [BlockType.PARAGRAPH, BlockType.HEADING]
        assert kinds_of("text\n```\ncode\n```") == [BlockType.PARAGRAPH, BlockType.CODE]
        assert kinds_of("text\n---") == [BlockType.PARAGRAPH, BlockType.HR]

    def test_component_before_heading(self):
        assert kinds_of("<Hero />\n# Title") == [
            BlockType.COMPONENT_EMBED,
            BlockType.HEADING,
        ]


class TestSegmenter:
    def test_restartable(self):
        seg = Segmenter(split_lines("# T\n\nbody\n\n- x"))
        assert list(seg) == list(seg)
        assert len(list(seg)) == 3

    def test_kind_at(self):
        seg = Segmenter(split_lines("# T\n\n- x\nplain"))
        assert seg.kind_at(0) == BlockType.HEADING
        assert seg.kind_at(1) is None
        assert seg.kind_at(2) == BlockType.LIST
        assert seg.kind_at(3) == BlockType.PARAGRAPH
        assert seg.line_count == 4

    def test_line_kind_matches_rules(self):
        lines = split_lines("```\nno close\n> q\n- x\n| a |\n|---|\n<Box>\nplain")
        seg = Segmenter(lines)
        kinds = [line_kind(lines, i) for i in range(len(lines))]
        assert kinds == [
            BlockType.CODE,
            BlockType.PARAGRAPH,
            BlockType.BLOCKQUOTE,
            BlockType.LIST,
            BlockType.TABLE,
            BlockType.PARAGRAPH,
            BlockType.PARAGRAPH,
            BlockType.PARAGRAPH,
        ]
        assert [seg.kind_at(i) for i in range(len(lines))] == kinds
