"""Tests for EditorSession: loading, editing and bulk action flows."""

import pytest

from core.blocks.models import BlockType
from core.errors import BlockNotFoundError, InvalidInputError
from editor.selection.keymap import event_from_key
from editor.selection.models import SelectionMode
from editor.session import EditorConfig, EditorSession


class TestLoad:
    def test_load_result(self, session):
        result = session.load("# Title\n\npara one\n\n| a | b |\n|---|---|\n| 1 |")

        assert result.block_count == 3
        assert result.malformed_count == 1
        assert result.stats.by_type["heading"] == 1
        assert result.line_count == 7
        assert result.revision == session.document.revision
        assert "Blocks:    3" in result.summary()

    def test_invalid_input_keeps_previous_document(self, session, abcd):
        session.selection.select_all()
        revision = session.document.revision

        with pytest.raises(InvalidInputError):
            session.load(b"\xff\xfe\x00")

        assert session.document.ids() == abcd
        assert session.document.revision == revision
        assert session.state.mode == SelectionMode.MULTI

    def test_load_file(self, session, tmp_path):
        path = tmp_path / "notes.md"
        path.write_text("# Notes\r\n\r\nbody\r\n", encoding="utf-8")

        result = session.load_file(path)
        assert result.source == str(path)
        assert [b.type for b in session.blocks] == [BlockType.HEADING, BlockType.PARAGRAPH]

    def test_load_missing_file(self, session, tmp_path):
        with pytest.raises(FileNotFoundError):
            session.load_file(tmp_path / "missing.md")

    def test_reload_gives_fresh_ids(self, session, abcd):
        session.load("X")
        assert session.document.ids() == ["block-5"]

    def test_config_flows_to_parser_and_dispatcher(self):
        session = EditorSession(EditorConfig(list_indent_width=4, reject_stale_snapshots=True))
        session.load("- a\n    - b")

        assert session.blocks[0].structured_data.items[1].depth == 1
        assert session.dispatcher.reject_stale_snapshots
        session.close()

    def test_sessions_do_not_share_state(self):
        first = EditorSession()
        second = EditorSession()
        first.load("a\n\nb")

        assert len(second.document) == 0
        second.load("c")
        assert second.document.ids() == ["block-1"]


class TestEditBlock:
    def test_single_block_replaced_in_place(self, session, abcd):
        a, b, c, d = abcd
        result = session.edit_block(b, "## New heading")

        assert [blk.id for blk in result] == [b]
        block = session.document.get(b)
        assert block.type == BlockType.HEADING
        assert block.level == 2
        assert block.revision == 1
        assert session.document.ids() == abcd

    def test_split_into_several(self, session, abcd):
        a, b, c, d = abcd
        result = session.edit_block(b, "first\n\nsecond")

        ids = session.document.ids()
        assert ids[:2] == [a, b]
        assert ids[2] == result[1].id
        assert [blk.text for blk in session.blocks] == ["A", "first", "second", "C", "D"]

    def test_blank_text_removes_block(self, session, abcd):
        a, b, c, d = abcd
        session.selection.plain_click(b)

        assert session.edit_block(b, "   \n") == []
        assert session.document.ids() == [a, c, d]
        assert session.state.is_empty

    def test_unknown_block(self, session, abcd):
        with pytest.raises(BlockNotFoundError):
            session.edit_block("ghost", "text")

    def test_edit_keeps_selection(self, session, abcd):
        a, b, c, d = abcd
        before = session.selection.plain_click(b)
        session.edit_block(b, "changed")
        assert session.state == before


class TestInsertParagraph:
    def test_insert_after_selects_new_block(self, session, abcd):
        a, b, c, d = abcd
        block = session.insert_paragraph_after(b, "inserted")

        assert session.document.index_of(block.id) == 2
        assert block.type == BlockType.PARAGRAPH
        assert session.state.selected_ids == {block.id}
        assert session.state.mode == SelectionMode.SINGLE

    def test_insert_at_start(self, session, abcd):
        block = session.insert_paragraph_after(None, "top")
        assert session.document.ids()[0] == block.id

    def test_empty_paragraph(self, session, abcd):
        block = session.insert_paragraph_after(abcd[-1])
        assert block.type == BlockType.PARAGRAPH
        assert block.text == ""

    def test_unknown_anchor(self, session, abcd):
        with pytest.raises(BlockNotFoundError):
            session.insert_paragraph_after("ghost", "x")


class TestBulkFlows:
    def test_duplicate_keeps_selection_on_originals(self, session, abcd):
        a, b, c, d = abcd
        session.selection.plain_click(b)
        state = session.handle(event_from_key("d", ctrl=True))

        assert state.selected_ids == {b}
        assert [blk.text for blk in session.blocks] == ["A", "B", "B", "C", "D"]

    def test_merge_selects_merged_block(self, session, abcd):
        a, b, c, d = abcd
        session.selection.range_click(b)
        session.selection.range_click(c)
        state = session.selection.merge_selected()

        assert state.mode == SelectionMode.SINGLE
        (merged_id,) = state.selected_ids
        assert session.document.get(merged_id).text == "B\nC"
        assert session.document.ids() == [a, merged_id, d]

    def test_merge_empty_paragraphs(self, session):
        session.load("A")
        first = session.insert_paragraph_after(None)
        second = session.insert_paragraph_after(None)
        session.selection.plain_click(first.id)
        session.selection.toggle_click(second.id)

        state = session.handle(event_from_key("m", ctrl=True, shift=True))

        (merged_id,) = state.selected_ids
        assert session.document.ids() == [merged_id, "block-1"]
        assert session.document.get(merged_id).text == ""

    def test_merge_single_block_is_noop(self, session, abcd):
        a, b, c, d = abcd
        before = session.selection.plain_click(b)
        assert session.selection.merge_selected() == before
        assert len(session.document) == 4


class TestMarkdown:
    def test_round_trip(self, session):
        text = "# T\n\nbody text\n\n```\ncode\n```\n"
        session.load(text)
        assert session.to_markdown() == text

    def test_after_insert(self, session):
        session.load("a\n\nb")
        first = session.document.ids()[0]
        session.insert_paragraph_after(first, "new")
        assert session.to_markdown() == "a\n\nnew\n\nb"
