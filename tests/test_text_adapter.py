"""Tests for the parse boundary: coercion, line endings, line splitting."""

import pytest

from core.errors import BlockEditorError, InvalidInputError
from editor.utils.text_adapter import (
    coerce_text,
    normalize_line_endings,
    prepare_text,
    read_text_file,
    split_lines,
)


class TestCoerceText:
    def test_str_passes_through(self):
        assert coerce_text("héllo") == "héllo"

    def test_bytes_decoded_as_utf8(self):
        assert coerce_text("héllo".encode("utf-8")) == "héllo"
        assert coerce_text(bytearray(b"abc")) == "abc"

    def test_bom_dropped(self):
        assert coerce_text("\ufeff# Title") == "# Title"
        assert coerce_text(b"\xef\xbb\xbf# Title") == "# Title"

    def test_invalid_utf8_rejected(self):
        with pytest.raises(InvalidInputError):
            coerce_text(b"\xff\xfe\xfa")

    def test_non_text_type_rejected(self):
        with pytest.raises(InvalidInputError, match="int"):
            coerce_text(42)
        with pytest.raises(InvalidInputError):
            coerce_text(None)

    def test_nul_characters_rejected(self):
        with pytest.raises(InvalidInputError):
            coerce_text("abc\x00def")
        with pytest.raises(InvalidInputError):
            coerce_text(b"\x00\x01\x02")

    def test_error_hierarchy(self):
        with pytest.raises(BlockEditorError):
            coerce_text(3.5)
        with pytest.raises(ValueError):
            coerce_text(3.5)


class TestLines:
    def test_normalize_line_endings(self):
        assert normalize_line_endings("a\r\nb\rc\n") == "a\nb\nc\n"

    def test_split_keeps_terminators(self):
        assert split_lines("a\nb") == ["a\n", "b"]
        assert split_lines("a\n") == ["a\n"]
        assert split_lines("a\n\n") == ["a\n", "\n"]

    def test_split_empty(self):
        assert split_lines("") == []

    def test_split_only_on_newline(self):
        # Form feed and unicode line separators stay inside the line
        assert split_lines("a\x0cb c\n") == ["a\x0cb c\n"]

    def test_prepare_text(self):
        assert prepare_text(b"x\r\ny") == "x\ny"


class TestReadTextFile:
    def test_reads_and_normalizes(self, tmp_path):
        path = tmp_path / "doc.md"
        path.write_bytes(b"# T\r\n\r\nbody\r\n")
        assert read_text_file(path) == "# T\n\nbody\n"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_text_file(tmp_path / "nope.md")

    def test_binary_file_rejected(self, tmp_path):
        path = tmp_path / "image.png"
        path.write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00")
        with pytest.raises(InvalidInputError):
            read_text_file(path)
