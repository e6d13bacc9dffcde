"""
Text adapter for the parsing pipeline.

The parse boundary: accepts whatever the editor surface or loader hands
over, rejects anything that is not text, and normalises line endings
so the segmenter only ever sees ``\\n``-terminated lines.
"""

import logging
import re
from pathlib import Path
from typing import List, Union

from core.errors import InvalidInputError

logger = logging.getLogger(__name__)

TextSource = Union[str, bytes, bytearray]

_RE_LINE_ENDINGS = re.compile(r"\r\n?")
_UTF8_BOM = "\ufeff"


def coerce_text(value: TextSource) -> str:
    """
    Turn *value* into a ``str`` or reject it.

    ``str`` passes through; ``bytes`` / ``bytearray`` are decoded as
    UTF-8 (a leading BOM is dropped).

    Raises:
        InvalidInputError: For any other type, undecodable bytes, or
            text containing NUL characters (binary content).
    """
    if isinstance(value, (bytes, bytearray)):
        try:
            text = bytes(value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidInputError(f"Input is not valid UTF-8: {e}") from e
    elif isinstance(value, str):
        text = value
    else:
        raise InvalidInputError(
            f"Expected text, got {type(value).__name__}"
        )

    if "\x00" in text:
        raise InvalidInputError("Input contains NUL characters (binary content?)")

    if text.startswith(_UTF8_BOM):
        text = text[1:]
    return text


def normalize_line_endings(text: str) -> str:
    """Convert ``\\r\\n`` and lone ``\\r`` to ``\\n``."""
    return _RE_LINE_ENDINGS.sub("\n", text)


def split_lines(text: str) -> List[str]:
    """
    Split normalised text into lines, keeping the ``\\n`` terminators.

    Only ``\\n`` breaks a line (unlike ``str.splitlines``, which also
    splits on form feeds and Unicode separators).  The last line has no
    terminator when the text does not end with a newline.
    """
    if not text:
        return []
    lines = text.split("\n")
    result = [line + "\n" for line in lines[:-1]]
    if lines[-1]:
        result.append(lines[-1])
    return result


def prepare_text(value: TextSource) -> str:
    """Coerce and normalise in one step (the full parse boundary)."""
    return normalize_line_endings(coerce_text(value))


def read_text_file(path: Union[str, Path]) -> str:
    """
    Read a markdown file for parsing.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidInputError: If the file is not UTF-8 text.
    """
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"No such file: {p}")

    data = p.read_bytes()
    logger.debug("Read %d bytes from %s", len(data), p)
    return prepare_text(data)
