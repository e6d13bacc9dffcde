"""
Line-oriented segmentation of markdown text into raw block spans.

The segmenter only decides *where* blocks start and end and what kind
they are; the classifier turns each span into a structured Block.

Rules are tried in a fixed priority order (the ``_RULES`` table), so
every tie-break between competing patterns is explicit:

    fence > component embed > heading > horizontal rule
          > table (row + separator) > blockquote > list > paragraph

Paragraph is the fallback and has no rule of its own.
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from core.blocks.models import BlockType

# ---------------------------------------------------------------------------
# Patterns (matched against stripped lines unless noted)
# ---------------------------------------------------------------------------

_RE_FENCE = re.compile(r"^(`{3,}|~{3,})(.*)$")
_RE_COMPONENT_OPEN = re.compile(r"^<([A-Za-z][\w.]*)(?=[\s/>]|$)")
_RE_HEADING = re.compile(r"^(#{1,6})[ \t]")  # against the lstripped line
_RE_RULE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})$")
_RE_TABLE_SEPARATOR = re.compile(r"^[|\s]*[-:]+[|\s\-:]*$")
_RE_LIST_MARKER = re.compile(r"^([*+-]|\d{1,9}[.)])[ \t]+")  # lstripped line


@dataclass(frozen=True)
class RawSpan:
    """
    Line range of one block.

    ``start``/``end`` are 0-based line offsets, ``end`` exclusive.
    ``unterminated`` is set on code spans whose fence never closed.
    """

    kind: BlockType
    start: int
    end: int
    unterminated: bool = False

    def __repr__(self) -> str:
        tag = " unterminated" if self.unterminated else ""
        return f"RawSpan({self.kind.name}, {self.start}-{self.end}{tag})"


# ---------------------------------------------------------------------------
# Line predicates
# ---------------------------------------------------------------------------


def is_table_row(stripped: str) -> bool:
    """A pipe line that splits into 3+ fields or is wrapped in pipes."""
    if "|" not in stripped:
        return False
    if len(stripped.split("|")) >= 3:
        return True
    return len(stripped) >= 2 and stripped.startswith("|") and stripped.endswith("|")


def is_table_separator(stripped: str) -> bool:
    return bool(_RE_TABLE_SEPARATOR.match(stripped))


def indent_width(line: str, tab_width: int = 4) -> int:
    """Leading whitespace width in columns, tabs expanded."""
    width = 0
    for ch in line:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += tab_width - (width % tab_width)
        else:
            break
    return width


def fence_closes(stripped: str, fence: str) -> bool:
    """True if *stripped* closes a code span opened with *fence*."""
    return (
        len(stripped) >= len(fence)
        and stripped == fence[0] * len(stripped)
    )


# ---------------------------------------------------------------------------
# Rules: (lines, i) → RawSpan starting at i, or None
# ---------------------------------------------------------------------------

Rule = Callable[[Sequence[str], int], Optional[RawSpan]]


def _opens_fence(lines: Sequence[str], i: int) -> bool:
    return _RE_FENCE.match(lines[i].strip()) is not None


def _opens_blockquote(lines: Sequence[str], i: int) -> bool:
    return lines[i].strip().startswith(">")


def _opens_list(lines: Sequence[str], i: int) -> bool:
    return _RE_LIST_MARKER.match(lines[i].lstrip()) is not None


def _match_fence(lines: Sequence[str], i: int) -> Optional[RawSpan]:
    m = _RE_FENCE.match(lines[i].strip())
    if not m:
        return None
    fence = m.group(1)
    for j in range(i + 1, len(lines)):
        if fence_closes(lines[j].strip(), fence):
            return RawSpan(BlockType.CODE, i, j + 1)
    return RawSpan(BlockType.CODE, i, len(lines), unterminated=True)


def _match_component(lines: Sequence[str], i: int) -> Optional[RawSpan]:
    first = lines[i].strip()
    m = _RE_COMPONENT_OPEN.match(first)
    if not m:
        return None

    name = m.group(1)
    closing = f"</{name}>"
    if first.endswith("/>") or closing in first:
        return RawSpan(BlockType.COMPONENT_EMBED, i, i + 1)

    # Opening tag still open → it may end in "/>" (self-closing) or ">"
    # (paired container, then look for the closing tag).
    in_tag = not first.endswith(">")
    for j in range(i + 1, len(lines)):
        t = lines[j].strip()
        if in_tag:
            if not t or t.startswith("<"):
                return None
            if t.endswith("/>"):
                return RawSpan(BlockType.COMPONENT_EMBED, i, j + 1)
            if t.endswith(">"):
                in_tag = False
            continue
        if closing in t:
            return RawSpan(BlockType.COMPONENT_EMBED, i, j + 1)
    return None


def _match_heading(lines: Sequence[str], i: int) -> Optional[RawSpan]:
    if _RE_HEADING.match(lines[i].lstrip()):
        return RawSpan(BlockType.HEADING, i, i + 1)
    return None


def _match_rule(lines: Sequence[str], i: int) -> Optional[RawSpan]:
    if _RE_RULE.match(lines[i].strip()):
        return RawSpan(BlockType.HR, i, i + 1)
    return None


def _match_table(lines: Sequence[str], i: int) -> Optional[RawSpan]:
    if not is_table_row(lines[i].strip()):
        return None
    if i + 1 >= len(lines) or not is_table_separator(lines[i + 1].strip()):
        return None
    j = i + 2
    while j < len(lines) and is_table_row(lines[j].strip()):
        j += 1
    return RawSpan(BlockType.TABLE, i, j)


def _match_blockquote(lines: Sequence[str], i: int) -> Optional[RawSpan]:
    if not _opens_blockquote(lines, i):
        return None
    j = i + 1
    while j < len(lines):
        t = lines[j].strip()
        if t.startswith(">"):
            j += 1
        elif not t and j + 1 < len(lines) and lines[j + 1].strip().startswith(">"):
            # A single blank line followed by another quote line continues
            j += 2
        else:
            break
    return RawSpan(BlockType.BLOCKQUOTE, i, j)


def _match_list(lines: Sequence[str], i: int) -> Optional[RawSpan]:
    if not _opens_list(lines, i):
        return None
    j = i + 1
    while j < len(lines):
        line = lines[j]
        if not line.strip() or _starts_block(lines, j, _OUTRANKS_LIST):
            break
        if _RE_LIST_MARKER.match(line.lstrip()) or indent_width(line) >= 2:
            j += 1
        else:
            break
    return RawSpan(BlockType.LIST, i, j)


_RULES: Tuple[Tuple[BlockType, Rule], ...] = (
    (BlockType.CODE, _match_fence),
    (BlockType.COMPONENT_EMBED, _match_component),
    (BlockType.HEADING, _match_heading),
    (BlockType.HR, _match_rule),
    (BlockType.TABLE, _match_table),
    (BlockType.BLOCKQUOTE, _match_blockquote),
    (BlockType.LIST, _match_list),
)

# Rules that end a list when they match inside it
_OUTRANKS_LIST = tuple(rule for kind, rule in _RULES if kind != BlockType.LIST)
_ALL_RULES = tuple(rule for _, rule in _RULES)

# Rules whose start is decided by the line alone, without measuring the span
_OPENERS: Dict[BlockType, Callable[[Sequence[str], int], bool]] = {
    BlockType.CODE: _opens_fence,
    BlockType.BLOCKQUOTE: _opens_blockquote,
    BlockType.LIST: _opens_list,
}


def _starts_block(lines: Sequence[str], i: int, rules: Tuple[Rule, ...]) -> bool:
    return any(rule(lines, i) is not None for rule in rules)


def line_kind(lines: Sequence[str], i: int) -> Optional[BlockType]:
    """
    Kind of block line *i* would start if a new block began there.

    Returns None for blank lines.  Only decides the kind; the extent of
    the span is not measured.
    """
    if not lines[i].strip():
        return None
    for kind, rule in _RULES:
        opens = _OPENERS.get(kind)
        if opens is not None:
            if opens(lines, i):
                return kind
        elif rule(lines, i) is not None:
            return kind
    return BlockType.PARAGRAPH


def _match_at(lines: Sequence[str], i: int) -> RawSpan:
    for _, rule in _RULES:
        span = rule(lines, i)
        if span is not None:
            return span

    # Paragraph: run until a blank line or a line that starts another block
    j = i + 1
    while j < len(lines) and lines[j].strip() and not _starts_block(lines, j, _ALL_RULES):
        j += 1
    return RawSpan(BlockType.PARAGRAPH, i, j)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


class Segmenter:
    """
    Lazy, restartable sequence of RawSpan over a list of lines.

    Iterating starts a fresh single pass every time, so the same
    Segmenter can be consumed more than once and yields equal spans.
    Blank lines between blocks are skipped, never emitted.
    """

    def __init__(self, lines: Sequence[str]):
        self._lines: List[str] = [line.rstrip("\n") for line in lines]

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def __iter__(self) -> Iterator[RawSpan]:
        lines = self._lines
        i = 0
        while i < len(lines):
            if not lines[i].strip():
                i += 1
                continue
            span = _match_at(lines, i)
            yield span
            i = span.end

    def kind_at(self, index: int) -> Optional[BlockType]:
        """
        Kind of block a line would start if a new block began there.

        Returns None for blank lines.
        """
        return line_kind(self._lines, index)

    def __repr__(self) -> str:
        return f"Segmenter(lines={len(self._lines)})"


def segment(lines: Sequence[str]) -> Segmenter:
    """Segment *lines* (as produced by ``split_lines``) into raw spans."""
    return Segmenter(lines)
