"""
Enriches raw spans into typed Blocks with structured data.

Pipeline position: segmenter → **classifier** → block document.

The classifier never raises on content problems.  Structural defects
(unterminated fences, table rows whose column count disagrees with the
header) are recorded as issues on the Block so the document still
renders with best-effort content.
"""

import json
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from core.blocks.models import (
    Block,
    BlockquoteData,
    BlockType,
    CodeData,
    ComponentData,
    HeadingData,
    ListData,
    ListItem,
    ParagraphData,
    RuleData,
    SourceRange,
    TableData,
    TableRow,
)

from .segmenter import RawSpan, indent_width

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_RE_FENCE_OPEN = re.compile(r"^(`{3,}|~{3,})[ \t]*(.*)$")
_RE_HEADING = re.compile(r"^(#{1,6})(?:[ \t]+(.*))?$")
_RE_CLOSING_HASHES = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
_RE_LIST_ITEM = re.compile(r"^([*+-]|\d{1,9}[.)])[ \t]+(.*)$")
_RE_TASK = re.compile(r"^\[([ xX])\][ \t]+(.*)$")
_RE_COMPONENT_NAME = re.compile(r"^<([A-Za-z][\w.]*)")
_RE_ATTR_NAME = re.compile(r"[A-Za-z_:][\w:.\-]*")

UNTERMINATED_FENCE = "unterminated code fence"


# ---------------------------------------------------------------------------
# Table helpers
# ---------------------------------------------------------------------------


def split_table_row(line: str) -> List[str]:
    """
    Split a table row on unescaped pipes and trim each cell.

    ``\\|`` is kept as a literal pipe inside the cell.  Only the empty
    cells created by a leading or trailing wrapping pipe are dropped;
    empty cells in the middle of a row are real (blank) cells.
    """
    stripped = line.strip()
    cells: List[str] = []
    current: List[str] = []
    i = 0
    while i < len(stripped):
        ch = stripped[i]
        if ch == "\\" and i + 1 < len(stripped) and stripped[i + 1] == "|":
            current.append("|")
            i += 2
            continue
        if ch == "|":
            cells.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    cells.append("".join(current).strip())

    if stripped.startswith("|") and cells and cells[0] == "":
        cells = cells[1:]
    if stripped.endswith("|") and not stripped.endswith("\\|") and cells and cells[-1] == "":
        cells = cells[:-1]
    return cells


def _alignment(cell: str) -> Optional[str]:
    left = cell.startswith(":")
    right = cell.endswith(":")
    if left and right:
        return "center"
    if right:
        return "right"
    if left:
        return "left"
    return None


# ---------------------------------------------------------------------------
# Component helpers
# ---------------------------------------------------------------------------


def _find_tag_end(text: str, start: int) -> int:
    """Index of the ``>`` closing the opening tag (quotes/braces skipped)."""
    quote = ""
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if quote:
            if ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth = max(0, depth - 1)
        elif ch == ">" and depth == 0:
            return i
    return len(text)


def _decode_expression(expr: str) -> Any:
    """``{...}`` attribute values: JSON literal if possible, else raw."""
    try:
        return json.loads(expr)
    except ValueError:
        return expr.strip()


def parse_attributes(tag_body: str) -> Dict[str, Any]:
    """
    Parse JSX-style attributes into a mapping.

    Supports ``key="v"``, ``key='v'``, ``key={expr}``, unquoted
    ``key=v`` and bare boolean ``key``.
    """
    attrs: Dict[str, Any] = {}
    pos = 0
    n = len(tag_body)

    while pos < n:
        m = _RE_ATTR_NAME.match(tag_body, pos)
        if not m:
            pos += 1
            continue
        name = m.group(0)
        pos = m.end()
        while pos < n and tag_body[pos].isspace():
            pos += 1

        if pos >= n or tag_body[pos] != "=":
            attrs[name] = True
            continue

        pos += 1
        while pos < n and tag_body[pos].isspace():
            pos += 1
        if pos >= n:
            attrs[name] = ""
            break

        ch = tag_body[pos]
        if ch in "\"'":
            end = tag_body.find(ch, pos + 1)
            end = n if end == -1 else end
            attrs[name] = tag_body[pos + 1 : end]
            pos = end + 1
        elif ch == "{":
            depth = 0
            end = pos
            while end < n:
                if tag_body[end] == "{":
                    depth += 1
                elif tag_body[end] == "}":
                    depth -= 1
                    if depth == 0:
                        break
                end += 1
            attrs[name] = _decode_expression(tag_body[pos + 1 : end])
            pos = end + 1
        else:
            end = pos
            while end < n and not tag_body[end].isspace():
                end += 1
            attrs[name] = tag_body[pos:end]
            pos = end

    return attrs


# ---------------------------------------------------------------------------
# Per-kind classification
# ---------------------------------------------------------------------------

# Each builder returns (structured_data, level, issues)
_Built = Tuple[Any, Optional[int], List[str]]


def _build_code(span: RawSpan, content: List[str], options: Dict[str, int]) -> _Built:
    m = _RE_FENCE_OPEN.match(content[0].strip())
    fence = m.group(1) if m else "```"
    info = m.group(2).strip() if m else ""
    language = info.split()[0] if info else ""

    body_lines = content[1:] if span.unterminated else content[1:-1]
    data = CodeData(
        language=language,
        body="\n".join(body_lines),
        fence=fence,
        terminated=not span.unterminated,
    )
    issues = [UNTERMINATED_FENCE] if span.unterminated else []
    return data, None, issues


def _build_heading(span: RawSpan, content: List[str], options: Dict[str, int]) -> _Built:
    m = _RE_HEADING.match(content[0].strip())
    if not m:
        return HeadingData(text=content[0].strip()), 1, []
    text = _RE_CLOSING_HASHES.sub("", (m.group(2) or "").strip())
    return HeadingData(text=text.strip()), len(m.group(1)), []


def _build_rule(span: RawSpan, content: List[str], options: Dict[str, int]) -> _Built:
    return RuleData(marker=content[0].strip()[:1]), None, []


def _build_table(span: RawSpan, content: List[str], options: Dict[str, int]) -> _Built:
    header_cells = split_table_row(content[0])
    expected = len(header_cells)
    alignments = [_alignment(c) for c in split_table_row(content[1])] if len(content) > 1 else []

    rows = [TableRow(cells=header_cells, column_count=expected, is_header=True)]
    issues: List[str] = []

    for offset, line in enumerate(content[2:], start=2):
        cells = split_table_row(line)
        malformed = len(cells) != expected
        rows.append(TableRow(cells=cells, column_count=len(cells), malformed=malformed))
        if malformed:
            issues.append(
                f"table row at line {span.start + offset + 1} has "
                f"{len(cells)} cells, header has {expected}"
            )

    return TableData(rows=rows, alignments=alignments), None, issues


def _build_blockquote(span: RawSpan, content: List[str], options: Dict[str, int]) -> _Built:
    lines = []
    for line in content:
        t = line.strip()
        if t.startswith(">"):
            t = t[1:]
            if t.startswith(" "):
                t = t[1:]
        lines.append(t)
    return BlockquoteData(lines=lines), None, []


def _build_list(span: RawSpan, content: List[str], options: Dict[str, int]) -> _Built:
    tab_width = options["tab_width"]
    step = max(1, options["list_indent_width"])
    items: List[ListItem] = []

    for line in content:
        m = _RE_LIST_ITEM.match(line.lstrip())
        if m is None:
            # Indented continuation of the previous item
            if items:
                items[-1].text = f"{items[-1].text}\n{line.strip()}"
            continue

        marker, text = m.group(1), m.group(2).strip()
        checked = None
        task = _RE_TASK.match(text)
        if task:
            checked = task.group(1).lower() == "x"
            text = task.group(2).strip()

        items.append(
            ListItem(
                text=text,
                depth=indent_width(line, tab_width) // step,
                marker=marker,
                ordered=marker[0].isdigit(),
                checked=checked,
            )
        )

    ordered = items[0].ordered if items else False
    return ListData(ordered=ordered, items=items), None, []


def _build_component(span: RawSpan, content: List[str], options: Dict[str, int]) -> _Built:
    full = "\n".join(content).strip()
    m = _RE_COMPONENT_NAME.match(full)
    name = m.group(1) if m else ""
    start = m.end() if m else 0

    tag_end = _find_tag_end(full, start)
    tag_body = full[start:tag_end]
    self_closing = tag_body.rstrip().endswith("/")
    if self_closing:
        tag_body = tag_body.rstrip()[:-1]

    children = ""
    if not self_closing:
        rest = full[tag_end + 1 :]
        close_at = rest.rfind(f"</{name}>")
        children = (rest[:close_at] if close_at >= 0 else rest).strip()

    data = ComponentData(
        name=name,
        attributes=parse_attributes(tag_body),
        self_closing=self_closing,
        children=children,
    )
    return data, None, []


def _build_paragraph(span: RawSpan, content: List[str], options: Dict[str, int]) -> _Built:
    return ParagraphData(text="\n".join(content).strip()), None, []


_BUILDERS: Dict[BlockType, Callable[[RawSpan, List[str], Dict[str, int]], _Built]] = {
    BlockType.CODE: _build_code,
    BlockType.HEADING: _build_heading,
    BlockType.HR: _build_rule,
    BlockType.TABLE: _build_table,
    BlockType.BLOCKQUOTE: _build_blockquote,
    BlockType.LIST: _build_list,
    BlockType.COMPONENT_EMBED: _build_component,
    BlockType.PARAGRAPH: _build_paragraph,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify_span(
    span: RawSpan,
    lines: Sequence[str],
    raw_text: str,
    tab_width: int = 4,
    list_indent_width: int = 2,
) -> Block:
    """
    Build a typed Block from one raw span.

    Args:
        span:              Span produced by the segmenter.
        lines:             All document lines (terminators allowed).
        raw_text:          Source slice owned by the block.
        tab_width:         Columns per tab when measuring indentation.
        list_indent_width: Indent columns per list nesting level.

    Returns:
        A Block without an id (ids are assigned by the BlockDocument).
    """
    content = [line.rstrip("\n") for line in lines[span.start : span.end]]
    options = {"tab_width": tab_width, "list_indent_width": list_indent_width}

    data, level, issues = _BUILDERS[span.kind](span, content, options)

    block = Block(
        type=span.kind,
        raw_text=raw_text,
        structured_data=data,
        source_range=SourceRange(span.start, span.end),
        level=level,
        issues=issues,
    )
    if issues:
        logger.debug(
            "Malformed %s at lines %d-%d: %s",
            span.kind.name,
            span.start,
            span.end,
            "; ".join(issues),
        )
    return block
