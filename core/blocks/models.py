"""
Data models for typed document blocks.

A Block is one classified, contiguous unit of markdown content.  Each
block type carries its own structured payload (table cells, list items,
code language, ...) next to the verbatim source text it was built from.
"""

import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class BlockType(Enum):
    """Block kinds produced by the classifier."""

    HEADING = "heading"
    PARAGRAPH = "paragraph"
    CODE = "code"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    TABLE = "table"
    HR = "hr"
    COMPONENT_EMBED = "component_embed"


@dataclass(frozen=True)
class SourceRange:
    """
    Line span of a block in the parsed source.

    ``start`` and ``end`` are 0-based line offsets; ``end`` is exclusive
    and covers content lines only (trailing blank lines are not counted).
    """

    start: int
    end: int

    @property
    def line_count(self) -> int:
        return self.end - self.start

    def __repr__(self) -> str:
        return f"SourceRange({self.start}-{self.end})"


# ---------------------------------------------------------------------------
# Per-type structured data
# ---------------------------------------------------------------------------


@dataclass
class HeadingData:
    text: str


@dataclass
class ParagraphData:
    text: str


@dataclass
class RuleData:
    marker: str


@dataclass
class CodeData:
    """
    Fenced code payload.

    ``body`` is kept verbatim (no indentation stripping).  ``terminated``
    is False when the opening fence never found its closing partner.
    """

    language: str
    body: str
    fence: str
    terminated: bool = True


@dataclass
class BlockquoteData:
    lines: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


@dataclass
class TableRow:
    """One table row; ``column_count`` is compared against the header."""

    cells: List[str]
    column_count: int
    malformed: bool = False
    is_header: bool = False


@dataclass
class TableData:
    """
    Table payload.  ``rows[0]`` is the header row; the separator line is
    not a row but contributes the per-column ``alignments``.
    """

    rows: List[TableRow] = field(default_factory=list)
    alignments: List[Optional[str]] = field(default_factory=list)

    @property
    def header(self) -> Optional[TableRow]:
        return self.rows[0] if self.rows else None

    @property
    def column_count(self) -> int:
        return self.rows[0].column_count if self.rows else 0

    @property
    def malformed_rows(self) -> List[int]:
        return [i for i, row in enumerate(self.rows) if row.malformed]


@dataclass
class ListItem:
    text: str
    depth: int
    marker: str
    ordered: bool
    checked: Optional[bool] = None  # task items only


@dataclass
class ListData:
    ordered: bool
    items: List[ListItem] = field(default_factory=list)


@dataclass
class ComponentData:
    """
    An embedded component tag, e.g. ``<PageCard title="x" />``.

    Opaque to the editor: only the name and attribute mapping are
    extracted.  ``children`` holds the raw inner content of paired tags.
    """

    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    self_closing: bool = True
    children: str = ""


StructuredData = Union[
    HeadingData,
    ParagraphData,
    RuleData,
    CodeData,
    BlockquoteData,
    TableData,
    ListData,
    ComponentData,
]


# ---------------------------------------------------------------------------
# Block
# ---------------------------------------------------------------------------


@dataclass
class Block:
    """
    A classified block of document content.

    ``id`` is assigned by the BlockDocument on insertion and never
    changes afterwards.  ``raw_text`` is the exact source slice owned by
    the block (content lines plus the blank lines that follow them), so
    concatenating ``raw_text`` over a parsed document reproduces the input.
    """

    type: BlockType
    raw_text: str
    structured_data: StructuredData
    source_range: Optional[SourceRange] = None
    level: Optional[int] = None  # headings only
    id: Optional[str] = None

    # Non-fatal structural problems (unterminated fence, ragged table)
    issues: List[str] = field(default_factory=list)

    # Bumped each time the block is replaced in place
    revision: int = 0

    @property
    def malformed(self) -> bool:
        return bool(self.issues)

    @property
    def text(self) -> str:
        """Human-facing text content, markers stripped where they apply."""
        data = self.structured_data
        if isinstance(data, (HeadingData, ParagraphData)):
            return data.text
        if isinstance(data, CodeData):
            return data.body
        if isinstance(data, BlockquoteData):
            return data.text
        return self.raw_text.strip()

    @property
    def line_span(self) -> Tuple[int, int]:
        if self.source_range is None:
            return (-1, -1)
        return (self.source_range.start, self.source_range.end)

    def copy(self, **changes) -> "Block":
        """Return a detached copy (no id unless given in *changes*)."""
        changes.setdefault("id", None)
        changes.setdefault("issues", list(self.issues))
        changes.setdefault("revision", 0)
        changes.setdefault("structured_data", copy.deepcopy(self.structured_data))
        return replace(self, **changes)

    def __repr__(self) -> str:
        preview = self.text[:50].replace("\n", " ")
        level = f" h{self.level}" if self.level else ""
        tag = " [malformed]" if self.malformed else ""
        return f"Block({self.id}, {self.type.name}{level}{tag}, '{preview}')"
