"""
Markdown → Block parsing pipeline.

Stages: text adapter → segmenter → classifier, wrapped by ``parse_blocks``.
"""

from .classifier import classify_span, parse_attributes, split_table_row
from .parser import ParseStats, block_to_dict, parse_blocks, preview_blocks, summarize_blocks
from .segmenter import RawSpan, Segmenter, segment

__all__ = [
    "parse_blocks",
    "ParseStats",
    "summarize_blocks",
    "preview_blocks",
    "block_to_dict",
    "RawSpan",
    "Segmenter",
    "segment",
    "classify_span",
    "parse_attributes",
    "split_table_row",
]
