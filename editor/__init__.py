"""
Block-structured markdown editing.

Parsing (text → blocks), selection, bulk actions and the session that
ties them to one document.
"""

from .session import EditorConfig, EditorSession, LoadResult

__all__ = ["EditorConfig", "EditorSession", "LoadResult"]
