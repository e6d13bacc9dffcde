"""Shared fixtures for the block editor tests."""

from typing import List

import pytest

from editor.session import EditorConfig, EditorSession


@pytest.fixture
def session():
    s = EditorSession(EditorConfig())
    yield s
    s.close()


@pytest.fixture
def abcd(session: EditorSession) -> List[str]:
    """Session loaded with four paragraphs A, B, C, D; returns their ids."""
    session.load("A\n\nB\n\nC\n\nD\n")
    return session.document.ids()
