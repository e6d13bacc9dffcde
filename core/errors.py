"""
Exception taxonomy for the block editing core.

Structural problems inside the content (unterminated fences, ragged
tables) are never raised; they are recorded on the Block as a
malformed flag.  Everything below is raised only at API boundaries.
"""


class BlockEditorError(Exception):
    """Base class for all block editor errors."""


class InvalidInputError(BlockEditorError, ValueError):
    """
    Non-text content passed to the parser.

    Raised at the parse boundary before any state is touched, so the
    previously loaded document stays unchanged.
    """


class BlockNotFoundError(BlockEditorError, KeyError):
    """A block id is not present in the document."""

    def __init__(self, block_id: str):
        super().__init__(block_id)
        self.block_id = block_id

    def __str__(self) -> str:
        return f"Block not found: {self.block_id!r}"


class DuplicateBlockIdError(BlockEditorError, ValueError):
    """A block carrying an id that already exists was inserted."""


class StaleSnapshotError(BlockEditorError):
    """
    A bulk action snapshot predates the current document revision.

    Only raised when the dispatcher runs with strict snapshot checking;
    the default policy skips stale ids instead.
    """

    def __init__(self, snapshot_revision: int, document_revision: int):
        super().__init__(
            f"Selection snapshot at revision {snapshot_revision} is stale "
            f"(document is at revision {document_revision})"
        )
        self.snapshot_revision = snapshot_revision
        self.document_revision = document_revision
