#!/usr/bin/env python3
"""
Block editor: CLI entry point.

Parses markdown files into typed blocks and prints them, either as a
readable block listing or as JSON for a render layer.

Usage::

    python blockedit.py notes.md
    python blockedit.py docs/*.md --summary
    python blockedit.py page.mdx --json > blocks.json
    python blockedit.py notes.md --list-indent 4 -v 2

Verbosity levels::

    -v 0   Quiet: warnings and errors only.
    -v 1   Normal: per-file load summaries and progress bars (default).
    -v 2   Debug: per-block decisions (malformed blocks, ids, edits).

Exit status is 1 when any input file is rejected (missing, not UTF-8
or binary); the remaining files are still processed.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from core.errors import InvalidInputError
from editor.parsing.parser import block_to_dict, preview_blocks
from editor.session import EditorConfig, EditorSession

logger = logging.getLogger("editor")

# Mapping from --verbose integer to logging level
_VERBOSITY_MAP = {
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}


# ------------------------------------------------------------------
# Argument parsing
# ------------------------------------------------------------------


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected an integer, got '{value}'")
    if number < 1:
        raise argparse.ArgumentTypeError(f"Must be >= 1, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    p = argparse.ArgumentParser(
        prog="blockedit",
        description="Parse markdown files into typed, id-addressable blocks.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python blockedit.py notes.md\n"
            "  python blockedit.py docs/*.md --summary\n"
            "  python blockedit.py page.mdx --json > blocks.json\n"
        ),
    )

    p.add_argument("inputs", nargs="+", metavar="FILE", help="Markdown file(s) to parse")

    # -- Output ------------------------------------------------------------
    output = p.add_argument_group("output")
    output.add_argument(
        "--json",
        action="store_true",
        help="Print blocks as JSON instead of the block listing",
    )
    output.add_argument(
        "--summary",
        action="store_true",
        help="Print only the per-file load summary",
    )

    # -- Parsing -----------------------------------------------------------
    parsing = p.add_argument_group("parsing")
    parsing.add_argument(
        "--list-indent",
        type=_positive_int,
        default=2,
        metavar="N",
        help="Indent columns per list nesting level (default: 2)",
    )
    parsing.add_argument(
        "--tab-width",
        type=_positive_int,
        default=4,
        metavar="N",
        help="Columns per tab when measuring indentation (default: 4)",
    )
    parsing.add_argument(
        "--strict-snapshots",
        action="store_true",
        help="Reject bulk actions on selection snapshots older than the document",
    )

    # -- Logging / progress -----------------------------------------------
    debug = p.add_argument_group("logging & progress")
    debug.add_argument(
        "-v",
        "--verbose",
        type=int,
        choices=[0, 1, 2],
        default=1,
        help="Verbosity: 0=quiet, 1=normal (default), 2=debug",
    )
    debug.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable tqdm progress bars",
    )

    return p


# ------------------------------------------------------------------
# Logging setup
# ------------------------------------------------------------------


def _configure_logging(verbosity: int) -> None:
    """
    Set up the ``editor`` logger tree (``core`` follows the same level).

    At verbosity 0 (WARNING) the format is minimal; at DEBUG it carries
    timestamps and module names.  Records go to stderr so stdout stays
    clean for ``--json`` output.
    """
    level = _VERBOSITY_MAP.get(verbosity, logging.INFO)

    if level <= logging.DEBUG:
        fmt = "%(asctime)s %(name)s %(levelname)s: %(message)s"
        datefmt = "%H:%M:%S"
    elif level <= logging.INFO:
        fmt = "%(message)s"
        datefmt = None
    else:
        fmt = "%(levelname)s: %(message)s"
        datefmt = None

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

    for name in ("editor", "core"):
        root = logging.getLogger(name)
        root.setLevel(level)
        root.handlers.clear()
        root.addHandler(handler)


# ------------------------------------------------------------------
# Per-file processing
# ------------------------------------------------------------------


def _process_file(session: EditorSession, path: str, args: argparse.Namespace) -> Optional[object]:
    """
    Load one file and render it.

    Returns the JSON payload for ``--json`` runs, the text to print
    otherwise, or None when the file was rejected.
    """
    try:
        result = session.load_file(path)
    except (FileNotFoundError, InvalidInputError) as e:
        logger.warning("Rejected %s: %s", path, e)
        return None

    if args.summary:
        return result.summary()
    if args.json:
        return {
            "path": path,
            "revision": result.revision,
            "blocks": [block_to_dict(b) for b in session.blocks],
        }
    return f"== {path}\n{preview_blocks(session.blocks)}"


# ------------------------------------------------------------------
# Entry point
# ------------------------------------------------------------------


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, configure logging, and process every input."""
    args = _build_parser().parse_args(argv)

    # Logging must be configured before any logger calls
    _configure_logging(args.verbose)
    disable_tqdm = args.no_progress or args.verbose == 0 or len(args.inputs) < 2

    config = EditorConfig(
        tab_width=args.tab_width,
        list_indent_width=args.list_indent,
        reject_stale_snapshots=args.strict_snapshots,
        disable_tqdm=disable_tqdm,
    )

    rejected = 0
    json_docs = []
    with logging_redirect_tqdm(loggers=[logging.getLogger("editor"), logging.getLogger("core")]):
        pbar = tqdm(args.inputs, desc="Parsing", unit="file", disable=config.disable_tqdm)
        for path in pbar:
            pbar.set_postfix(file=path)
            # Fresh session per file: no ids or selection leak between inputs
            session = EditorSession(config)
            rendered = _process_file(session, path, args)
            session.close()

            if rendered is None:
                rejected += 1
            elif args.json and not args.summary:
                json_docs.append(rendered)
            else:
                tqdm.write(str(rendered), file=sys.stdout)

    if args.json and not args.summary:
        sys.stdout.write(json.dumps(json_docs, indent=2, ensure_ascii=False) + "\n")

    if rejected:
        logger.warning("%d of %d input(s) rejected", rejected, len(args.inputs))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
