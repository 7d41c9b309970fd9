# chess_viewer/core/game_splitter.py
"""
Segments a multi-game PGN document into per-game text spans.

PGN files in the wild are loosely formatted: headers and moves are usually
separated by one blank line, games by one or more, and some exporters wrap the
header section itself across blank lines. The splitter works on blank-line
delimited blocks and decides per block whether it starts a new game.

Known limitation: a comment that spans a blank line and whose next block starts
with bracketed, header-looking text is taken for the start of a new game.
"""
import re
from typing import List

from chess_viewer.core.header_parser import is_header_line

_BLANK_LINE_SPLIT_RE = re.compile(r"\n[ \t]*\n")


def normalize_line_endings(text: str) -> str:
    """Converts Windows (`\\r\\n`) and classic Mac (`\\r`) line endings to `\\n`."""
    return text.replace("\r\n", "\n").replace("\r", "\n")


def _starts_with_header(block: str) -> bool:
    first_line = block.split("\n", 1)[0]
    return is_header_line(first_line)


def _contains_move_text(game_text: str) -> bool:
    """True once the accumulated game has at least one line outside its header section."""
    for line in game_text.split("\n"):
        stripped = line.strip()
        if stripped and not stripped.startswith("["):
            return True
    return False


def split_games(text: str) -> List[str]:
    """
    Splits raw PGN text into candidate single-game spans.

    A block starts a new game only when it begins with a header line and the
    game accumulated so far already has move text. Every other block is
    appended to the current game, so a header block that follows a header-only
    block stays part of the same header section.

    Args:
        text: The raw document text.

    Returns:
        The game spans in document order. Never raises; an empty or
        whitespace-only document yields an empty list.
    """
    if not text:
        return []

    blocks = [block.strip() for block in _BLANK_LINE_SPLIT_RE.split(normalize_line_endings(text))]

    spans: List[str] = []
    current = ""
    for block in blocks:
        if not block:
            continue
        if current and _starts_with_header(block) and _contains_move_text(current):
            spans.append(current)
            current = block
        elif current:
            current = f"{current}\n\n{block}"
        else:
            current = block

    if current:
        spans.append(current)
    return spans
