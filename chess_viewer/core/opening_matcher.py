# chess_viewer/core/opening_matcher.py
"""
Names the opening of a game by longest-prefix match against the opening book.
"""
import re
from typing import Iterable, Optional, Sequence

from chess_viewer.core.opening_book import OPENINGS
from chess_viewer.types import Game, Opening, SAN

# Check, mate and capture markers, plus move-quality suffixes.
_NORMALIZE_RE = re.compile(r"[+#x!?]")


def normalize_san(san: SAN) -> str:
    """Strips symbols that vary between sources, e.g. "Bxc6+" -> "Bc6"."""
    return _NORMALIZE_RE.sub("", san).strip()


def _matches(book_moves: Sequence[SAN], played: Sequence[str]) -> bool:
    if len(book_moves) > len(played):
        return False
    return all(normalize_san(book) == move for book, move in zip(book_moves, played))


def identify_opening(moves: Sequence[SAN], book: Iterable[Opening] = OPENINGS) -> Optional[Opening]:
    """
    Returns the longest book entry whose full move sequence starts `moves`.

    Entries without moves never match. When two entries of the same length
    match, the first one in the book wins.
    """
    if not moves:
        return None

    played = [normalize_san(move) for move in moves]
    best: Optional[Opening] = None
    for opening in book:
        if not opening.moves:
            continue
        if _matches(opening.moves, played) and (best is None or len(opening.moves) > len(best.moves)):
            best = opening
    return best


def opening_name_for_eco(eco: str, book: Iterable[Opening] = OPENINGS) -> str:
    """Returns the book name for an ECO code, or the code itself if it is unknown."""
    for opening in book:
        if opening.eco == eco:
            return opening.full_name
    return eco


def describe_opening(game: Game) -> Optional[Opening]:
    """
    Finds the opening of a game, falling back to its `ECO` header.

    The fallback builds an `Opening` with no moves from the header, named after
    the book entry for that code when there is one.
    """
    opening = identify_opening(game.moves)
    if opening is not None:
        return opening

    eco = game.headers.get("ECO", "").strip()
    if not eco:
        return None
    return Opening(eco=eco, name=game.headers.get("Opening") or opening_name_for_eco(eco), moves=())
