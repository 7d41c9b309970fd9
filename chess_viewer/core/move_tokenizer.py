# chess_viewer/core/move_tokenizer.py
"""
Turns raw PGN move text into an ordered list of SAN move tokens.

Everything that is not a move is stripped, in a fixed order: brace comments,
parenthesised variations, NAG glyphs, then rest-of-line comments. Whatever
survives is split on whitespace, and move numbers and result literals are
dropped. No attempt is made to check that a token is legal SAN; the rules
engine rejects bad tokens when the game is replayed.

Nested comments and nested variations are not supported. `(1. e4 (1. d4) e5)`
strips only up to the first closing parenthesis and leaves `e5)` behind.
"""
import re
from typing import List, Optional

from chess_viewer.types import GAME_RESULTS, SAN, TokenizedMoveText

# The order of the patterns matters: a `(` inside a comment must never start a
# variation, so comments are removed first.
_COMMENT_RE = re.compile(r"\{[^}]*\}")
_VARIATION_RE = re.compile(r"\([^)]*\)")
_NAG_RE = re.compile(r"\$\d+")
_LINE_COMMENT_RE = re.compile(r";[^\n]*")
_ESCAPE_LINE_RE = re.compile(r"^%[^\n]*", re.MULTILINE)

_MOVE_NUMBER_RE = re.compile(r"^\d+\.+$")
# A move number glued to its move, e.g. "1.e4" or "12...Nf6".
_GLUED_MOVE_NUMBER_RE = re.compile(r"^(\d+\.+)([^.\s]\S*)$")
_SUFFIX_ANNOTATION_RE = re.compile(r"[!?]+$")


def strip_noise(move_text: str) -> str:
    """Removes comments, variations and NAGs from move text, keeping token spacing."""
    cleaned = _ESCAPE_LINE_RE.sub(" ", move_text)
    cleaned = _COMMENT_RE.sub(" ", cleaned)
    cleaned = _VARIATION_RE.sub(" ", cleaned)
    cleaned = _NAG_RE.sub(" ", cleaned)
    return _LINE_COMMENT_RE.sub(" ", cleaned)


def _split_tokens(cleaned: str) -> List[str]:
    tokens: List[str] = []
    for token in cleaned.split():
        glued = _GLUED_MOVE_NUMBER_RE.match(token)
        if glued and glued.group(2) not in GAME_RESULTS:
            tokens.extend(glued.groups())
        else:
            tokens.append(token)
    return tokens


def tokenize_moves(move_text: str) -> List[SAN]:
    """
    Returns the SAN move tokens of a move-text string, in order.

    Args:
        move_text: Raw PGN move text, possibly spanning several lines.

    Returns:
        A list of move tokens with no move numbers, results, comments,
        variations or NAGs left in it. Re-tokenizing the joined output yields
        the same list.
    """
    if not move_text or not move_text.strip():
        return []

    moves: List[SAN] = []
    for token in _split_tokens(strip_noise(move_text)):
        if _MOVE_NUMBER_RE.match(token) or token in GAME_RESULTS:
            continue
        moves.append(token)
    return moves


def extract_result(move_text: str) -> Optional[str]:
    """Returns the last game-result literal in the move text, or None if there is none."""
    for token in reversed(_split_tokens(strip_noise(move_text or ""))):
        if token in GAME_RESULTS:
            return token
    return None


def tokenize_move_text(move_text: str) -> TokenizedMoveText:
    """Tokenizes move text and extracts its result token in one call."""
    return TokenizedMoveText(moves=tokenize_moves(move_text), result=extract_result(move_text))


def strip_move_annotations(san: SAN) -> SAN:
    """Drops trailing `!`/`?` move-quality suffixes, e.g. "Nf3!?" -> "Nf3"."""
    return _SUFFIX_ANNOTATION_RE.sub("", san.strip())
