# chess_viewer/core/pgn_formatter.py
"""
Serializes games back to PGN text and prepares move lists for display.
"""
from typing import List, Mapping, Sequence

from chess_viewer.types import Game, MovePair, SAN

# The Seven Tag Roster, followed by the most common optional tags.
CANONICAL_HEADER_ORDER: List[str] = [
    "Event", "Site", "Date", "Round", "White", "Black", "Result", "ECO", "WhiteElo", "BlackElo"
]


def _escape_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def format_pgn_headers(headers: Mapping[str, str]) -> str:
    """
    Formats headers as `[Key "Value"]` lines in canonical order.

    Keys from `CANONICAL_HEADER_ORDER` come first, in that order; every other
    key follows in its original order. Each present key is written, even when
    its value is empty.
    """
    lines: List[str] = []
    for key in CANONICAL_HEADER_ORDER:
        if key in headers:
            lines.append(f'[{key} "{_escape_value(headers[key])}"]')
    for key, value in headers.items():
        if key not in CANONICAL_HEADER_ORDER:
            lines.append(f'[{key} "{_escape_value(value)}"]')
    return "".join(f"{line}\n" for line in lines)


def format_game_pgn(game: Game) -> str:
    """Re-emits a game as PGN: headers, a blank line, the moves, then the result."""
    moves = " ".join(game.moves)
    return f"{format_pgn_headers(game.headers)}\n{moves} {game.result}"


def format_moves_for_display(moves: Sequence[SAN]) -> List[MovePair]:
    """Groups plies into numbered White/Black rows for a move list."""
    return [
        MovePair(
            move_number=i // 2 + 1,
            white=moves[i],
            black=moves[i + 1] if i + 1 < len(moves) else None,
        )
        for i in range(0, len(moves), 2)
    ]


def game_title(headers: Mapping[str, str]) -> str:
    """A one-line label for a game, e.g. "Fischer vs Spassky (1-0) 1992.11.04"."""
    white = headers.get("White") or "Unknown"
    black = headers.get("Black") or "Unknown"
    result = headers.get("Result") or "*"
    date = headers.get("Date") or ""
    return f"{white} vs {black} ({result}) {date}".rstrip()
