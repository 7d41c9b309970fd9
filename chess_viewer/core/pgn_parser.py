# chess_viewer/core/pgn_parser.py
"""
Builds the application's `Game` entities from raw PGN text.

This module composes the game splitter, header parser and move tokenizer into
the public parsing entry points. It is deliberately forgiving: a span that has
anything extractable (a header, a move or a result) becomes a best-effort game,
and a span that has nothing is skipped without affecting its neighbours. Only
the document-level entry point refuses input, and only when not a single game
can be recovered from it.
"""
from typing import List

import structlog

from chess_viewer.core.game_splitter import split_games
from chess_viewer.core.header_parser import parse_header_section
from chess_viewer.core.move_tokenizer import tokenize_move_text
from chess_viewer.exceptions import EmptyDocumentError, PgnParsingError
from chess_viewer.types import GAME_RESULTS, RESULT_UNKNOWN, Game, ValidationReport
from chess_viewer.utils import metrics

logger = structlog.get_logger(__name__)


def build_game(span: str) -> Game:
    """
    Parses one game span into a `Game`.

    The result comes from the move text's result token when there is one,
    otherwise from a valid `Result` header, otherwise it is `"*"`.

    Args:
        span: The text of a single game, as produced by `split_games`.

    Returns:
        A `Game`. Missing headers are simply absent.

    Raises:
        PgnParsingError: If the span has no headers, no moves and no result
            token, i.e. it is noise.
    """
    section = parse_header_section(span.split("\n"))
    tokenized = tokenize_move_text("\n".join(section.move_text_lines))

    if not section.headers and not tokenized.moves and tokenized.result is None:
        raise PgnParsingError("No headers, moves or result found in game text.")

    result = tokenized.result
    if result is None:
        header_result = section.headers.get("Result", "").strip()
        result = header_result if header_result in GAME_RESULTS else RESULT_UNKNOWN

    return Game(headers=section.headers, moves=tuple(tokenized.moves), result=result)


def parse_pgn(text: str) -> List[Game]:
    """
    Parses every game of a PGN document.

    Never raises. Spans that cannot be turned into a game are logged and
    skipped, so one bad game does not prevent the others from loading.
    """
    games: List[Game] = []
    for index, span in enumerate(split_games(text)):
        try:
            games.append(build_game(span))
        except PgnParsingError as e:
            metrics.GAMES_SKIPPED_TOTAL.labels(reason="unparseable").inc()
            logger.warning("Skipping unparseable PGN span.", span_index=index, error=str(e))
    metrics.GAMES_PARSED_TOTAL.inc(len(games))
    return games


def load_games(text: str) -> List[Game]:
    """
    Parses a PGN document that is about to be displayed.

    Raises:
        EmptyDocumentError: If the text is blank or yields zero games.
    """
    if not text or not text.strip():
        raise EmptyDocumentError("PGN text is empty")
    games = parse_pgn(text)
    if not games:
        raise EmptyDocumentError("No valid games found in PGN")
    logger.info("PGN document loaded.", game_count=len(games))
    return games


def validate_pgn(text: str) -> ValidationReport:
    """Checks a PGN document without raising, returning user-presentable errors."""
    try:
        games = load_games(text)
    except EmptyDocumentError as e:
        return ValidationReport(is_valid=False, errors=[str(e)], game_count=0)
    return ValidationReport(is_valid=True, errors=[], game_count=len(games))
