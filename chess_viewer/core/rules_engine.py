# chess_viewer/core/rules_engine.py
"""
Adapts the `python-chess` library to the application's `RulesEngine` interface.

This module acts as an Anti-Corruption Layer: the navigation cursor only ever
sees FEN strings, SAN tokens and `AppliedMove` records, never `chess.Board`
objects. Any other rules implementation (an external process, a variant
library) can be swapped in by satisfying the same Protocol.
"""
from typing import Optional, Sequence

import chess
import structlog

from chess_viewer.core.move_tokenizer import strip_move_annotations
from chess_viewer.exceptions import IllegalMoveError, InvalidPositionError
from chess_viewer.types import FEN, SAN, AppliedMove, ReplayOutcome, RulesEngine

logger = structlog.get_logger(__name__)

STARTING_FEN: FEN = chess.STARTING_FEN


class PythonChessRules(RulesEngine):
    """A `RulesEngine` backed by a single mutable `chess.Board`."""

    def __init__(self) -> None:
        self._board = chess.Board()

    def reset(self) -> None:
        self._board.reset()

    def load_position(self, fen: FEN) -> None:
        """
        Replaces the current position with the one described by `fen`.

        Raises:
            InvalidPositionError: If the FEN cannot be parsed. The previous
                position is left untouched.
        """
        try:
            board = chess.Board(fen)
        except ValueError as e:
            raise InvalidPositionError(f"Invalid FEN {fen!r}: {e}") from e
        self._board = board

    def apply_move(self, san: SAN) -> AppliedMove:
        """
        Plays a SAN move on the current position.

        Trailing `!`/`?` annotations are ignored. The position is unchanged
        when the move is rejected.

        Raises:
            IllegalMoveError: If the token is not valid SAN, is ambiguous, or
                is illegal in the current position.
        """
        try:
            # `parse_san` raises subclasses of ValueError for invalid, illegal and ambiguous moves.
            move = self._board.parse_san(strip_move_annotations(san))
        except ValueError as e:
            raise IllegalMoveError(f"Cannot apply {san!r}: {e}") from e
        self._board.push(move)
        return AppliedMove(
            san=san,
            uci=move.uci(),
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            fen_after=self._board.fen(),
        )

    def current_position(self) -> FEN:
        return self._board.fen()


def replay(rules: RulesEngine, moves: Sequence[SAN], start_fen: Optional[FEN] = None) -> ReplayOutcome:
    """
    Replays an ordered move list from a starting position.

    Args:
        rules: The rules engine to drive. It is reset first.
        moves: The SAN moves to apply, in order.
        start_fen: An optional starting position. If it cannot be loaded the
            standard starting position is used instead.

    Returns:
        A `ReplayOutcome` listing every applied move and, if a move was
        rejected, the ply index at which replay stopped.
    """
    rules.reset()
    if start_fen:
        try:
            rules.load_position(start_fen)
        except InvalidPositionError as e:
            logger.warning("Ignoring unparseable FEN header; using the standard position.", error=str(e))
            rules.reset()

    start = rules.current_position()
    applied = []
    for ply, san in enumerate(moves):
        try:
            applied.append(rules.apply_move(san))
        except IllegalMoveError as e:
            return ReplayOutcome(start_fen=start, applied=applied, rejected_ply=ply, rejection_reason=str(e))
    return ReplayOutcome(start_fen=start, applied=applied)
