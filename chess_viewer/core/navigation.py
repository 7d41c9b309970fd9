# chess_viewer/core/navigation.py
"""
Provides the navigation cursor that steps through a loaded game.

The cursor owns one piece of mutable state, the current ply index, and derives
everything else from it. Every transition replays the game from its starting
position through a `RulesEngine`, so the displayed position is always a pure
function of `(starting position, moves[0..ply])` and can never drift.
"""
from typing import Callable, List, Optional

import structlog

from chess_viewer.core.pgn_formatter import format_moves_for_display
from chess_viewer.core.rules_engine import PythonChessRules, replay
from chess_viewer.exceptions import MalformedGameError
from chess_viewer.types import FEN, AppliedMove, Game, MovePair, NavigationSnapshot, RulesEngine
from chess_viewer.utils import metrics

logger = structlog.get_logger(__name__)

START_PLY = -1

RulesEngineFactory = Callable[[], RulesEngine]
MalformedGameCallback = Callable[[MalformedGameError], None]


class NavigationCursor:
    """
    A ply cursor over a single game's main line.

    Valid plies range from -1 (the starting position, before any move) to
    `len(game.moves) - 1`. When a move cannot be replayed, the cursor clamps
    to the last legal ply and reports a `MalformedGameError` once per loaded
    game.
    """

    def __init__(
        self,
        rules_factory: RulesEngineFactory = PythonChessRules,
        on_malformed: Optional[MalformedGameCallback] = None,
    ):
        """
        Args:
            rules_factory: Creates the rules engine used for replays.
            on_malformed: Called at most once per loaded game, the first time
                replay hits an illegal move.
        """
        self._rules = rules_factory()
        self._on_malformed = on_malformed
        self._game: Optional[Game] = None
        self._current_ply = START_PLY
        self._snapshot: Optional[NavigationSnapshot] = None
        self._malformed: Optional[MalformedGameError] = None

    @property
    def game(self) -> Optional[Game]:
        return self._game

    @property
    def current_ply(self) -> int:
        return self._current_ply

    @property
    def snapshot(self) -> Optional[NavigationSnapshot]:
        return self._snapshot

    @property
    def position(self) -> Optional[FEN]:
        return self._snapshot.fen if self._snapshot else None

    @property
    def last_move(self) -> Optional[AppliedMove]:
        return self._snapshot.last_move if self._snapshot else None

    @property
    def malformed_game(self) -> Optional[MalformedGameError]:
        return self._malformed

    @property
    def last_ply(self) -> int:
        """The highest ply the game's move list allows."""
        return len(self._game.moves) - 1 if self._game else START_PLY

    @property
    def is_at_start(self) -> bool:
        return self._current_ply == START_PLY

    @property
    def is_at_end(self) -> bool:
        if self._malformed is not None:
            return self._current_ply >= self._malformed.last_legal_ply
        return self._current_ply == self.last_ply

    def load(self, game: Game) -> NavigationSnapshot:
        """Makes `game` the current game and moves to its starting position."""
        self._game = game
        self._malformed = None
        self._current_ply = START_PLY
        logger.debug("Game loaded into navigation cursor.", ply_count=len(game.moves))
        snapshot = self._transition(START_PLY)
        assert snapshot is not None
        return snapshot

    def unload(self) -> None:
        self._game = None
        self._malformed = None
        self._current_ply = START_PLY
        self._snapshot = None

    # --- Transitions ---

    def go_to_start(self) -> Optional[NavigationSnapshot]:
        return self._transition(START_PLY)

    def go_to_end(self) -> Optional[NavigationSnapshot]:
        return self._transition(self.last_ply)

    def step_forward(self) -> Optional[NavigationSnapshot]:
        return self._transition(self._current_ply + 1)

    def step_backward(self) -> Optional[NavigationSnapshot]:
        return self._transition(self._current_ply - 1)

    def go_to_ply(self, ply: int) -> Optional[NavigationSnapshot]:
        return self._transition(ply)

    def move_pairs(self) -> List[MovePair]:
        return format_moves_for_display(self._game.moves) if self._game else []

    def _transition(self, requested_ply: int) -> Optional[NavigationSnapshot]:
        """Clamps the requested ply, replays up to it, and publishes the new snapshot."""
        if self._game is None:
            return None

        target = max(START_PLY, min(requested_ply, self.last_ply))
        outcome = replay(self._rules, self._game.moves[: target + 1], self._game.starting_fen)

        malformed: Optional[MalformedGameError] = None
        if outcome.rejected_ply is not None:
            malformed = self._report_malformed(outcome.rejected_ply, outcome.rejection_reason)
            target = outcome.rejected_ply - 1

        self._current_ply = target
        self._snapshot = NavigationSnapshot(
            ply=target,
            requested_ply=requested_ply,
            fen=outcome.final_fen,
            last_move=outcome.applied[-1] if outcome.applied else None,
            malformed=malformed,
        )
        return self._snapshot

    def _report_malformed(self, ply: int, reason: str) -> MalformedGameError:
        if self._malformed is not None:
            return self._malformed

        assert self._game is not None
        self._malformed = MalformedGameError(ply=ply, san=self._game.moves[ply], reason=reason)
        metrics.MALFORMED_GAMES_TOTAL.inc()
        logger.warning(
            "Game contains an unplayable move; navigation is clamped.",
            ply=ply, san=self._malformed.san, last_legal_ply=ply - 1,
        )
        if self._on_malformed is not None:
            self._on_malformed(self._malformed)
        return self._malformed
