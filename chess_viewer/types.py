# chess_viewer/types.py
"""
A central module for shared data structures and service interfaces (Protocols).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (Dict, List, Optional, Protocol, Tuple, TYPE_CHECKING,
                    runtime_checkable, TypeAlias)

if TYPE_CHECKING:
    from chess_viewer.exceptions import MalformedGameError

FEN: TypeAlias = str
SAN: TypeAlias = str
UciMove: TypeAlias = str

RESULT_WHITE_WINS = "1-0"
RESULT_BLACK_WINS = "0-1"
RESULT_DRAW = "1/2-1/2"
RESULT_UNKNOWN = "*"
GAME_RESULTS: Tuple[str, ...] = (RESULT_WHITE_WINS, RESULT_BLACK_WINS, RESULT_DRAW, RESULT_UNKNOWN)


class AnalysisStatus(str, Enum):
    """Lifecycle of an `EngineAnalysis`. Every status except `IN_PROGRESS` is terminal."""
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    UNAVAILABLE = "unavailable"

    @property
    def is_final(self) -> bool:
        return self is not AnalysisStatus.IN_PROGRESS


# --- DATA CONTRACTS ---

@dataclass(frozen=True)
class Game:
    """
    A single parsed game. Immutable once built by the game model builder.

    `moves` holds one SAN token per ply, White's plies at even indices. The
    tokens have not been checked for legality; that happens at replay time.
    """
    headers: Dict[str, str]
    moves: Tuple[SAN, ...]
    result: str = RESULT_UNKNOWN

    @property
    def starting_fen(self) -> Optional[FEN]:
        fen = self.headers.get("FEN", "").strip()
        return fen or None

    @property
    def ply_count(self) -> int:
        return len(self.moves)


@dataclass(frozen=True, slots=True)
class HeaderSection:
    headers: Dict[str, str]
    move_text_lines: List[str]


@dataclass(frozen=True, slots=True)
class TokenizedMoveText:
    moves: List[SAN]
    result: Optional[str]


@dataclass(frozen=True, slots=True)
class ValidationReport:
    is_valid: bool
    errors: List[str]
    game_count: int = 0


@dataclass(frozen=True, slots=True)
class MovePair:
    """One row of the move list: a move number with White's and Black's SAN."""
    move_number: int
    white: Optional[SAN] = None
    black: Optional[SAN] = None


@dataclass(frozen=True, slots=True)
class AppliedMove:
    san: SAN
    uci: UciMove
    from_square: str
    to_square: str
    fen_after: FEN


@dataclass(frozen=True)
class ReplayOutcome:
    """The result of replaying an ordered move list from a starting position."""
    start_fen: FEN
    applied: List[AppliedMove] = field(default_factory=list)
    rejected_ply: Optional[int] = None
    rejection_reason: str = ""

    @property
    def final_fen(self) -> FEN:
        return self.applied[-1].fen_after if self.applied else self.start_fen


@dataclass(frozen=True)
class NavigationSnapshot:
    """What the navigation cursor publishes after every transition."""
    ply: int
    requested_ply: int
    fen: FEN
    last_move: Optional[AppliedMove] = None
    malformed: Optional["MalformedGameError"] = None

    @property
    def was_clamped(self) -> bool:
        return self.ply != self.requested_ply


@dataclass(frozen=True, slots=True)
class EngineAnalysis:
    """
    A snapshot of the engine's view of one position.

    `evaluation` is in pawns from White's point of view; a forced mate is
    reported as plus or minus the configured mate evaluation, with the signed
    number of moves in `mate_distance` (0 once the position is already mate;
    the evaluation's sign tells who delivered it). `fen` identifies the analysed position
    so that consumers can discard results for positions no longer displayed.
    """
    evaluation: float = 0.0
    depth: int = 0
    best_move: UciMove = ""
    principal_variation: Tuple[UciMove, ...] = ()
    node_count: int = 0
    mate_distance: Optional[int] = None
    fen: Optional[FEN] = None
    status: AnalysisStatus = AnalysisStatus.IN_PROGRESS

    @classmethod
    def empty(cls, fen: Optional[FEN] = None,
              status: AnalysisStatus = AnalysisStatus.UNAVAILABLE) -> "EngineAnalysis":
        """A neutral, zero-valued analysis."""
        return cls(fen=fen, status=status)


@dataclass(frozen=True, slots=True)
class Opening:
    eco: str
    name: str
    moves: Tuple[SAN, ...]
    variation: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.name}: {self.variation}" if self.variation else self.name


@dataclass(frozen=True, slots=True)
class PlatformGame:
    """A game fetched from an online platform, with summary fields for listing."""
    pgn: str
    white: str
    black: str
    result: str
    date: str
    time_control: Optional[str] = None
    rated: Optional[bool] = None


# --- PROTOCOLS: Abstract Interfaces for Collaborators ---
# These define the "contracts" that concrete implementations must adhere to.
# They enable dependency inversion and allow for easy fakes in tests.

@runtime_checkable
class RulesEngine(Protocol):
    """
    Capability interface over a chess rules implementation.

    The navigation cursor depends only on this interface, never on a concrete
    board library.
    """
    def reset(self) -> None: ...
    def load_position(self, fen: FEN) -> None: ...
    def apply_move(self, san: SAN) -> AppliedMove: ...
    def current_position(self) -> FEN: ...
