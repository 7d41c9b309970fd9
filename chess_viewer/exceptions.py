"""
Defines custom exceptions for the Chess Viewer application.

Centralizing exceptions in this module prevents circular dependencies that can
arise when different components need to catch errors defined in others. A clear
exception hierarchy, with a common `ChessViewerError` base, allows callers to
decide which failures are recoverable (a malformed header line, an illegal move
halfway through a game) and which must be surfaced to the user.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    import chess.engine


class ChessViewerError(Exception):
    """Base class for all application-specific, catchable errors."""
    pass


# --- PGN handling ---

class PgnError(ChessViewerError):
    """Base class for errors related to PGN (Portable Game Notation) handling."""
    pass


class PgnParsingError(PgnError):
    """
    Raised when a text span contains nothing that can be turned into a game.

    A span qualifies only when it holds zero headers, zero moves and no result
    token. Anything less broken still produces a best-effort game.
    """
    pass


class EmptyDocumentError(PgnError):
    """Raised when a whole PGN document yields zero games."""
    pass


class InvalidHeaderSyntaxError(PgnError):
    """
    Raised for a single header line that starts like a tag pair but is malformed.

    The header parser recovers from this by skipping the line.
    """
    def __init__(self, line: str):
        super().__init__(f"Malformed PGN header line: {line!r}")
        self.line = line


class MalformedGameError(PgnError):
    """
    Signals that a game's move list contains a move that cannot be replayed.

    Navigation stays usable up to the last legal ply (`ply - 1`).

    Attributes:
        ply: The 0-based ply index of the rejected move.
        san: The rejected move token.
    """
    def __init__(self, ply: int, san: str, reason: str = ""):
        message = f"Illegal move {san!r} at ply {ply}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.ply = ply
        self.san = san

    @property
    def last_legal_ply(self) -> int:
        return self.ply - 1


class PgnServiceError(PgnError):
    """
    Raised for file I/O errors when reading from or writing to PGN files.

    This typically wraps lower-level exceptions like `FileNotFoundError` or `IOError`.
    """
    pass


# --- Rules engine ---

class RulesError(ChessViewerError):
    """Base class for rejections reported by the rules engine."""
    pass


class IllegalMoveError(RulesError):
    """Raised when a SAN move cannot be applied to the current position."""
    pass


class InvalidPositionError(RulesError):
    """Raised when a FEN string cannot be loaded as a position."""
    pass


# --- Engine ---

class EngineError(ChessViewerError):
    """
    Base class for errors related to a chess engine subprocess.

    Attributes:
        engine: An optional reference to the protocol of the failed engine,
                allowing for targeted cleanup.
    """
    def __init__(self, message: str, engine: Optional["chess.engine.Protocol"] = None):
        super().__init__(message)
        self.engine = engine


class EngineInitializationError(EngineError):
    """
    Raised when a chess engine process fails to initialize correctly.

    This typically occurs if the executable path is invalid, file permissions
    are incorrect, the engine rejects a configured option, or the process
    starts but never answers the `uci` and `isready` handshake.
    """
    pass


class EngineUnavailableError(EngineError):
    """Raised internally when analysis is requested without a ready engine."""
    pass


class EngineTimeoutError(EngineError):
    """Raised internally when a search produces no final result within its bounded wait."""
    pass


class EngineCrashedError(EngineError):
    """
    Reported when the engine process terminates unexpectedly.

    The session reports this once and does not restart the engine.
    """
    pass


# --- Import ---

class PlatformImportError(ChessViewerError):
    """Raised when games cannot be fetched from a URL or a chess platform."""
    pass
