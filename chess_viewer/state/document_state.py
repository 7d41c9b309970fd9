# chess_viewer/state/document_state.py
"""
Defines the central state model for a loaded PGN document.

`DocumentState` is the single owner of everything a viewer displays: the list
of games, the selected game, the navigation cursor over it, the identified
opening and the live engine analysis of the current position. The cursor is
the only writer of the current position; the analysis session only reads it,
and its results are applied only while they still describe that position.
"""
import asyncio
from typing import Callable, List, Optional

import structlog

from chess_viewer.config.settings import AnalysisSettings
from chess_viewer.core.navigation import NavigationCursor, RulesEngineFactory
from chess_viewer.core.opening_matcher import describe_opening
from chess_viewer.core.pgn_formatter import format_game_pgn
from chess_viewer.core.pgn_parser import load_games
from chess_viewer.core.rules_engine import PythonChessRules
from chess_viewer.exceptions import MalformedGameError
from chess_viewer.services.analysis_session import AnalysisRequest, EngineAnalysisSession
from chess_viewer.types import FEN, AnalysisStatus, EngineAnalysis, Game, MovePair, NavigationSnapshot, Opening

logger = structlog.get_logger(__name__)

AnalysisCallback = Callable[[EngineAnalysis], None]


class DocumentState:
    """Holds and manages the state of one displayed PGN document."""

    def __init__(
        self,
        session: Optional[EngineAnalysisSession] = None,
        analysis_settings: Optional[AnalysisSettings] = None,
        rules_factory: RulesEngineFactory = PythonChessRules,
        on_analysis: Optional[AnalysisCallback] = None,
        on_malformed: Optional[Callable[[MalformedGameError], None]] = None,
    ):
        """
        Args:
            session: The engine session to analyse positions with. Without one
                the document is navigable but never analysed.
            analysis_settings: Supplies the debounce delay.
            rules_factory: Creates the cursor's rules engine.
            on_analysis: Receives every analysis applied to the current position.
            on_malformed: Receives the one report per game about an unplayable move.
        """
        self._session = session
        self._analysis_settings = analysis_settings or AnalysisSettings()
        self._cursor = NavigationCursor(rules_factory, on_malformed=self._handle_malformed)
        self.on_analysis = on_analysis
        self.on_malformed = on_malformed

        self._games: List[Game] = []
        self._selected_index: Optional[int] = None
        self._opening: Optional[Opening] = None
        self._analysis: Optional[EngineAnalysis] = None
        self._analysis_task: Optional[asyncio.Task] = None
        self._analyzed_fen: Optional[FEN] = None

    # --- Read-only views ---

    @property
    def games(self) -> List[Game]:
        return list(self._games)

    @property
    def selected_index(self) -> Optional[int]:
        return self._selected_index

    @property
    def selected_game(self) -> Optional[Game]:
        return self._cursor.game

    @property
    def analysis_session(self) -> Optional[EngineAnalysisSession]:
        return self._session

    @property
    def cursor(self) -> NavigationCursor:
        return self._cursor

    @property
    def position(self) -> Optional[FEN]:
        return self._cursor.position

    @property
    def opening(self) -> Optional[Opening]:
        return self._opening

    @property
    def analysis(self) -> Optional[EngineAnalysis]:
        """The latest analysis of the current position, if any has arrived."""
        return self._analysis

    @property
    def analysis_task(self) -> Optional[asyncio.Task]:
        return self._analysis_task

    @property
    def malformed_game(self) -> Optional[MalformedGameError]:
        return self._cursor.malformed_game

    def move_pairs(self) -> List[MovePair]:
        return self._cursor.move_pairs()

    def export_selected_pgn(self) -> Optional[str]:
        game = self.selected_game
        return format_game_pgn(game) if game else None

    # --- Document lifecycle ---

    def load_text(self, text: str) -> List[Game]:
        """
        Replaces the document with the games parsed from `text` and selects the first.

        Raises:
            EmptyDocumentError: If no game can be recovered. The current
                document is left untouched in that case.
        """
        games = load_games(text)
        self.unload()
        self._games = games
        self.select_game(0)
        return self.games

    def select_game(self, index: int) -> NavigationSnapshot:
        """Loads game `index` into the cursor at its starting position."""
        if not 0 <= index < len(self._games):
            raise IndexError(f"Game index {index} out of range for {len(self._games)} games")
        self._cancel_analysis()
        self._selected_index = index
        game = self._games[index]
        self._opening = describe_opening(game)
        snapshot = self._cursor.load(game)
        logger.info("Game selected.", index=index, ply_count=game.ply_count,
                    opening=self._opening.full_name if self._opening else None)
        self._position_changed(force=True)
        return snapshot

    def unload(self) -> None:
        """Clears the document and cancels any analysis."""
        self._cancel_analysis()
        self._cursor.unload()
        self._games = []
        self._selected_index = None
        self._opening = None
        self._analyzed_fen = None

    async def stop_analysis(self) -> None:
        """Cancels pending analysis and tells the engine to stop searching."""
        self._cancel_analysis()
        if self._session is not None:
            await self._session.stop()

    async def close(self) -> None:
        """Unloads the document and shuts down its engine session."""
        self.unload()
        if self._session is not None:
            await self._session.close()

    # --- Navigation ---

    def go_to_start(self) -> Optional[NavigationSnapshot]:
        return self._navigated(self._cursor.go_to_start())

    def go_to_end(self) -> Optional[NavigationSnapshot]:
        return self._navigated(self._cursor.go_to_end())

    def step_forward(self) -> Optional[NavigationSnapshot]:
        return self._navigated(self._cursor.step_forward())

    def step_backward(self) -> Optional[NavigationSnapshot]:
        return self._navigated(self._cursor.step_backward())

    def go_to_ply(self, ply: int) -> Optional[NavigationSnapshot]:
        return self._navigated(self._cursor.go_to_ply(ply))

    def _navigated(self, snapshot: Optional[NavigationSnapshot]) -> Optional[NavigationSnapshot]:
        if snapshot is not None:
            self._position_changed()
        return snapshot

    # --- Analysis ---

    def _position_changed(self, force: bool = False) -> None:
        fen = self.position
        if not force and fen == self._analyzed_fen:
            return
        self._cancel_analysis()
        self._analyzed_fen = fen
        if self._session is None or fen is None:
            return
        # Must be called from a running event loop when a session is attached.
        self._analysis_task = asyncio.create_task(self._analyze_after_debounce(fen))

    def _cancel_analysis(self) -> None:
        if self._analysis_task is not None and not self._analysis_task.done():
            self._analysis_task.cancel()
        self._analysis_task = None
        self._analysis = None

    async def _analyze_after_debounce(self, fen: FEN) -> None:
        assert self._session is not None
        await asyncio.sleep(self._analysis_settings.debounce_s)
        request = self._session.request(fen)
        try:
            async for update in request:
                self._apply_analysis(request, update)
            self._apply_analysis(request, await request.result())
        except asyncio.CancelledError:
            request.cancel()
            raise

    def _apply_analysis(self, request: AnalysisRequest, analysis: EngineAnalysis) -> None:
        assert self._session is not None
        if request is not self._session.current_request or analysis.fen != self.position:
            logger.debug("Discarding analysis for a position no longer displayed.", fen=analysis.fen)
            return
        if analysis.status is AnalysisStatus.CANCELLED:
            return
        self._analysis = analysis
        if self.on_analysis is not None:
            self.on_analysis(analysis)

    def _handle_malformed(self, error: MalformedGameError) -> None:
        if self.on_malformed is not None:
            self.on_malformed(error)
