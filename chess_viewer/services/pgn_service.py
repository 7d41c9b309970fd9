# chess_viewer/services/pgn_service.py
"""
Provides a service for handling all filesystem interactions with PGN files.

This module acts as a stateless adapter to the filesystem. It reads PGN
documents for the viewer and appends games back out in canonical form, using
`aiofiles` so that file I/O never blocks the event loop. Parsing itself lives
in `chess_viewer.core.pgn_parser`; this service only moves text in and out.
"""

from pathlib import Path
from typing import Iterable, List

import aiofiles
import structlog

from chess_viewer.core.pgn_formatter import format_game_pgn
from chess_viewer.core.pgn_parser import load_games
from chess_viewer.exceptions import PgnServiceError
from chess_viewer.types import Game

logger = structlog.get_logger(__name__)


class PgnService:
    """A stateless service for handling PGN file I/O operations."""

    async def read_text(self, pgn_filepath: Path) -> str:
        """
        Reads a whole PGN document as text.

        Undecodable bytes are replaced rather than rejected, since PGN files in
        the wild are frequently Latin-1.

        Raises:
            PgnServiceError: If the file cannot be found or read.
        """
        try:
            async with aiofiles.open(pgn_filepath, "r", encoding="utf-8", errors="replace") as f:
                text = await f.read()
        except FileNotFoundError as e:
            raise PgnServiceError(f"Input PGN file not found: {pgn_filepath}") from e
        except OSError as e:
            raise PgnServiceError(f"Failed to read PGN file {pgn_filepath}: {e}") from e
        logger.debug("PGN file read.", path=str(pgn_filepath), size=len(text))
        return text

    async def load_games(self, pgn_filepath: Path) -> List[Game]:
        """
        Reads and parses a PGN file.

        Raises:
            PgnServiceError: If the file cannot be read.
            EmptyDocumentError: If the file holds no recognizable game.
        """
        games = load_games(await self.read_text(pgn_filepath))
        logger.info("Games loaded from file.", path=str(pgn_filepath), count=len(games))
        return games

    async def write_games(self, games: Iterable[Game], output_filepath: Path) -> int:
        """
        Appends games to a PGN file in canonical form, creating it if needed.

        Returns:
            The number of games written.

        Raises:
            PgnServiceError: If the file cannot be written to.
        """
        # PGN requires a blank line between games.
        chunks = [format_game_pgn(game) + "\n\n" for game in games]
        try:
            async with aiofiles.open(output_filepath, "a", encoding="utf-8") as f:
                await f.write("".join(chunks))
        except OSError as e:
            raise PgnServiceError(f"Failed to export games to {output_filepath}: {e}") from e
        logger.info("Games exported.", path=str(output_filepath), count=len(chunks))
        return len(chunks)
