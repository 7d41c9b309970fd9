# chess_viewer/services/platform_importer.py
"""
Fetches PGN documents from URLs and from the Chess.com and Lichess public APIs.

Every request goes through `retry_with_backoff`, so dropped connections and
timeouts are retried a few times before the import fails. Everything that
cannot be recovered is surfaced as a `PlatformImportError`.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import aiohttp
import structlog

from chess_viewer.config.settings import ImporterSettings
from chess_viewer.exceptions import PlatformImportError
from chess_viewer.types import (RESULT_BLACK_WINS, RESULT_DRAW, RESULT_UNKNOWN, RESULT_WHITE_WINS,
                                PlatformGame)
from chess_viewer.utils.retry import retry_with_backoff

logger = structlog.get_logger(__name__)

CHESSCOM_API_BASE = "https://api.chess.com/pub/player"
LICHESS_API_BASE = "https://lichess.org/api"

# Chess.com reports each side's outcome as a word; only a win is unambiguous.
_CHESSCOM_DRAW_RESULTS = {"agreed", "repetition", "stalemate", "insufficient", "50move", "timevsinsufficient"}


def _format_date(dt: datetime) -> str:
    return dt.strftime("%Y.%m.%d")


def _chesscom_result(game: Dict[str, Any]) -> str:
    white = (game.get("white") or {}).get("result")
    black = (game.get("black") or {}).get("result")
    if white == "win":
        return RESULT_WHITE_WINS
    if black == "win":
        return RESULT_BLACK_WINS
    if white in _CHESSCOM_DRAW_RESULTS:
        return RESULT_DRAW
    return RESULT_UNKNOWN


def _lichess_result(game: Dict[str, Any]) -> str:
    winner = game.get("winner")
    if winner == "white":
        return RESULT_WHITE_WINS
    if winner == "black":
        return RESULT_BLACK_WINS
    return RESULT_DRAW


class PlatformImporter:
    """Async client for importing games over HTTP."""

    def __init__(self, settings: ImporterSettings):
        self._settings = settings
        self._headers = {"User-Agent": settings.user_agent}
        self._timeout = aiohttp.ClientTimeout(total=settings.timeout_s)

    async def _get(self, url: str, source: str, accept: Optional[str] = None,
                   params: Optional[Dict[str, str]] = None) -> str:
        """Performs one GET with retries and returns the response body as text."""
        headers = dict(self._headers)
        if accept:
            headers["Accept"] = accept

        @retry_with_backoff(attempts=self._settings.retry_attempts, source=source)
        async def _fetch() -> str:
            async with aiohttp.ClientSession(headers=headers, timeout=self._timeout) as session:
                async with session.get(url, params=params) as resp:
                    resp.raise_for_status()
                    return await resp.text()

        try:
            return await _fetch()
        except aiohttp.ClientResponseError as e:
            raise PlatformImportError(f"{source} request to {url} failed with HTTP {e.status}") from e
        except (aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
            raise PlatformImportError(f"{source} request to {url} failed: {e!r}") from e

    async def _get_json(self, url: str, source: str) -> Dict[str, Any]:
        body = await self._get(url, source, accept="application/json")
        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise PlatformImportError(f"{source} returned invalid JSON from {url}") from e
        if not isinstance(data, dict):
            raise PlatformImportError(f"{source} returned an unexpected payload from {url}")
        return data

    async def fetch_pgn_from_url(self, url: str) -> str:
        """Downloads a PGN document from an arbitrary URL."""
        text = await self._get(url, "url")
        if not text.strip():
            raise PlatformImportError(f"No PGN content at {url}")
        logger.info("PGN downloaded.", url=url, size=len(text))
        return text

    async def fetch_chesscom_games(self, username: str, year: Optional[int] = None,
                                   month: Optional[int] = None) -> List[PlatformGame]:
        """
        Fetches one monthly archive of a Chess.com player's games.

        Args:
            username: The Chess.com username.
            year: Archive year; the current month is used unless both are given.
            month: Archive month, 1-12.
        """
        if not (year and month):
            now = datetime.now(timezone.utc)
            year, month = now.year, now.month
        url = f"{CHESSCOM_API_BASE}/{username}/games/{year}/{month:02d}"
        data = await self._get_json(url, "chess.com")

        games: List[PlatformGame] = []
        for game in data.get("games") or []:
            if not isinstance(game, dict) or not game.get("pgn"):
                continue
            end_time = game.get("end_time")
            date = _format_date(datetime.fromtimestamp(end_time, timezone.utc)) if end_time else ""
            games.append(PlatformGame(
                pgn=game["pgn"],
                white=(game.get("white") or {}).get("username") or "Unknown",
                black=(game.get("black") or {}).get("username") or "Unknown",
                result=_chesscom_result(game),
                date=date,
                time_control=game.get("time_control"),
                rated=game.get("rated"),
            ))
        logger.info("Chess.com games fetched.", username=username, year=year, month=month, count=len(games))
        return games

    async def fetch_lichess_games(self, username: str, max_games: Optional[int] = None) -> List[PlatformGame]:
        """Fetches a Lichess player's most recent games from the NDJSON export."""
        url = f"{LICHESS_API_BASE}/games/user/{username}"
        params = {"max": str(max_games or self._settings.lichess_max_games), "pgnInJson": "true"}
        body = await self._get(url, "lichess", accept="application/x-ndjson", params=params)

        games: List[PlatformGame] = []
        for line in body.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                game = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("Skipping malformed Lichess record.", username=username)
                continue
            if not isinstance(game, dict) or not game.get("pgn"):
                continue
            players = game.get("players") or {}
            clock = game.get("clock") or {}
            created_at = game.get("createdAt")
            games.append(PlatformGame(
                pgn=game["pgn"],
                white=((players.get("white") or {}).get("user") or {}).get("name") or "Unknown",
                black=((players.get("black") or {}).get("user") or {}).get("name") or "Unknown",
                result=_lichess_result(game),
                date=_format_date(datetime.fromtimestamp(created_at / 1000, timezone.utc)) if created_at else "",
                time_control=f"{clock['initial']}+{clock.get('increment', 0)}" if clock.get("initial") else None,
                rated=game.get("rated"),
            ))
        logger.info("Lichess games fetched.", username=username, count=len(games))
        return games

    async def fetch_player_info(self, platform: str, username: str) -> Dict[str, Any]:
        """Fetches a player's public profile. `platform` is "chess.com" or "lichess"."""
        if platform == "chess.com":
            url = f"{CHESSCOM_API_BASE}/{username}"
        elif platform == "lichess":
            url = f"{LICHESS_API_BASE}/user/{username}"
        else:
            raise PlatformImportError(f"Unknown platform: {platform}")
        return await self._get_json(url, platform)


def combine_games(games: Sequence[PlatformGame]) -> str:
    """Joins fetched games into one PGN document, one blank line between games."""
    return "\n\n".join(game.pgn.strip() for game in games)
