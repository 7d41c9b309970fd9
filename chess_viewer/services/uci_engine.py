# chess_viewer/services/uci_engine.py
"""
Locates and starts the UCI engine configured in `EngineSettings`.

The engine process itself is driven by python-chess (`chess.engine`), which
performs the `uci`/`uciok` handshake, parses every line the engine sends and
serializes the commands sent to it. This module only decides which executable
to start.
"""

import os
import shutil
from pathlib import Path
from typing import Awaitable, Callable, List

import chess.engine
import structlog

from chess_viewer.config.settings import EngineSettings
from chess_viewer.exceptions import EngineInitializationError

logger = structlog.get_logger(__name__)

DEFAULT_ENGINE_NAME = "stockfish"
ENGINE_PATH_ENV = "STOCKFISH_PATH"

EngineFactory = Callable[[], Awaitable[chess.engine.UciProtocol]]


def resolve_engine_command(settings: EngineSettings) -> List[str]:
    """
    Resolves the command line that starts the configured engine.

    Candidates are tried in order: `settings.path` (a file or a command name on
    `PATH`), the `STOCKFISH_PATH` environment variable, then `stockfish` on
    `PATH`. `settings.arguments` are appended to the executable.

    Raises:
        EngineInitializationError: If no candidate is an executable file.
    """
    candidates = [settings.path, os.environ.get(ENGINE_PATH_ENV), DEFAULT_ENGINE_NAME]
    tried = []
    for candidate in filter(None, candidates):
        tried.append(candidate)
        path = Path(candidate)
        if path.is_file() and os.access(path, os.X_OK):
            return [str(path.resolve()), *settings.arguments]
        if found := shutil.which(candidate):
            return [found, *settings.arguments]

    raise EngineInitializationError(
        f"Engine executable not found (tried: {', '.join(tried)}). Install Stockfish, set "
        f"{ENGINE_PATH_ENV} or CHESS_VIEWER_ENGINE__PATH, or pass --engine-path."
    )


def make_engine_factory(settings: EngineSettings) -> EngineFactory:
    """Returns an async callable that starts the configured engine and completes `uci`/`uciok`."""
    async def open_engine() -> chess.engine.UciProtocol:
        command = resolve_engine_command(settings)
        _, engine = await chess.engine.popen_uci(command)
        logger.info("Engine process started.", command=command, name=engine.id.get("name"))
        return engine
    return open_engine
