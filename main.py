# main.py
"""
The command-line entry point of the chess viewer.

Loads a PGN document from a file, a URL or a chess platform, selects a game and
a ply, and prints the headers, opening, move list and position, optionally
with a live engine evaluation.
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from chess_viewer.config.settings import Settings
from chess_viewer.containers import get_container
from chess_viewer.core.pgn_formatter import game_title
from chess_viewer.exceptions import ChessViewerError
from chess_viewer.services.pgn_service import PgnService
from chess_viewer.services.platform_importer import PlatformImporter, combine_games
from chess_viewer.state.document_state import DocumentState
from chess_viewer.types import EngineAnalysis
from chess_viewer.utils.logging_config import setup_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="View PGN games and evaluate positions with a UCI engine.")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("pgn", nargs="?", help="Path or http(s) URL of a PGN document")
    source.add_argument("--chesscom", metavar="USER", help="Import this month's games of a Chess.com player")
    source.add_argument("--lichess", metavar="USER", help="Import the recent games of a Lichess player")
    parser.add_argument("--list", action="store_true", help="List the games in the document and exit")
    parser.add_argument("--game", type=int, default=1, help="1-based index of the game to show (default: 1)")
    parser.add_argument("--ply", type=int, default=None,
                        help="Ply to show; -1 is the starting position (default: last ply)")
    parser.add_argument("--analyze", action="store_true", help="Evaluate the shown position with the engine")
    parser.add_argument("--depth", type=int, default=None, help="Search depth for --analyze")
    parser.add_argument("--engine-path", default=None, help="Path to a UCI engine executable")
    parser.add_argument("--export", type=Path, default=None, help="Append the shown game to this PGN file")
    parser.add_argument("--log-level", default=None, help="Logging level (default: from settings)")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")
    return parser


async def read_document(args: argparse.Namespace, pgn_service: PgnService, importer: PlatformImporter) -> str:
    if args.chesscom:
        return combine_games(await importer.fetch_chesscom_games(args.chesscom))
    if args.lichess:
        return combine_games(await importer.fetch_lichess_games(args.lichess))
    if args.pgn.startswith(("http://", "https://")):
        return await importer.fetch_pgn_from_url(args.pgn)
    return await pgn_service.read_text(Path(args.pgn))


def format_evaluation(analysis: EngineAnalysis) -> str:
    if analysis.mate_distance is not None:
        return f"#{analysis.mate_distance}"
    return f"{analysis.evaluation:+.2f}"


def print_game(state: DocumentState) -> None:
    game = state.selected_game
    assert game is not None
    for key, value in game.headers.items():
        print(f"[{key} \"{value}\"]")
    if state.opening:
        print(f"Opening: {state.opening.eco} {state.opening.full_name}")
    print()
    for pair in state.move_pairs():
        print(f"{pair.move_number:>3}. {pair.white or '':<8} {pair.black or ''}")
    print(f"Result: {game.result}")
    print()
    snapshot = state.cursor.snapshot
    assert snapshot is not None
    last = f" after {snapshot.last_move.san}" if snapshot.last_move else ""
    print(f"Ply {snapshot.ply}{last}: {snapshot.fen}")
    if state.malformed_game:
        print(f"Warning: {state.malformed_game}", file=sys.stderr)


async def run(args: argparse.Namespace, settings: Settings) -> int:
    container = get_container(settings)
    pgn_service = container.resolve(PgnService)
    importer = container.resolve(PlatformImporter)

    text = await read_document(args, pgn_service, importer)

    if args.analyze:
        state: DocumentState = container.resolve(DocumentState)
        assert state.analysis_session is not None
        await state.analysis_session.initialize()
        state.on_analysis = lambda a: logger.info(
            "Search progress.", depth=a.depth, evaluation=format_evaluation(a), status=a.status.value)
    else:
        state = DocumentState(analysis_settings=settings.analysis)

    try:
        games = state.load_text(text)
        if args.list:
            for index, game in enumerate(games, start=1):
                print(f"{index:>4}  {game_title(game.headers)}  ({game.ply_count} plies)")
            return 0

        if not 1 <= args.game <= len(games):
            print(f"Error: game {args.game} is out of range; the document holds {len(games)} game(s).", file=sys.stderr)
            return 2
        state.select_game(args.game - 1)
        state.go_to_ply(args.ply if args.ply is not None else state.cursor.last_ply)
        print_game(state)

        if args.export:
            await pgn_service.write_games([state.selected_game], args.export)

        if args.analyze and state.analysis_task is not None:
            await state.analysis_task
            analysis = state.analysis
            if analysis is not None:
                print(f"Evaluation: {format_evaluation(analysis)} depth {analysis.depth} "
                      f"best {analysis.best_move or '-'} ({analysis.status.value})")
    finally:
        await state.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to parse arguments, set up logging and run the viewer."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    if args.engine_path:
        settings.engine.path = args.engine_path
    if args.depth:
        settings.analysis.depth = args.depth
    setup_logging(log_level=args.log_level or settings.log_level, force_json_console=args.json_logs)

    try:
        return asyncio.run(run(args, settings))
    except ChessViewerError as e:
        logger.error("Viewer failed.", error=str(e), error_type=type(e).__name__)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
