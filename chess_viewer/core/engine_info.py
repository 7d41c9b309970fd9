# chess_viewer/core/engine_info.py
"""
Pure helpers that turn python-chess engine output into `EngineAnalysis` snapshots.

Nothing in this module performs I/O. `chess.engine` parses the engine's `info`
and `bestmove` lines; these functions fold the resulting `InfoDict` and
`BestMove` objects into the application's own data contract and decide which
progress updates are worth forwarding to a caller.

Evaluations are taken from `PovScore.white()`, so positive values favor White
regardless of the side to move.
"""
import dataclasses
from typing import Optional, Tuple

import chess.engine

from chess_viewer.types import AnalysisStatus, EngineAnalysis


def score_to_evaluation(score: chess.engine.PovScore, mate_evaluation: float = 100.0) -> Tuple[float, Optional[int]]:
    """
    Converts a score to pawns from White's point of view.

    Returns:
        The evaluation and, for mate scores, the signed mate distance. A mate
        pins the evaluation to +/- `mate_evaluation`; a side that has already
        been mated (`mate 0`) counts as lost for that side.
    """
    white = score.white()
    if white.is_mate():
        winning = white > chess.engine.Cp(0)
        return (mate_evaluation if winning else -mate_evaluation), white.mate()
    return white.score() / 100, None


def is_mainline(info: chess.engine.InfoDict) -> bool:
    return info.get("multipv", 1) == 1


def apply_info(
    analysis: EngineAnalysis, info: chess.engine.InfoDict, mate_evaluation: float = 100.0
) -> Optional[EngineAnalysis]:
    """
    Folds one engine `info` dictionary into an analysis.

    Returns None when the dictionary carries nothing to report: secondary
    `multipv` lines, and lines without a score or principal variation, such
    as `currmove` announcements. Those never advance the reported depth, so
    the depth of an analysis always matches its evaluation.
    """
    if not is_mainline(info) or ("score" not in info and not info.get("pv")):
        return None

    changes = {}
    if "depth" in info:
        changes["depth"] = info["depth"]
    if "score" in info:
        changes["evaluation"], changes["mate_distance"] = score_to_evaluation(info["score"], mate_evaluation)
    if info.get("pv"):
        changes["principal_variation"] = tuple(move.uci() for move in info["pv"])
        changes["best_move"] = changes["principal_variation"][0]
    if "nodes" in info:
        changes["node_count"] = info["nodes"]

    return dataclasses.replace(analysis, **changes)


def apply_bestmove(analysis: EngineAnalysis, best: chess.engine.BestMove) -> EngineAnalysis:
    """Marks an analysis complete, keeping the PV's move if the engine reports none."""
    return dataclasses.replace(
        analysis,
        best_move=best.move.uci() if best.move else analysis.best_move,
        status=AnalysisStatus.COMPLETE,
    )


class ProgressThrottle:
    """
    Decides which intermediate analyses are forwarded as progress.

    An update is forwarded the first time a new depth is reached when that
    depth is a multiple of `depth_step` or at least `depth_floor`. Updates at
    a depth that was already forwarded are dropped.
    """

    def __init__(self, depth_step: int = 3, depth_floor: int = 10):
        if depth_step < 1:
            raise ValueError("depth_step must be at least 1")
        self._depth_step = depth_step
        self._depth_floor = depth_floor
        self._last_notified_depth = 0

    def should_notify(self, depth: int) -> bool:
        if depth <= self._last_notified_depth:
            return False
        if depth % self._depth_step == 0 or depth >= self._depth_floor:
            self._last_notified_depth = depth
            return True
        return False
