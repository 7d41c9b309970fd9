# tests/core/test_engine_info.py
import chess
import pytest
from chess.engine import BestMove, Cp, Mate, PovScore

from chess_viewer.core.engine_info import (
    ProgressThrottle, apply_bestmove, apply_info, is_mainline, score_to_evaluation
)
from chess_viewer.types import AnalysisStatus, EngineAnalysis

WHITE_TO_MOVE = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"
BLACK_TO_MOVE = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
BLACK_IS_MATED = "R5k1/5ppp/8/8/8/8/8/6K1 b - - 1 1"


def _pv(*ucis):
    return [chess.Move.from_uci(uci) for uci in ucis]


def test_full_info_dict():
    info = {"depth": 12, "seldepth": 18, "multipv": 1, "score": PovScore(Cp(34), chess.WHITE),
            "nodes": 123456, "pv": _pv("e2e4", "e7e5", "g1f3")}

    analysis = apply_info(EngineAnalysis(fen=WHITE_TO_MOVE), info)

    assert analysis.depth == 12
    assert analysis.evaluation == pytest.approx(0.34)
    assert analysis.mate_distance is None
    assert analysis.node_count == 123456
    assert analysis.principal_variation == ("e2e4", "e7e5", "g1f3")
    assert analysis.best_move == "e2e4"


def test_centipawns_become_pawns_from_whites_point_of_view():
    white = apply_info(EngineAnalysis(fen=WHITE_TO_MOVE), {"depth": 5, "score": PovScore(Cp(50), chess.WHITE)})
    black = apply_info(EngineAnalysis(fen=BLACK_TO_MOVE), {"depth": 5, "score": PovScore(Cp(50), chess.BLACK)})
    assert white.evaluation == pytest.approx(0.5)
    assert black.evaluation == pytest.approx(-0.5)


def test_mate_scores_pin_the_evaluation():
    assert score_to_evaluation(PovScore(Mate(3), chess.WHITE)) == (100.0, 3)
    assert score_to_evaluation(PovScore(Mate(2), chess.BLACK), mate_evaluation=50.0) == (-50.0, -2)
    assert score_to_evaluation(PovScore(Mate(-4), chess.BLACK)) == (100.0, 4)


@pytest.mark.parametrize("side_mated, expected", [(chess.BLACK, 100.0), (chess.WHITE, -100.0)])
def test_mate_zero_is_a_loss_for_the_side_to_move(side_mated, expected):
    evaluation, mate_distance = score_to_evaluation(PovScore(Mate(0), side_mated))
    assert evaluation == expected
    assert mate_distance == 0


def test_checkmated_black_shows_white_winning():
    info = {"depth": 0, "score": PovScore(Mate(0), chess.BLACK)}
    analysis = apply_info(EngineAnalysis(fen=BLACK_IS_MATED), info)
    assert analysis.evaluation == 100.0
    assert analysis.mate_distance == 0


def test_lines_without_score_or_pv_are_skipped():
    analysis = EngineAnalysis(fen=WHITE_TO_MOVE, depth=11, evaluation=0.2)
    currmove = {"depth": 12, "currmove": chess.Move.from_uci("e2e4"), "currmovenumber": 1}

    assert apply_info(analysis, currmove) is None
    assert apply_info(analysis, {"string": "NNUE evaluation enabled"}) is None


def test_secondary_multipv_lines_are_skipped():
    best = {"depth": 8, "multipv": 1, "score": PovScore(Cp(40), chess.WHITE), "pv": _pv("e2e4")}
    worse = {"depth": 8, "multipv": 2, "score": PovScore(Cp(-50), chess.WHITE), "pv": _pv("a2a4")}

    analysis = apply_info(EngineAnalysis(fen=WHITE_TO_MOVE), best)

    assert not is_mainline(worse)
    assert apply_info(analysis, worse) is None
    assert analysis.best_move == "e2e4"
    assert analysis.evaluation == pytest.approx(0.4)


def test_cp_score_clears_an_earlier_mate():
    analysis = apply_info(EngineAnalysis(fen=WHITE_TO_MOVE), {"score": PovScore(Mate(3), chess.WHITE)})
    analysis = apply_info(analysis, {"score": PovScore(Cp(-120), chess.WHITE)})
    assert analysis.mate_distance is None
    assert analysis.evaluation == pytest.approx(-1.2)


def test_bestmove_completes_the_analysis():
    analysis = apply_info(EngineAnalysis(fen=WHITE_TO_MOVE), {"depth": 3, "pv": _pv("d2d4", "d7d5"), "nodes": 99})
    assert analysis.best_move == "d2d4"
    assert analysis.status is AnalysisStatus.IN_PROGRESS

    done = apply_bestmove(analysis, BestMove(None, None))
    assert done.best_move == "d2d4"
    assert done.status is AnalysisStatus.COMPLETE
    assert apply_bestmove(analysis, BestMove(chess.Move.from_uci("c2c4"), None)).best_move == "c2c4"


def test_progress_throttle_milestones():
    throttle = ProgressThrottle(depth_step=3, depth_floor=10)
    notified = [depth for depth in range(1, 16) if throttle.should_notify(depth)]
    assert notified == [3, 6, 9, 10, 11, 12, 13, 14, 15]


def test_progress_throttle_ignores_repeated_depths():
    throttle = ProgressThrottle()
    assert throttle.should_notify(3)
    assert not throttle.should_notify(3)
    assert not throttle.should_notify(2)


def test_progress_throttle_rejects_zero_step():
    with pytest.raises(ValueError):
        ProgressThrottle(depth_step=0)
