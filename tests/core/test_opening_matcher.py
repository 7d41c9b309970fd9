# tests/core/test_opening_matcher.py
from chess_viewer.core.opening_book import OPENINGS
from chess_viewer.core.opening_matcher import (
    describe_opening, identify_opening, normalize_san, opening_name_for_eco
)
from chess_viewer.core.pgn_parser import parse_pgn
from chess_viewer.types import Game, Opening


def test_longest_match_wins_over_shorter_prefix():
    opening = identify_opening(["e4", "e5", "Nf3", "Nc6", "Bb5"])
    assert opening.eco == "C60"
    assert opening.name == "Ruy Lopez"


def test_shorter_games_match_shorter_entries():
    assert identify_opening(["e4", "e5"]).name == "King's Pawn Game"
    assert identify_opening(["e4", "c5", "Nf3"]).eco == "B20"


def test_captures_and_checks_are_ignored_when_matching():
    opening = identify_opening(["e4", "e5", "Nf3", "Nc6", "Bb5", "a6", "Bxc6", "dxc6"])
    assert opening.eco == "C68"
    assert opening.full_name == "Ruy Lopez: Exchange Variation"


def test_full_game_is_identified(fischer_spassky):
    assert identify_opening(parse_pgn(fischer_spassky)[0].moves).name == "Ruy Lopez"


def test_no_moves_or_no_match():
    assert identify_opening([]) is None
    assert identify_opening(["h4", "h5"], book=[Opening("B20", "Sicilian Defense", ("e4", "c5"))]) is None


def test_ties_go_to_the_first_entry():
    book = [Opening("X01", "First", ("d4",)), Opening("X02", "Second", ("d4",))]
    assert identify_opening(["d4", "d5"], book=book).eco == "X01"


def test_entries_without_moves_never_match():
    assert all(o.moves or identify_opening(["a3"], book=[o]) is None for o in OPENINGS)


def test_normalize_san():
    assert normalize_san("Bxc6+") == "Bc6"
    assert normalize_san("Qxf7#") == "Qf7"
    assert normalize_san("e4!?") == "e4"


def test_opening_name_for_eco():
    assert opening_name_for_eco("B20") == "Sicilian Defense"
    assert opening_name_for_eco("Z99") == "Z99"


def test_describe_opening_falls_back_to_eco_header():
    game = Game(headers={"ECO": "B20"}, moves=())
    assert describe_opening(game) == Opening(eco="B20", name="Sicilian Defense", moves=())

    game = Game(headers={"ECO": "Z99", "Opening": "Bongcloud"}, moves=())
    assert describe_opening(game).name == "Bongcloud"

    assert describe_opening(Game(headers={}, moves=())) is None
