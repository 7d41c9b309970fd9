# tests/core/test_pgn_formatter.py
from chess_viewer.core.header_parser import parse_header_section
from chess_viewer.core.pgn_formatter import (
    format_game_pgn, format_moves_for_display, format_pgn_headers, game_title
)
from chess_viewer.core.pgn_parser import parse_pgn
from chess_viewer.types import Game, MovePair


def test_headers_round_trip(fischer_spassky):
    headers = parse_pgn(fischer_spassky)[0].headers
    reparsed = parse_header_section(format_pgn_headers(headers).splitlines()).headers
    assert reparsed == headers


def test_canonical_order_then_original_order():
    headers = {"Annotator": "Z", "Black": "B", "PlyCount": "2", "White": "W", "Event": "E"}
    lines = format_pgn_headers(headers).splitlines()
    assert lines == ['[Event "E"]', '[White "W"]', '[Black "B"]', '[Annotator "Z"]', '[PlyCount "2"]']


def test_values_with_quotes_survive_a_round_trip():
    headers = {"Event": 'The "Immortal" Game', "Site": "C:\\games", "Round": ""}
    reparsed = parse_header_section(format_pgn_headers(headers).splitlines()).headers
    assert reparsed == headers


def test_format_game_pgn():
    game = Game(headers={"Event": "E", "Result": "1-0"}, moves=("e4", "e5"), result="1-0")
    assert format_game_pgn(game) == '[Event "E"]\n[Result "1-0"]\n\ne4 e5 1-0'


def test_formatted_game_parses_back_to_the_same_game(fischer_spassky):
    game = parse_pgn(fischer_spassky)[0]
    assert parse_pgn(format_game_pgn(game)) == [game]


def test_format_moves_for_display():
    assert format_moves_for_display(["e4", "e5", "Nf3"]) == [
        MovePair(move_number=1, white="e4", black="e5"),
        MovePair(move_number=2, white="Nf3", black=None),
    ]
    assert format_moves_for_display([]) == []


def test_game_title():
    assert game_title({"White": "Fischer", "Black": "Spassky", "Result": "1-0", "Date": "1992.11.04"}) == \
        "Fischer vs Spassky (1-0) 1992.11.04"
    assert game_title({}) == "Unknown vs Unknown (*)"
