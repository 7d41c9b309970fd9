# tests/core/test_header_parser.py
import pytest

from chess_viewer.core.header_parser import is_header_line, parse_header_line, parse_header_section
from chess_viewer.exceptions import InvalidHeaderSyntaxError


def test_parse_header_line():
    assert parse_header_line('[Event "F/S Return Match"]') == ("Event", "F/S Return Match")


def test_escaped_quotes_are_unescaped():
    assert parse_header_line(r'[Annotator "Kasparov \"Garry\""]') == ("Annotator", 'Kasparov "Garry"')


@pytest.mark.parametrize("line", ['[Event "Unterminated]', '[Event "No bracket"', "[Event]", "Event \"x\""])
def test_malformed_header_lines_raise(line):
    assert not is_header_line(line)
    with pytest.raises(InvalidHeaderSyntaxError):
        parse_header_line(line)


def test_header_section_stops_at_first_move_text_line():
    lines = [
        '[White "A"]',
        '[Black "B"]',
        "",
        "1. e4 {see [Note \"x\"]} e5",
        '[Looks "Like a header"]',
    ]
    section = parse_header_section(lines)
    assert section.headers == {"White": "A", "Black": "B"}
    assert section.move_text_lines == ["1. e4 {see [Note \"x\"]} e5", '[Looks "Like a header"]']


def test_malformed_header_inside_section_is_skipped():
    section = parse_header_section(['[White "A"]', '[Broken "value]', '[Black "B"]', "1. d4"])
    assert section.headers == {"White": "A", "Black": "B"}
    assert section.move_text_lines == ["1. d4"]


def test_duplicate_keys_keep_the_last_value():
    section = parse_header_section(['[Round "1"]', '[Round "2"]'])
    assert section.headers == {"Round": "2"}
    assert section.move_text_lines == []
