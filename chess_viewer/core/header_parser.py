# chess_viewer/core/header_parser.py
"""
Extracts `[Key "Value"]` tag pairs from the top of a single game's text.
"""
import re
from typing import Dict, Iterable, List, Tuple

import structlog

from chess_viewer.exceptions import InvalidHeaderSyntaxError
from chess_viewer.types import HeaderSection

logger = structlog.get_logger(__name__)

# Values may contain escaped quotes and backslashes, per the PGN standard.
HEADER_LINE_RE = re.compile(r'^\[\s*([A-Za-z0-9_]+)\s+"((?:[^"\\]|\\.)*)"\s*\]$')
_ESCAPE_RE = re.compile(r"\\(.)")


def is_header_line(line: str) -> bool:
    """True if the stripped line is a complete, well-formed tag pair."""
    return HEADER_LINE_RE.match(line.strip()) is not None


def parse_header_line(line: str) -> Tuple[str, str]:
    """
    Parses one tag-pair line into its key and unescaped value.

    Raises:
        InvalidHeaderSyntaxError: If the line is not a complete tag pair, e.g.
            a missing closing quote or bracket.
    """
    match = HEADER_LINE_RE.match(line.strip())
    if match is None:
        raise InvalidHeaderSyntaxError(line)
    key, raw_value = match.groups()
    return key, _ESCAPE_RE.sub(r"\1", raw_value)


def parse_header_section(lines: Iterable[str]) -> HeaderSection:
    """
    Splits a game's lines into its tag pairs and its move-text lines.

    Headers are only read until the first non-empty line that does not start
    with `[`. From that line on, everything is move text, including lines that
    look like headers (for example bracketed text inside a comment). Malformed
    header lines inside the header section are skipped.

    Args:
        lines: The lines of one game, in order.

    Returns:
        A `HeaderSection` with the headers in first-seen order and the
        remaining move-text lines.
    """
    headers: Dict[str, str] = {}
    move_text_lines: List[str] = []
    in_headers = True

    for raw_line in lines:
        line = raw_line.strip()
        if in_headers:
            if not line:
                continue
            if line.startswith("["):
                try:
                    key, value = parse_header_line(line)
                except InvalidHeaderSyntaxError as e:
                    logger.debug("Skipping malformed header line.", line=e.line)
                    continue
                headers[key] = value
                continue
            in_headers = False
        if line:
            move_text_lines.append(line)

    return HeaderSection(headers=headers, move_text_lines=move_text_lines)
