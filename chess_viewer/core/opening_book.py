# chess_viewer/core/opening_book.py
"""
A static table of common openings, keyed by their main-line move sequence.
"""
from typing import Optional, Tuple

from chess_viewer.types import Opening


def _o(eco: str, name: str, moves: str, variation: Optional[str] = None) -> Opening:
    return Opening(eco=eco, name=name, moves=tuple(moves.split()), variation=variation)


OPENINGS: Tuple[Opening, ...] = (
    # Italian Game
    _o("C50", "Italian Game", "e4 e5 Nf3 Nc6 Bc4"),
    _o("C51", "Evans Gambit", "e4 e5 Nf3 Nc6 Bc4 Bc5 b4"),
    _o("C53", "Italian Game", "e4 e5 Nf3 Nc6 Bc4 Bc5 c3", "Classical"),
    # Spanish (Ruy Lopez)
    _o("C60", "Ruy Lopez", "e4 e5 Nf3 Nc6 Bb5"),
    _o("C65", "Ruy Lopez", "e4 e5 Nf3 Nc6 Bb5 Nf6", "Berlin Defense"),
    _o("C67", "Ruy Lopez", "e4 e5 Nf3 Nc6 Bb5 Nf6 O-O Nxe4", "Berlin Defense, Rio de Janeiro"),
    _o("C68", "Ruy Lopez", "e4 e5 Nf3 Nc6 Bb5 a6 Bxc6", "Exchange Variation"),
    # Sicilian Defense
    _o("B20", "Sicilian Defense", "e4 c5"),
    _o("B21", "Sicilian Defense", "e4 c5 d4 cxd4 c3", "Smith-Morra Gambit"),
    _o("B22", "Sicilian Defense", "e4 c5 c3", "Alapin"),
    _o("B23", "Sicilian Defense", "e4 c5 Nc3", "Closed"),
    _o("B27", "Sicilian Defense", "e4 c5 Nf3 g6", "Hyperaccelerated Dragon"),
    _o("B30", "Sicilian Defense", "e4 c5 Nf3 Nc6", "Old Sicilian"),
    _o("B32", "Sicilian Defense", "e4 c5 Nf3 Nc6 d4 cxd4 Nxd4", "Open"),
    _o("B33", "Sicilian Defense", "e4 c5 Nf3 Nc6 d4 cxd4 Nxd4 Nf6 Nc3 e5", "Sveshnikov"),
    _o("B40", "Sicilian Defense", "e4 c5 Nf3 e6", "French Variation"),
    _o("B50", "Sicilian Defense", "e4 c5 Nf3 d6"),
    _o("B51", "Sicilian Defense", "e4 c5 Nf3 d6 Bb5+", "Moscow"),
    _o("B54", "Sicilian Defense", "e4 c5 Nf3 d6 d4 cxd4 Nxd4 Nf6 Nc3 g6", "Dragon"),
    _o("B70", "Sicilian Defense", "e4 c5 Nf3 d6 d4 cxd4 Nxd4 Nf6 Nc3 g6", "Dragon"),
    _o("B90", "Sicilian Defense", "e4 c5 Nf3 d6 d4 cxd4 Nxd4 Nf6 Nc3 a6", "Najdorf"),
    # French Defense
    _o("C00", "French Defense", "e4 e6"),
    _o("C01", "French Defense", "e4 e6 d4 d5 exd5", "Exchange"),
    _o("C02", "French Defense", "e4 e6 d4 d5 e5", "Advance"),
    _o("C03", "French Defense", "e4 e6 d4 d5 Nd2", "Tarrasch"),
    _o("C10", "French Defense", "e4 e6 d4 d5 Nc3 dxe4", "Rubinstein"),
    _o("C11", "French Defense", "e4 e6 d4 d5 Nc3 Nf6", "Classical"),
    _o("C15", "French Defense", "e4 e6 d4 d5 Nc3 Bb4", "Winawer"),
    # Caro-Kann Defense
    _o("B10", "Caro-Kann Defense", "e4 c6"),
    _o("B11", "Caro-Kann Defense", "e4 c6 Nc3 d5 Nf3", "Two Knights"),
    _o("B12", "Caro-Kann Defense", "e4 c6 d4 d5 e5", "Advance"),
    _o("B13", "Caro-Kann Defense", "e4 c6 d4 d5 exd5", "Exchange"),
    _o("B15", "Caro-Kann Defense", "e4 c6 d4 d5 Nc3 dxe4 Nxe4", "Main Line"),
    # King's Gambit
    _o("C30", "King's Gambit", "e4 e5 f4"),
    _o("C31", "King's Gambit Declined", "e4 e5 f4 Bc5"),
    _o("C33", "King's Gambit Accepted", "e4 e5 f4 exf4"),
    # Queen's Gambit
    _o("D06", "Queen's Gambit", "d4 d5 c4"),
    _o("D07", "Queen's Gambit Declined", "d4 d5 c4 Nc6", "Chigorin Defense"),
    _o("D20", "Queen's Gambit Accepted", "d4 d5 c4 dxc4"),
    _o("D30", "Queen's Gambit Declined", "d4 d5 c4 e6"),
    _o("D35", "Queen's Gambit Declined", "d4 d5 c4 e6 Nc3 Nf6 cxd5", "Exchange"),
    _o("D43", "Queen's Gambit Declined", "d4 d5 c4 e6 Nc3 Nf6 Nf3 c6", "Semi-Slav"),
    # Indian Defenses
    _o("E00", "Catalan Opening", "d4 Nf6 c4 e6 g3"),
    _o("E20", "Nimzo-Indian Defense", "d4 Nf6 c4 e6 Nc3 Bb4"),
    _o("E32", "Nimzo-Indian Defense", "d4 Nf6 c4 e6 Nc3 Bb4 Qc2", "Classical"),
    _o("E60", "King's Indian Defense", "d4 Nf6 c4 g6"),
    _o("E70", "King's Indian Defense", "d4 Nf6 c4 g6 Nc3 Bg7 e4", "Normal"),
    _o("E90", "King's Indian Defense", "d4 Nf6 c4 g6 Nc3 Bg7 e4 d6 Nf3 O-O Be2", "Classical"),
    _o("D70", "Grünfeld Defense", "d4 Nf6 c4 g6 Nc3 d5"),
    _o("D80", "Grünfeld Defense", "d4 Nf6 c4 g6 Nc3 d5 Qb3", "Russian"),
    _o("A50", "Queen's Indian Defense", "d4 Nf6 c4 b6"),
    # English Opening
    _o("A10", "English Opening", "c4"),
    _o("A20", "English Opening", "c4 e5", "Reversed Sicilian"),
    _o("A30", "English Opening", "c4 c5", "Symmetrical"),
    # Others
    _o("A00", "Uncommon Opening", ""),
    _o("A40", "Queen's Pawn Opening", "d4"),
    _o("A45", "Trompowsky Attack", "d4 Nf6 Bg5"),
    _o("B00", "King's Pawn Opening", "e4"),
    _o("B01", "Scandinavian Defense", "e4 d5"),
    _o("B02", "Alekhine Defense", "e4 Nf6"),
    _o("B06", "Modern Defense", "e4 g6"),
    _o("B07", "Pirc Defense", "e4 d6 Nf3 Nf6"),
    _o("C20", "King's Pawn Game", "e4 e5"),
    _o("C40", "King's Knight Opening", "e4 e5 Nf3"),
    _o("C44", "Scotch Game", "e4 e5 Nf3 Nc6 d4"),
    _o("C45", "Scotch Game", "e4 e5 Nf3 Nc6 d4 exd4 Nxd4 Nf6", "Schmidt"),
    _o("C46", "Three Knights Game", "e4 e5 Nf3 Nc6 Nc3"),
    _o("C47", "Four Knights Game", "e4 e5 Nf3 Nc6 Nc3 Nf6"),
    _o("C48", "Four Knights Game", "e4 e5 Nf3 Nc6 Nc3 Nf6 Bb5", "Spanish"),
    _o("C55", "Two Knights Defense", "e4 e5 Nf3 Nc6 Bc4 Nf6"),
    _o("C57", "Two Knights Defense", "e4 e5 Nf3 Nc6 Bc4 Nf6 Ng5 d5 exd5 Nd4", "Fried Liver Attack"),
    _o("D00", "Queen's Pawn Game", "d4 d5"),
    _o("D10", "Slav Defense", "d4 d5 c4 c6"),
    _o("D15", "Slav Defense", "d4 d5 c4 c6 Nf3 Nf6 Nc3", "Main Line"),
    _o("E10", "Blumenfeld Gambit", "d4 Nf6 c4 e6 Nf3 c5 d5 b5"),
    _o("E15", "Queen's Indian Defense", "d4 Nf6 c4 b6 Nf3 e6 g3", "Main Line"),
)
