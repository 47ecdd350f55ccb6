from enum import Enum
from typing import Tuple

from .board import Board, Cell, MIDLINE, WIDTH


class Winner(str, Enum):
    RED = 'Red'
    BLUE = 'Blue'
    TIE = 'Tie'


def invasion_counts(board: Board) -> Tuple[int, int]:
    """Count cells standing on the opposing half: ``(red_invasion, blue_invasion)``.

    Red owns rows ``y < 32``, so red cells at ``y >= 32`` are
    invaders; blue cells at ``y < 32`` likewise.
    """
    split = MIDLINE * WIDTH
    red_invasion = sum(1 for c in board[split:] if c == Cell.RED)
    blue_invasion = sum(1 for c in board[:split] if c == Cell.BLUE)
    return red_invasion, blue_invasion


def compute_winner(board: Board) -> Winner:
    red_invasion, blue_invasion = invasion_counts(board)
    if red_invasion > blue_invasion:
        return Winner.RED
    if blue_invasion > red_invasion:
        return Winner.BLUE
    return Winner.TIE
