"""Board geometry shared by the automaton, codec and scoring."""

from enum import IntEnum
from typing import Iterable, Tuple

WIDTH = 64
HEIGHT = 64
CELL_COUNT = WIDTH * HEIGHT
# Rows [0, MIDLINE) are red's home half, [MIDLINE, HEIGHT) blue's
MIDLINE = HEIGHT // 2

Board = Tuple[int, ...]


class Cell(IntEnum):
    EMPTY = 0
    RED = 1
    BLUE = 2


def index(x: int, y: int) -> int:
    return y * WIDTH + x


def empty_board() -> Board:
    return (Cell.EMPTY.value,) * CELL_COUNT


def make_board(cells: Iterable[int]) -> Board:
    """Freeze ``cells`` into a Board, checking size and cell values."""
    board = tuple(int(c) for c in cells)
    if len(board) != CELL_COUNT:
        raise ValueError(f"board must have {CELL_COUNT} cells, got {len(board)}")
    for i, c in enumerate(board):
        if c not in (0, 1, 2):
            raise ValueError(f"cell {i} has invalid value {c}")
    return board


def with_cells(board: Board, placements) -> Board:
    """Return a copy of ``board`` with ``{(x, y): cell}`` applied."""
    cells = list(board)
    for (x, y), value in placements.items():
        cells[index(x, y)] = int(value)
    return tuple(cells)
