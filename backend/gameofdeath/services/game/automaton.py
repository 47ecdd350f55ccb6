"""Two-color Game of Life.

Red and blue cells are both alive but only count their own color for
survival. Births need exactly three live neighbours and take the majority
color among them. The grid does not wrap: cells past the edge are dead.
"""

from typing import List, Tuple

from .board import Board, Cell, HEIGHT, WIDTH

_OFFSETS = [(dx, dy) for dy in (-1, 0, 1) for dx in (-1, 0, 1) if (dx, dy) != (0, 0)]


def count_neighbors(board: Board, x: int, y: int) -> Tuple[int, int]:
    """Return ``(red, blue)`` live neighbour counts of the cell at (x, y)."""
    red = blue = 0
    for dx, dy in _OFFSETS:
        nx, ny = x + dx, y + dy
        if 0 <= nx < WIDTH and 0 <= ny < HEIGHT:
            value = board[ny * WIDTH + nx]
            if value == Cell.RED:
                red += 1
            elif value == Cell.BLUE:
                blue += 1
    return red, blue


def next_cell(cell: int, red: int, blue: int) -> int:
    if cell == Cell.RED:
        return Cell.RED.value if red in (2, 3) else Cell.EMPTY.value
    if cell == Cell.BLUE:
        return Cell.BLUE.value if blue in (2, 3) else Cell.EMPTY.value
    if red + blue == 3:
        if red > blue:
            return Cell.RED.value
        if blue > red:
            return Cell.BLUE.value
    return Cell.EMPTY.value


def advance(board: Board) -> Board:
    """Compute one generation. ``board`` is only read, never modified."""
    cells = []
    for y in range(HEIGHT):
        for x in range(WIDTH):
            red, blue = count_neighbors(board, x, y)
            cells.append(next_cell(board[y * WIDTH + x], red, blue))
    return tuple(cells)


def run(board: Board, generations: int) -> List[Board]:
    """Return the ``generations`` boards that follow ``board``, in order."""
    boards = []
    for _ in range(generations):
        board = advance(board)
        boards.append(board)
    return boards
