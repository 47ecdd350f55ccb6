"""Compact board format stored on the ledger.

Ledger storage is paid per 256-bit word, so the 4096 ternary cells are
packed base-3 into 26 words of 161 cells each (3**161 < 2**256). The last
word has 90 unused positions which are always zero.
"""

from typing import Iterable, List, Sequence

from .board import Board, CELL_COUNT, make_board

CELLS_PER_CHUNK = 161
CHUNK_COUNT = 26


def pack(board: Sequence[int]) -> List[int]:
    board = make_board(board)
    chunks = []
    for c in range(CHUNK_COUNT):
        start = c * CELLS_PER_CHUNK
        value = 0
        # Horner's rule from the highest position down
        for i in reversed(range(start, min(start + CELLS_PER_CHUNK, CELL_COUNT))):
            value = value * 3 + board[i]
        chunks.append(value)
    return chunks


def unpack(chunks: Iterable) -> Board:
    """Decode ledger words (ints or decimal strings) back into a Board."""
    values = [int(v) for v in chunks]
    if len(values) < CHUNK_COUNT:
        raise ValueError(f"expected {CHUNK_COUNT} chunks, got {len(values)}")
    cells = []
    for value in values:
        if value < 0:
            raise ValueError("chunk values must be non-negative")
        for _ in range(CELLS_PER_CHUNK):
            if len(cells) == CELL_COUNT:
                break
            value, cell = divmod(value, 3)
            cells.append(cell)
        if len(cells) == CELL_COUNT:
            break
    return tuple(cells)


def encode_history(history: Iterable[Board]) -> List[List[str]]:
    """JSON-safe form of a board history; chunks overflow JS numbers, so strings."""
    return [[str(v) for v in pack(board)] for board in history]


def decode_history(data: Iterable) -> List[Board]:
    return [unpack(chunks) for chunks in data]
