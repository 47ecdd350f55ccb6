from gameofdeath.services.game.board import Cell, empty_board, with_cells
from gameofdeath.services.game.scoring import Winner, compute_winner, invasion_counts


def test_red_wins_on_more_invaders():
    placements = {(x, 40): Cell.RED for x in range(5)}
    placements.update({(x, 10): Cell.BLUE for x in range(3)})
    # Home-side cells do not count
    placements.update({(x, 5): Cell.RED for x in range(20)})
    placements.update({(x, 60): Cell.BLUE for x in range(20)})
    board = with_cells(empty_board(), placements)
    assert invasion_counts(board) == (5, 3)
    assert compute_winner(board) == Winner.RED


def test_blue_wins_on_more_invaders():
    board = with_cells(empty_board(), {(0, 0): Cell.BLUE, (1, 31): Cell.BLUE, (2, 32): Cell.RED})
    assert invasion_counts(board) == (1, 2)
    assert compute_winner(board) == Winner.BLUE


def test_equal_invasion_is_a_tie():
    assert compute_winner(empty_board()) == Winner.TIE
    board = with_cells(empty_board(), {(10, 63): Cell.RED, (10, 0): Cell.BLUE})
    assert compute_winner(board) == Winner.TIE


def test_midline_rows():
    # Row 32 belongs to blue, row 31 to red
    board = with_cells(empty_board(), {(0, 32): Cell.RED, (0, 31): Cell.BLUE})
    assert invasion_counts(board) == (1, 1)
    board = with_cells(empty_board(), {(0, 31): Cell.RED, (0, 32): Cell.BLUE})
    assert invasion_counts(board) == (0, 0)


def test_winner_serializes_as_label():
    assert Winner.RED.value == 'Red'
    assert Winner('Tie') is Winner.TIE
