import json

from gameofdeath.services.game.board import Cell, empty_board, with_cells
from gameofdeath.services.game.state import PersistedState, Phase, StateStore


def test_missing_file_loads_as_none(tmp_path):
    assert StateStore(str(tmp_path / 'nope.json')).load() is None


def test_save_and_load(tmp_path):
    store = StateStore(str(tmp_path / 'state.json'))
    boards = [empty_board(), with_cells(empty_board(), {(3, 4): Cell.BLUE})]
    store.save(PersistedState(Phase.SIMULATING, 0, cycle_count=2, board_history=boards, game_id=9,
                              sim_base=1, board_pushed=True))

    loaded = store.load()
    assert loaded.phase is Phase.SIMULATING
    assert loaded.time_left == 0
    assert loaded.cycle_count == 2
    assert loaded.board_history == boards
    assert loaded.game_id == 9
    assert loaded.sim_base == 1
    assert loaded.board_pushed is True

    raw = json.loads((tmp_path / 'state.json').read_text())
    assert set(raw) == {'phase', 'timeLeft', 'cycleCount', 'boardHistory', 'gameId', 'simBase', 'boardPushed'}
    assert raw['phase'] == 'simulating'


def test_save_overwrites_without_leftovers(tmp_path):
    store = StateStore(str(tmp_path / 'state.json'))
    store.save(PersistedState(Phase.PICKING, 5))
    store.save(PersistedState(Phase.PICKING, 4))
    assert store.load().time_left == 4
    assert [p.name for p in tmp_path.iterdir()] == ['state.json']


def test_corrupt_file_is_ignored(tmp_path):
    path = tmp_path / 'state.json'
    store = StateStore(str(path))
    for content in ['{not json', '{"phase": "lunch", "timeLeft": 3}', '{"phase": "picking"}',
                    '{"phase": "picking", "timeLeft": -1}', '[]',
                    '{"phase": "simulating", "timeLeft": 0, "simBase": -2}']:
        path.write_text(content)
        assert store.load() is None


def test_delete(tmp_path):
    store = StateStore(str(tmp_path / 'state.json'))
    store.save(PersistedState(Phase.FINAL, 1))
    assert store.exists()
    store.delete()
    assert not store.exists()
    # Deleting twice is fine
    store.delete()


def test_phase_ledger_values():
    assert [p.ledger_value for p in Phase] == [0, 1, 2, 3]
