"""Crash-recovery snapshot of the scheduler.

Rewritten after every tick, read once at startup and deleted when a game is
reset. A missing or unreadable file means "start a fresh game".
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .board import Board
from .codec import decode_history, encode_history

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    PICKING = 'picking'
    PLACING = 'placing'
    SIMULATING = 'simulating'
    FINAL = 'final'

    @property
    def ledger_value(self) -> int:
        return list(Phase).index(self)


@dataclass
class PersistedState:
    phase: Phase
    time_left: int
    cycle_count: int = 0
    board_history: List[Board] = field(default_factory=list)
    game_id: Optional[int] = None
    # Where this cycle's simulation starts in board_history, and whether its
    # last board reached the ledger
    sim_base: int = 0
    board_pushed: bool = False

    def to_dict(self) -> dict:
        return {
            'phase': self.phase.value,
            'timeLeft': self.time_left,
            'cycleCount': self.cycle_count,
            'boardHistory': encode_history(self.board_history),
            'gameId': self.game_id,
            'simBase': self.sim_base,
            'boardPushed': self.board_pushed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'PersistedState':
        time_left = int(data['timeLeft'])
        cycle_count = int(data.get('cycleCount', 0))
        sim_base = int(data.get('simBase', 0))
        if time_left < 0 or cycle_count < 0 or sim_base < 0:
            raise ValueError("timeLeft, cycleCount and simBase must be non-negative")
        return cls(
            phase=Phase(data['phase']),
            time_left=time_left,
            cycle_count=cycle_count,
            board_history=decode_history(data.get('boardHistory') or []),
            game_id=int(data['gameId']) if data.get('gameId') else None,
            sim_base=sim_base,
            board_pushed=bool(data.get('boardPushed', False)),
        )


class StateStore:
    def __init__(self, path: str):
        self.path = path

    def load(self) -> Optional[PersistedState]:
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as fh:
                return PersistedState.from_dict(json.load(fh))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("[state-corrupt] path=%s ignoring snapshot: %s", self.path, exc)
            return None

    def save(self, state: PersistedState) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        fd, tmp_path = tempfile.mkstemp(prefix='.state-', suffix='.json', dir=directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(state.to_dict(), fh)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def delete(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass

    def exists(self) -> bool:
        return os.path.exists(self.path)
