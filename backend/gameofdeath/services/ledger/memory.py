"""In-process ledger for local runs and tests.

Mirrors the game contract closely enough for the orchestrator: per-account
nonces, phase and board storage, team membership, and the "game already
concluded" guard between ``end_game`` and ``new_game``.
"""

import hashlib
import logging
import threading
import time
from typing import Dict, List, Optional

from ..game.board import CELL_COUNT, HEIGHT, MIDLINE, WIDTH, Cell, index
from ..game.codec import pack, unpack
from .base import (
    ConfirmationTimeout,
    GameConcludedError,
    Ledger,
    LedgerError,
    Receipt,
    StaleNonceError,
)

logger = logging.getLogger(__name__)

TEAM_NONE = 0
TEAM_RED = 1
TEAM_BLUE = 2

# Ledger phase enum, same order as Phase
PHASE_PICKING, PHASE_PLACING, PHASE_SIMULATING, PHASE_FINAL = range(4)


class InMemoryLedger(Ledger):
    def __init__(self, account: str, auto_mine: bool = True, game_id: int = 1):
        self.account = account.lower()
        self.auto_mine = auto_mine
        self._cond = threading.Condition()
        self._nonces: Dict[str, int] = {}
        self._pending: Dict[str, Receipt] = {}
        self._receipts: Dict[str, Receipt] = {}
        self._block = 0
        self.game_id = game_id
        self.phase = PHASE_PICKING
        self.concluded = False
        self._cells = [Cell.EMPTY.value] * CELL_COUNT
        self._teams: Dict[str, int] = {}

    # -- reads --
    def get_board(self) -> List[int]:
        with self._cond:
            return pack(self._cells)

    def team_a_count(self) -> int:
        with self._cond:
            return sum(1 for t in self._teams.values() if t == TEAM_RED)

    def team_b_count(self) -> int:
        with self._cond:
            return sum(1 for t in self._teams.values() if t == TEAM_BLUE)

    def get_team(self, account: str) -> int:
        with self._cond:
            return self._teams.get(account.lower(), TEAM_NONE)

    def get_pending_nonce(self) -> int:
        with self._cond:
            return self._nonces.get(self.account, 0)

    # -- server mutations --
    def set_phase(self, phase: int, *, nonce: int) -> str:
        if phase not in (PHASE_PICKING, PHASE_PLACING, PHASE_SIMULATING, PHASE_FINAL):
            raise LedgerError(f"invalid phase {phase}")

        def apply():
            self._require_open()
            self.phase = phase
        return self._transact(nonce, apply, f"setPhase({phase})")

    def server_overwrite_board(self, chunks: List[int], *, nonce: int) -> str:
        cells = list(unpack(chunks))

        def apply():
            self._require_open()
            self._cells = cells
        return self._transact(nonce, apply, 'serverOverwriteBoard')

    def new_game(self, game_id: int, *, nonce: int) -> str:
        def apply():
            self.game_id = game_id
            self.phase = PHASE_PICKING
            self.concluded = False
            self._cells = [Cell.EMPTY.value] * CELL_COUNT
            self._teams = {}
        return self._transact(nonce, apply, f"newGame({game_id})")

    def end_game(self, *, nonce: int) -> str:
        def apply():
            self._require_open()
            self.concluded = True
        return self._transact(nonce, apply, 'endGame')

    # -- player calls (not nonce-managed by the server) --
    def join_team(self, account: str, team: int) -> None:
        with self._cond:
            self._require_open()
            if team not in (TEAM_RED, TEAM_BLUE):
                raise LedgerError(f"invalid team {team}")
            if self.phase != PHASE_PICKING:
                raise LedgerError("teams can only be picked during the picking phase")
            self._teams[account.lower()] = team

    def place_square(self, account: str, x: int, y: int) -> None:
        with self._cond:
            self._require_open()
            if self.phase != PHASE_PLACING:
                raise LedgerError("squares can only be placed during the placing phase")
            team = self._teams.get(account.lower(), TEAM_NONE)
            if team == TEAM_NONE:
                raise LedgerError("account has no team")
            if not (0 <= x < WIDTH and 0 <= y < HEIGHT):
                raise LedgerError("square out of bounds")
            own_half = y < MIDLINE if team == TEAM_RED else y >= MIDLINE
            if not own_half:
                raise LedgerError("squares must be placed on your own half")
            self._cells[index(x, y)] = team

    # -- confirmation --
    def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        with self._cond:
            return self._receipts.get(tx_hash)

    def wait_for_receipt(self, tx_hash: str, timeout: float) -> Receipt:
        deadline = time.monotonic() + timeout
        with self._cond:
            while tx_hash not in self._receipts:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise ConfirmationTimeout(f"transaction {tx_hash} not confirmed after {timeout}s")
                self._cond.wait(remaining)
            return self._receipts[tx_hash]

    def mine(self) -> int:
        """Include all pending transactions in a new block; returns how many."""
        with self._cond:
            return self._mine_locked()

    def _mine_locked(self) -> int:
        if not self._pending:
            return 0
        self._block += 1
        count = len(self._pending)
        for tx_hash, pending in self._pending.items():
            self._receipts[tx_hash] = Receipt(tx_hash, pending.nonce, self._block, pending.status)
        self._pending.clear()
        self._cond.notify_all()
        return count

    def _require_open(self) -> None:
        if self.concluded:
            raise GameConcludedError("game already concluded")

    def _transact(self, nonce: int, apply, label: str) -> str:
        with self._cond:
            expected = self._nonces.get(self.account, 0)
            if nonce != expected:
                raise StaleNonceError(f"nonce {nonce} is stale, expected {expected}")
            apply()
            self._nonces[self.account] = expected + 1
            tx_hash = '0x' + hashlib.sha256(f"{self.account}:{nonce}:{label}".encode()).hexdigest()
            self._pending[tx_hash] = Receipt(tx_hash, nonce, 0)
            logger.debug("[ledger-tx] %s nonce=%s tx=%s", label, nonce, tx_hash[:10])
            if self.auto_mine:
                self._mine_locked()
            return tx_hash
