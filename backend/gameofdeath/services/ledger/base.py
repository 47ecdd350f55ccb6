"""Ledger boundary: the contract calls the orchestrator relies on.

Mutating calls take an explicit ``nonce`` and return a transaction hash;
they are not complete until a receipt confirms them. Only the
:class:`~gameofdeath.services.ledger.pipeline.TransactionPipeline` should
call them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


class LedgerError(Exception):
    """Provider or network failure. Usually transient."""


class StaleNonceError(LedgerError):
    """The nonce was already used or skipped ahead."""


class GameConcludedError(LedgerError):
    """The ledger has already concluded the current game."""


class TransactionFailed(LedgerError):
    """The transaction was included but reverted."""


class ConfirmationTimeout(LedgerError):
    pass


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    nonce: int
    block_number: int
    status: int = 1

    @property
    def ok(self) -> bool:
        return self.status == 1


class Ledger(ABC):
    account: str

    # -- reads --
    @abstractmethod
    def get_board(self) -> List[int]:
        ...

    @abstractmethod
    def team_a_count(self) -> int:
        ...

    @abstractmethod
    def team_b_count(self) -> int:
        ...

    @abstractmethod
    def get_team(self, account: str) -> int:
        """0 for no team, 1 for red, 2 for blue."""

    @abstractmethod
    def get_pending_nonce(self) -> int:
        """Next nonce for ``self.account``, counting unconfirmed transactions."""

    # -- mutations --
    @abstractmethod
    def set_phase(self, phase: int, *, nonce: int) -> str:
        ...

    @abstractmethod
    def server_overwrite_board(self, chunks: List[int], *, nonce: int) -> str:
        ...

    @abstractmethod
    def new_game(self, game_id: int, *, nonce: int) -> str:
        ...

    @abstractmethod
    def end_game(self, *, nonce: int) -> str:
        ...

    # -- confirmation --
    @abstractmethod
    def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        """Receipt if the transaction is already included, else None."""

    @abstractmethod
    def wait_for_receipt(self, tx_hash: str, timeout: float) -> Receipt:
        """Block until included; raises ConfirmationTimeout."""
