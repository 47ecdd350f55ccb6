"""Ledger access: the contract boundary, an in-process ledger and the
transaction pipeline that orders every mutation."""

from .base import (
    ConfirmationTimeout,
    GameConcludedError,
    Ledger,
    LedgerError,
    Receipt,
    StaleNonceError,
    TransactionFailed,
)
from .memory import InMemoryLedger
from .pipeline import TransactionPipeline


def create_ledger(config) -> Ledger:
    """Build the ledger named by LEDGER_BACKEND.

    Only 'memory' exists so far. A backend that talks to the deployed contract
    goes here as another branch returning a :class:`Ledger` subclass.
    """
    backend = (config.get('LEDGER_BACKEND') or 'memory').lower()
    if backend == 'memory':
        return InMemoryLedger(config.get('LEDGER_ACCOUNT') or '0x0')
    raise ValueError(f"unknown LEDGER_BACKEND {backend!r}")


__all__ = [
    'ConfirmationTimeout',
    'GameConcludedError',
    'InMemoryLedger',
    'Ledger',
    'LedgerError',
    'Receipt',
    'StaleNonceError',
    'TransactionFailed',
    'TransactionPipeline',
    'create_ledger',
]
