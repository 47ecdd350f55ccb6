"""Serialize ledger mutations behind a single nonce owner.

The ledger rejects a transaction whose nonce is not exactly the account's
next one, so two callers dispatching at once would race. Every mutation goes
through :meth:`TransactionPipeline.submit`, which runs them one at a time in
submission order and only starts the next after the previous is confirmed.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor

from .base import Ledger, Receipt, StaleNonceError, TransactionFailed

logger = logging.getLogger(__name__)


class TransactionPipeline:
    def __init__(self, ledger: Ledger, confirm_timeout: float = 30.0):
        self.ledger = ledger
        self.confirm_timeout = confirm_timeout
        # One worker: FIFO order, never two dispatches in flight
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='tx-pipeline')

    def submit(self, operation, *args, **kwargs) -> Future:
        """Queue ``operation(*args, nonce=..., **kwargs)``.

        The returned future resolves to the confirmed :class:`Receipt`, or
        raises the ledger error that stopped it.
        """
        return self._executor.submit(self._execute, operation, args, kwargs)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _execute(self, operation, args, kwargs) -> Receipt:
        name = _name(operation)
        try:
            return self._dispatch(operation, args, kwargs)
        except StaleNonceError as exc:
            # A single retry with a fresh nonce; a second failure propagates
            logger.warning("[tx-retry] op=%s stale nonce: %s", name, exc)
            return self._dispatch(operation, args, kwargs)

    def _dispatch(self, operation, args, kwargs) -> Receipt:
        nonce = self.ledger.get_pending_nonce()
        tx_hash = operation(*args, nonce=nonce, **kwargs)
        receipt = self.ledger.get_receipt(tx_hash)
        if receipt is None:
            receipt = self.ledger.wait_for_receipt(tx_hash, self.confirm_timeout)
        if not receipt.ok:
            raise TransactionFailed(f"transaction {tx_hash} reverted")
        logger.info(
            "[tx-confirmed] op=%s nonce=%s block=%s",
            _name(operation), nonce, receipt.block_number,
        )
        return receipt


def _name(operation) -> str:
    return getattr(operation, '__name__', repr(operation))
