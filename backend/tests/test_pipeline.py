import threading
import time

import pytest

from gameofdeath.services.ledger import (
    ConfirmationTimeout,
    InMemoryLedger,
    LedgerError,
    StaleNonceError,
    TransactionPipeline,
    create_ledger,
)

ACCOUNT = '0x00000000000000000000000000000000000000aa'


@pytest.fixture()
def ledger():
    return InMemoryLedger(ACCOUNT)


@pytest.fixture()
def pipeline(ledger):
    p = TransactionPipeline(ledger, confirm_timeout=2)
    yield p
    p.shutdown()


def test_operations_run_in_submission_order(ledger, pipeline):
    seen = []
    active = []
    overlap = []

    def op(tag, nonce):
        active.append(tag)
        if len(active) > 1:
            overlap.append(tag)
        time.sleep(0.001)
        seen.append((tag, nonce))
        tx = ledger.set_phase(tag % 4, nonce=nonce)
        active.remove(tag)
        return tx

    futures = [pipeline.submit(op, i) for i in range(10)]
    receipts = [f.result(timeout=5) for f in futures]

    assert [tag for tag, _ in seen] == list(range(10))
    assert [nonce for _, nonce in seen] == list(range(10))
    assert [r.nonce for r in receipts] == list(range(10))
    assert overlap == []


def test_submissions_from_many_threads_get_distinct_nonces(ledger, pipeline):
    futures = []
    lock = threading.Lock()

    def caller():
        f = pipeline.submit(ledger.set_phase, 1)
        with lock:
            futures.append(f)

    threads = [threading.Thread(target=caller) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    nonces = sorted(f.result(timeout=5).nonce for f in futures)
    assert nonces == list(range(8))
    assert ledger.get_pending_nonce() == 8


def test_stale_nonce_is_retried_once(ledger, pipeline):
    calls = []

    def flaky(nonce):
        calls.append(nonce)
        if len(calls) == 1:
            raise StaleNonceError("nonce too low")
        return ledger.set_phase(1, nonce=nonce)

    receipt = pipeline.submit(flaky).result(timeout=5)
    assert len(calls) == 2
    assert receipt.ok
    assert ledger.phase == 1


def test_nonce_is_refetched_before_retry(ledger, pipeline):
    # Another sender used our nonce between fetch and dispatch
    calls = []

    def racing(nonce):
        calls.append(nonce)
        if len(calls) == 1:
            ledger.set_phase(0, nonce=nonce)
        return ledger.set_phase(2, nonce=nonce)

    pipeline.submit(racing).result(timeout=5)
    assert calls == [0, 1]
    assert ledger.phase == 2


def test_second_stale_nonce_propagates(ledger, pipeline):
    calls = []

    def always_stale(nonce):
        calls.append(nonce)
        raise StaleNonceError("nonce too low")

    future = pipeline.submit(always_stale)
    with pytest.raises(StaleNonceError):
        future.result(timeout=5)
    assert len(calls) == 2


def test_other_errors_are_not_retried(ledger, pipeline):
    calls = []

    def broken(nonce):
        calls.append(nonce)
        raise LedgerError("provider unavailable")

    with pytest.raises(LedgerError):
        pipeline.submit(broken).result(timeout=5)
    assert len(calls) == 1

    # The chain keeps going after a rejected operation
    assert pipeline.submit(ledger.set_phase, 3).result(timeout=5).ok


def test_waits_for_confirmation_before_next_operation():
    ledger = InMemoryLedger(ACCOUNT, auto_mine=False)
    pipeline = TransactionPipeline(ledger, confirm_timeout=5)
    try:
        first = pipeline.submit(ledger.set_phase, 1)
        second = pipeline.submit(ledger.set_phase, 2)
        time.sleep(0.05)
        # First is dispatched and waiting; second has not been dispatched
        assert ledger.get_pending_nonce() == 1
        assert not first.done()
        ledger.mine()
        assert first.result(timeout=5).nonce == 0
        deadline = time.time() + 5
        while ledger.get_pending_nonce() < 2 and time.time() < deadline:
            time.sleep(0.01)
        ledger.mine()
        assert second.result(timeout=5).nonce == 1
    finally:
        pipeline.shutdown()


def test_confirmation_timeout_rejects():
    ledger = InMemoryLedger(ACCOUNT, auto_mine=False)
    pipeline = TransactionPipeline(ledger, confirm_timeout=0.05)
    try:
        with pytest.raises(ConfirmationTimeout):
            pipeline.submit(ledger.set_phase, 1).result(timeout=5)
    finally:
        pipeline.shutdown()


def test_create_ledger_backends():
    ledger = create_ledger({'LEDGER_BACKEND': 'Memory', 'LEDGER_ACCOUNT': ACCOUNT})
    assert isinstance(ledger, InMemoryLedger)
    assert ledger.account == ACCOUNT
    with pytest.raises(ValueError, match='ethers'):
        create_ledger({'LEDGER_BACKEND': 'ethers'})
