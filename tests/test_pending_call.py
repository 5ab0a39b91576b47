"""Tests for the single-slot pending-call ledger."""

from modo.agent.pending_call import (
    PendingCall,
    PendingCallLedger,
)
from modo.core.schema import Turn


def _call(request_id: str) -> PendingCall:
    return PendingCall(request_id=request_id, tool_name="create_tasks", snapshot=(Turn.user("hi"),))


def test_consume_matching_clears_slot() -> None:
    ledger = PendingCallLedger()
    ledger.hold(_call("req-1"))

    call = ledger.consume("req-1")

    assert call is not None and call.request_id == "req-1"
    assert not ledger
    assert ledger.consume("req-1") is None  # duplicate delivery finds nothing


def test_consume_mismatch_keeps_slot() -> None:
    ledger = PendingCallLedger()
    ledger.hold(_call("req-1"))

    assert ledger.consume("other") is None
    assert ledger.current is not None and ledger.current.request_id == "req-1"


def test_hold_replaces_previous_call() -> None:
    """Only the newest call is held; the older one's result will be discarded."""

    ledger = PendingCallLedger()
    ledger.hold(_call("req-1"))
    ledger.hold(_call("req-2"))

    assert ledger.consume("req-1") is None
    assert ledger.consume("req-2") is not None


def test_clear() -> None:
    ledger = PendingCallLedger()
    ledger.hold(_call("req-1"))
    ledger.clear()
    assert ledger.current is None
