"""Single-slot ledger of the tool invocation an orchestrator is waiting on."""

import logging
from dataclasses import (
    dataclass,
    field,
)
from typing import (
    Any,
    Tuple,
)

from modo.core.schema import Turn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingCall:
    """Everything needed to resume the conversation once the tool result arrives."""

    request_id: str
    tool_name: str
    snapshot: Tuple[Turn, ...]
    context: Any = None
    call_id: str | None = field(default=None)


class PendingCallLedger:
    """
    Holds at most one :class:`PendingCall`.

    The slot is single-flight: holding a second call replaces the first, whose result will then be
    discarded as a mismatch.  Consuming a call empties the slot, so a duplicate delivery of the
    same payload finds nothing to resume.
    """

    def __init__(self) -> None:
        self._current: PendingCall | None = None

    @property
    def current(self) -> PendingCall | None:
        return self._current

    def hold(self, call: PendingCall) -> None:
        if self._current is not None:
            logger.warning(
                "Replacing pending call %s (%s) with %s (%s)",
                self._current.request_id,
                self._current.tool_name,
                call.request_id,
                call.tool_name,
            )
        self._current = call

    def consume(self, request_id: str) -> PendingCall | None:
        """Return and clear the held call if it matches *request_id*; otherwise return *None*."""
        call = self._current
        if call is None or call.request_id != request_id:
            return None
        self._current = None
        return call

    def clear(self) -> None:
        self._current = None

    def __bool__(self) -> bool:
        return self._current is not None
