"""
Turn router for Modo.

A :class:`ResponseCoordinator` drives one conversational exchange at a time:

1. send the conversation snapshot to the AI backend,
2. if the reply is plain text, deliver it and stop,
3. if the reply requests a tool, either
   * run a *terminal* tool (plan generation) and deliver its plan, or
   * hold a :class:`PendingCall`, dispatch the tool and wait for its result on the
     notification bus, then feed the result back to the backend (tools still enabled, so the
     backend may chain another call).

State moves ``IDLE -> SENT -> {TEXT_TERMINAL | TOOL_REQUESTED}``,
``TOOL_REQUESTED -> AWAITING_RESULT -> SENT``, with ``FAILED`` reachable from anywhere.
"""

import asyncio
import logging
import uuid
from enum import Enum
from typing import (
    Any,
    Callable,
    Coroutine,
    List,
    Optional,
    Sequence,
    Set,
)

from modo.agent.backends import AIBackend
from modo.agent.notification_bus import (
    NotificationBus,
    ResultType,
    Subscription,
)
from modo.agent.pending_call import (
    PendingCall,
    PendingCallLedger,
)
from modo.agent.tool_executor import FunctionCallDispatcher
from modo.common import truncate
from modo.config import settings
from modo.core.errors import (
    BackendError,
    ChainDepthExceeded,
    CoordinatorBusy,
    EmptyResponse,
    HandlerNotFound,
    InvalidResponse,
    ModoError,
)
from modo.core.schema import (
    BackendReply,
    BackendRequest,
    ExchangeResult,
    ResultPayload,
    ToolInvocation,
    Turn,
)
from modo.plans.models import PlanResult
from modo.tools import FunctionRegistry

logger = logging.getLogger(__name__)


class CoordinatorState(str, Enum):
    IDLE = "idle"
    SENT = "sent"
    TEXT_TERMINAL = "text_terminal"
    TOOL_REQUESTED = "tool_requested"
    AWAITING_RESULT = "awaiting_result"
    FAILED = "failed"


class ResponseCoordinator:
    """
    Routes backend replies to text delivery, plan delivery or tool dispatch.

    Parameters
    ----------
    backend:
        The AI backend answering each request.
    registry:
        Tool handlers; also the source of the tool schemas advertised to the backend.
    bus:
        Notification bus the coordinator subscribes to (all result types) for its lifetime.
    max_chain_depth:
        Maximum number of tool calls within one exchange.
    max_tokens, followup_max_tokens:
        Output limits for the first request and for requests carrying a tool result.
    on_text, on_plan, on_error, on_processing_changed:
        Optional callbacks mirroring the outcome delivered by :meth:`ask`.
    """

    def __init__(
        self,
        backend: AIBackend,
        registry: FunctionRegistry,
        bus: NotificationBus,
        *,
        max_chain_depth: int | None = None,
        max_tokens: int | None = None,
        followup_max_tokens: int | None = None,
        on_text: Optional[Callable[[str], Any]] = None,
        on_plan: Optional[Callable[[PlanResult], Any]] = None,
        on_error: Optional[Callable[[ModoError], Any]] = None,
        on_processing_changed: Optional[Callable[[bool], Any]] = None,
    ) -> None:
        self._backend = backend
        self._registry = registry
        self._bus = bus
        self._dispatcher = FunctionCallDispatcher(registry)
        self.max_chain_depth = settings.MAX_CHAIN_DEPTH if max_chain_depth is None else max_chain_depth
        self.max_tokens = settings.MAX_TOKENS if max_tokens is None else max_tokens
        self.followup_max_tokens = (
            settings.FOLLOWUP_MAX_TOKENS if followup_max_tokens is None else followup_max_tokens
        )

        self.on_text = on_text
        self.on_plan = on_plan
        self.on_error = on_error
        self.on_processing_changed = on_processing_changed

        self.state = CoordinatorState.IDLE
        self.ledger = PendingCallLedger()
        self.snapshot: List[Turn] = []
        self._context: Any = None
        self._chain_depth = 0
        self._outcome: asyncio.Future | None = None
        self._tasks: Set[asyncio.Task] = set()

        # Subscribe before anything can be dispatched
        self._subscriptions: List[Subscription] = [
            bus.subscribe(result_type, self._on_result) for result_type in ResultType
        ]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def busy(self) -> bool:
        return self._outcome is not None and not self._outcome.done()

    async def ask(self, turns: Sequence[Turn], context: Any = None) -> ExchangeResult:
        """
        Run one exchange starting from *turns* and return its terminal outcome.

        Raises
        ------
        CoordinatorBusy
            If a previous exchange on this coordinator has not finished.
        ModoError
            Any typed failure reached while routing the exchange.
        """
        if self.busy:
            raise CoordinatorBusy("An exchange is already in flight")

        self._outcome = asyncio.get_running_loop().create_future()
        self.snapshot = list(turns)
        self._context = context
        self._chain_depth = 0
        self.ledger.clear()
        self._set_processing(True)

        self._spawn(self._request(self.max_tokens))
        return await self._outcome

    def close(self) -> None:
        """Unsubscribe from the bus and abandon any exchange still in flight."""
        for subscription in self._subscriptions:
            self._bus.unsubscribe(subscription)
        self._subscriptions.clear()
        self.ledger.clear()
        for task in list(self._tasks):
            task.cancel()
        if self.busy:
            self._outcome.cancel()
            self._set_processing(False)
        self.state = CoordinatorState.IDLE

    # ------------------------------------------------------------------
    # Backend round-trips
    # ------------------------------------------------------------------
    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _request(self, max_tokens: int) -> None:
        self.state = CoordinatorState.SENT
        request = BackendRequest(
            turns=list(self.snapshot),
            tools=self._registry.schemas(),
            tool_choice="auto",
            max_tokens=max_tokens,
            parallel_tool_calls=False,
        )
        logger.debug("Sending %d turns to the backend", len(request.turns))

        try:
            reply = await self._backend.complete(request)
        except ModoError as exc:
            self._fail(exc)
            return
        except Exception as exc:  # noqa: BLE001
            logger.exception("Backend raised an untyped error")
            self._fail(BackendError(str(exc)))
            return

        try:
            await self._process_reply(reply)
        except ModoError as exc:
            self._fail(exc)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while routing the reply")
            self._fail(ModoError(str(exc)))

    async def _process_reply(self, reply: BackendReply) -> None:
        if not reply.candidates:
            raise InvalidResponse("no candidates in reply")

        candidate = reply.candidates[0]
        if candidate.tool_call is not None:
            await self._route(candidate.tool_call)
            return

        if candidate.content:
            self.state = CoordinatorState.TEXT_TERMINAL
            self.snapshot.append(Turn.assistant(candidate.content))
            logger.info("Received text response: %s", truncate(candidate.content))
            self._finish(ExchangeResult(kind="text", text=candidate.content, turns=self.snapshot))
            return

        raise EmptyResponse()

    # ------------------------------------------------------------------
    # Tool routing
    # ------------------------------------------------------------------
    async def _route(self, call: ToolInvocation) -> None:
        handler = self._registry.resolve(call.name)
        if handler is None:
            raise HandlerNotFound(call.name)

        self._chain_depth += 1
        if self._chain_depth > self.max_chain_depth:
            raise ChainDepthExceeded(self.max_chain_depth)

        self.state = CoordinatorState.TOOL_REQUESTED
        request_id = str(uuid.uuid4())
        logger.info("Function call requested: %s (%s)", call.name, truncate(call.arguments))

        if handler.terminal:
            plan = await self._dispatcher.dispatch(call.name, call.arguments, request_id)
            self.snapshot.append(Turn.assistant(plan.content))
            self.state = CoordinatorState.IDLE
            self._finish(
                ExchangeResult(kind="plan", text=plan.content, plan=plan, turns=self.snapshot)
            )
            return

        if call.call_id is None:
            # The result turn must pair with the invocation turn
            call = call.model_copy(update={"call_id": request_id})
        self.snapshot.append(Turn.invocation(call))
        self.ledger.hold(
            PendingCall(
                request_id=request_id,
                tool_name=call.name,
                snapshot=tuple(self.snapshot),
                context=self._context,
                call_id=call.call_id,
            )
        )
        self.state = CoordinatorState.AWAITING_RESULT

        try:
            await self._dispatcher.dispatch(call.name, call.arguments, request_id)
        except ModoError:
            self.ledger.clear()
            raise

    def _on_result(self, payload: ResultPayload) -> None:
        """Bus callback: resume the exchange if *payload* answers the held call."""
        call = self.ledger.consume(payload.request_id)
        if call is None:
            logger.warning("Ignoring result %s: no matching pending call", payload.request_id)
            return
        if not self.busy:
            logger.debug("Ignoring result %s: exchange already finished", payload.request_id)
            return

        content = payload.to_tool_content()
        logger.info(
            "Result for %s (success=%s): %s", call.tool_name, payload.success, truncate(content)
        )
        self.snapshot = [*call.snapshot, Turn.tool_result(call.tool_name, content, call.call_id)]
        self.state = CoordinatorState.SENT
        self._spawn(self._request(self.followup_max_tokens))

    # ------------------------------------------------------------------
    # Outcome delivery
    # ------------------------------------------------------------------
    def _set_processing(self, processing: bool) -> None:
        if self.on_processing_changed is not None:
            self.on_processing_changed(processing)

    def _finish(self, result: ExchangeResult) -> None:
        if not self.busy:
            return
        self._set_processing(False)
        self._outcome.set_result(result)
        if result.kind == "plan":
            if self.on_plan is not None:
                self.on_plan(result.plan)
        elif self.on_text is not None:
            self.on_text(result.text)

    def _fail(self, exc: ModoError) -> None:
        if not self.busy:
            logger.debug("Dropping failure after exchange ended: %s", exc)
            return
        logger.error("Exchange failed: %s", exc)
        self.ledger.clear()
        # a result published just before the failure may already have queued a follow-up
        current = asyncio.current_task()
        for task in list(self._tasks):
            if task is not current:
                task.cancel()
        self.state = CoordinatorState.FAILED
        self._set_processing(False)
        self._outcome.set_exception(exc)
        if self.on_error is not None:
            self.on_error(exc)
