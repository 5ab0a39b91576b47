"""
Typed publish/subscribe bus carrying tool results back to the turn router.

Handlers publish a :class:`ResultPayload` under the result type of their tool family; the
coordinator subscribes to every type once, at construction, before any dispatch can happen.
Delivery is synchronous, best-effort and unpersisted: a payload published with no subscriber is
dropped.
"""

import itertools
import logging
from dataclasses import (
    dataclass,
    field,
)
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
)

from modo.core.schema import ResultPayload

logger = logging.getLogger(__name__)

ResultCallback = Callable[[ResultPayload], Any]


class ResultType(str, Enum):
    """One result channel per tool family."""

    QUERY = "AI.Task.Query.Response"
    CREATE = "AI.Task.Create.Response"
    UPDATE = "AI.Task.Update.Response"
    DELETE = "AI.Task.Delete.Response"


@dataclass(frozen=True)
class Subscription:
    """Handle returned by :meth:`NotificationBus.subscribe`; pass it back to unsubscribe."""

    token: int
    result_type: ResultType
    callback: ResultCallback = field(compare=False, repr=False)


class NotificationBus:
    """Routes result payloads to the callbacks subscribed to their result type."""

    def __init__(self) -> None:
        self._subscriptions: Dict[ResultType, Dict[int, Subscription]] = {
            result_type: {} for result_type in ResultType
        }
        self._tokens = itertools.count(1)

    def subscribe(self, result_type: ResultType, callback: ResultCallback) -> Subscription:
        subscription = Subscription(next(self._tokens), ResultType(result_type), callback)
        self._subscriptions[subscription.result_type][subscription.token] = subscription
        logger.debug("Subscribed #%d to %s", subscription.token, subscription.result_type.value)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        """Remove *subscription*; unknown or already removed handles are ignored."""
        self._subscriptions[subscription.result_type].pop(subscription.token, None)

    def subscriber_count(self, result_type: ResultType) -> int:
        return len(self._subscriptions[ResultType(result_type)])

    def publish(self, result_type: ResultType, payload: ResultPayload) -> int:
        """
        Deliver *payload* to every subscriber of *result_type*.

        Returns the number of callbacks that were invoked.  A callback that raises is logged and
        does not stop delivery to the remaining subscribers.
        """
        result_type = ResultType(result_type)
        subscribers = list(self._subscriptions[result_type].values())
        if not subscribers:
            logger.warning(
                "No subscriber for %s, dropping result %s", result_type.value, payload.request_id
            )
            return 0

        logger.debug("Posted %s (requestId: %s)", result_type.value, payload.request_id)
        for subscription in subscribers:
            try:
                subscription.callback(payload)
            except Exception:  # pylint: disable=broad-except
                logger.exception(
                    "Subscriber #%d failed while handling %s", subscription.token, result_type.value
                )
        return len(subscribers)

    def post_response(
        self,
        result_type: ResultType,
        request_id: str,
        success: bool,
        data: Any = None,
        error: str | None = None,
    ) -> int:
        """Build a :class:`ResultPayload` and publish it."""
        payload = ResultPayload(request_id=request_id, success=success, data=data, error=error)
        return self.publish(result_type, payload)
