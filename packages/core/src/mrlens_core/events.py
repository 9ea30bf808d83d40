"""In-process topic bus that chains the pipeline steps.

Handlers are plain callables taking the event payload dict. Delivery is
synchronous and in subscription order; a handler that emits runs the next
step before its own emit() returns. Handler errors are logged with the topic
and re-raised to the emitter.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable

logger = logging.getLogger(__name__)

FETCH_MR_DIFF = "fetch-mr-diff"
PROCESS_AI_REVIEW = "process-ai-review"
SEND_REVIEW_WEBHOOK = "send-review-webhook"

Handler = Callable[[dict], None]
Emit = Callable[[str, dict], None]


class EventBus:
    def __init__(self):
        self._subscribers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> None:
        self._subscribers[topic].append(handler)

    def topics(self) -> list[str]:
        return sorted(self._subscribers)

    def emit(self, topic: str, data: dict) -> None:
        handlers = self._subscribers.get(topic)
        if not handlers:
            logger.warning("No subscribers for topic %r; event dropped", topic)
            return
        for handler in handlers:
            logger.debug("Dispatching %r to %s", topic, getattr(handler, "__name__", handler))
            try:
                handler(data)
            except Exception:
                logger.error("Handler for %r failed (review_id=%s)", topic, data.get("review_id"))
                raise
