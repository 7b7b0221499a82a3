"""
Match lifecycle events.

The result recorder publishes MatchCompleted after it commits a transition into
"completed"; subscribers (bracket progression today) react to it. Subscribers
run synchronously in registration order. A failing subscriber is logged and
skipped: the recorded result is already committed and stays that way.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, List

from sqlmodel import Session

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchCompleted:
    tournament_id: int
    match_id: int
    round_number: int


MatchCompletedHandler = Callable[[Session, MatchCompleted], Any]


class MatchEventBus:
    def __init__(self):
        self._handlers: List[MatchCompletedHandler] = []

    def subscribe(self, handler: MatchCompletedHandler) -> MatchCompletedHandler:
        """Register a handler; usable as a decorator. Registering twice is a no-op."""
        if handler not in self._handlers:
            self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: MatchCompletedHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def publish(self, session: Session, event: MatchCompleted) -> List[Any]:
        """Deliver *event* to every handler and collect their return values."""
        results: List[Any] = []
        for handler in list(self._handlers):
            try:
                results.append(handler(session, event))
            except Exception as exc:
                session.rollback()
                logger.exception(
                    "MatchCompleted handler %s failed for match %d: %s",
                    getattr(handler, "__name__", handler),
                    event.match_id,
                    exc,
                )
        return results


match_events = MatchEventBus()
