# social_service/infrastructure/event_dispatcher.py
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable

from social_service.domain.events import Event

EventHandler = Callable[[Event], Awaitable[None]]


class EventDispatcher:
    """Routes domain events to handlers by event class name.

    Handlers run after the triggering write has committed; a failing handler
    is logged and does not affect the others or the caller.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self.logger = logger or logging.getLogger("SocialAPI.events")

    def register(self, event_type: str, handler: EventHandler) -> None:
        self.handlers[event_type].append(handler)

    async def dispatch(self, event: Event) -> None:
        event_type = event.__class__.__name__
        for handler in self.handlers[event_type]:
            try:
                await handler(event)
            except Exception:
                self.logger.exception(f"Handler for {event_type} failed")
