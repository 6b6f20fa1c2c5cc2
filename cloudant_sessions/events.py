"""
Out-of-band error reporting for session store operations.

Listeners subscribe to an ErrorChannel and are told about every failure
the store reports to its callers. Typical use is centralized alerting:

    channel = ErrorChannel()
    channel.subscribe(lambda event: logger.error("%s failed: %s", event.operation, event.error))
    store = CloudantSessionStore(client, errors=channel)
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorEvent:
    operation: str
    sid: str
    error: Exception


Listener = Callable[[ErrorEvent], Union[None, Awaitable[None]]]


class ErrorChannel:
    """Observer list for store errors."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def emit(self, event: ErrorEvent) -> None:
        """Deliver an event to every listener; a failing listener does not stop the rest."""
        for listener in list(self._listeners):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Error listener %r failed for %s %s", listener, event.operation, event.sid
                )
