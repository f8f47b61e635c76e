# lounge/services/notifications.py
"""
Change notification and UI-thread hand-off.

ChangeNotifier is a single-slot "dirty" channel: any number of notify() calls
between two UI ticks collapse into one refresh pass when the UI thread calls
flush(). UiDispatcher carries callables from worker threads (e.g. the log
writer) to the UI thread, which runs them in run_pending().
"""

import queue
from typing import Callable

from lounge.utils.logger import get_logger

logger = get_logger(__name__)

ChangeHandler = Callable[[], None]


class ChangeNotifier:
    def __init__(self) -> None:
        self._pending: "queue.Queue[bool]" = queue.Queue(maxsize=1)
        self._handlers: list[ChangeHandler] = []

    def subscribe(self, handler: ChangeHandler) -> Callable[[], None]:
        """Register `handler`; returns a callable that unsubscribes it."""
        self._handlers.append(handler)
        logger.debug(f"Subscribed change handler {getattr(handler, '__name__', handler)}")

        def unsubscribe() -> None:
            self._handlers = [h for h in self._handlers if h is not handler]

        return unsubscribe

    def notify(self) -> None:
        """Mark state as changed. Safe from any thread; bursts coalesce."""
        try:
            self._pending.put_nowait(True)
        except queue.Full:
            pass

    @property
    def is_dirty(self) -> bool:
        return not self._pending.empty()

    def flush(self) -> bool:
        """Run every handler once if a change is pending. UI thread only."""
        try:
            self._pending.get_nowait()
        except queue.Empty:
            return False
        for handler in list(self._handlers):
            try:
                handler()
            except Exception as e:
                logger.error(f"Error in change handler {getattr(handler, '__name__', handler)}: {e}", exc_info=True)
        return True


class UiDispatcher:
    def __init__(self) -> None:
        self._calls: "queue.SimpleQueue[Callable[[], None]]" = queue.SimpleQueue()

    def call_soon(self, fn: Callable[[], None]) -> None:
        self._calls.put(fn)

    def run_pending(self) -> int:
        """Drain queued callables on the calling (UI) thread."""
        ran = 0
        while True:
            try:
                fn = self._calls.get_nowait()
            except queue.Empty:
                return ran
            try:
                fn()
            except Exception as e:
                logger.error(f"Error in dispatched call: {e}", exc_info=True)
            ran += 1
