"""Refresh signal emitted after the version history changes.

Views of the history (tree views, status bars, HTTP long-poll clients)
subscribe here instead of polling the store. A signal may be scoped to one
workspace-relative path; ``None`` means "anything may have changed".
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)

RefreshCallback = Callable[[Optional[str]], None]


class RefreshNotifier:
    """Fan-out of refresh signals to subscribers.

    Subscriber failures are logged and never reach the code that emitted
    the signal.
    """

    def __init__(self) -> None:
        self._subscribers: list[RefreshCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: RefreshCallback) -> Callable[[], None]:
        """Register *callback*. Returns a function that unsubscribes it."""
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    def emit(self, path: Optional[str] = None) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(path)
            except Exception:
                logger.exception("Refresh subscriber failed", extra={"path": path})

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
