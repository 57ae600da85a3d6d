import logging
import threading
from collections import defaultdict
from typing import Any, Callable

from .profile import is_profile_complete

logger = logging.getLogger(__name__)

Listener = Callable[[dict[str, Any] | None], None]


class RecordFeed:
    """In-process change feed: pushes the latest record to everyone watching it."""

    def __init__(self) -> None:
        self._listeners: dict[tuple[str, str], list[Listener]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, collection: str, record_id: str, listener: Listener) -> Callable[[], None]:
        key = (collection, str(record_id))
        with self._lock:
            self._listeners[key].append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(key)
                if listeners and listener in listeners:
                    listeners.remove(listener)
                if not listeners:
                    self._listeners.pop(key, None)

        return _unsubscribe

    def publish(self, collection: str, record_id: str, record: dict[str, Any] | None) -> int:
        key = (collection, str(record_id))
        with self._lock:
            listeners = list(self._listeners.get(key, []))
        for listener in listeners:
            try:
                listener(record)
            except Exception:
                logger.exception("[FEED] listener failed collection=%s id=%s", collection, record_id)
        return len(listeners)

    def subscriber_count(self, collection: str, record_id: str) -> int:
        with self._lock:
            return len(self._listeners.get((collection, str(record_id)), []))


feed = RecordFeed()


def watch_profile_completeness(
    record_feed: RecordFeed,
    user_id: str,
    on_change: Callable[[bool], None],
) -> Callable[[], None]:
    return record_feed.subscribe("users", user_id, lambda record: on_change(is_profile_complete(record)))
