"""Thread-safe subscriber registry for newly stored notifications (user_id -> callbacks)."""
import threading
import logging
from typing import Callable

logger = logging.getLogger(__name__)

ALL_USERS = "*"

NotificationCallback = Callable[[dict], None]

_lock = threading.Lock()
_subscribers: dict[str, list[NotificationCallback]] = {}


def subscribe(user_id: str, callback: NotificationCallback) -> Callable[[], None]:
    """Register callback for notifications addressed to user_id (ALL_USERS for every user). Returns an unsubscribe function."""
    with _lock:
        _subscribers.setdefault(user_id, []).append(callback)
        logger.debug(f"Subscribed listener for {user_id}")

    def unsubscribe() -> None:
        with _lock:
            callbacks = _subscribers.get(user_id)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)
                if not callbacks:
                    del _subscribers[user_id]
                logger.debug(f"Unsubscribed listener for {user_id}")

    return unsubscribe


def publish(notification: dict) -> int:
    """Deliver one stored notification row to its listeners. Returns the number of callbacks invoked."""
    user_id = notification.get("user_id")
    with _lock:
        callbacks = list(_subscribers.get(user_id, ())) + list(_subscribers.get(ALL_USERS, ()))
    delivered = 0
    for callback in callbacks:
        try:
            callback(notification)
            delivered += 1
        except Exception as e:
            logger.warning(f"Notification listener failed for user {user_id}: {e}")
    return delivered


def subscriber_count(user_id: str) -> int:
    with _lock:
        return len(_subscribers.get(user_id, ()))


def clear() -> None:
    with _lock:
        _subscribers.clear()
