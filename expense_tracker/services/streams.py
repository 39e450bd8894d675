"""
Push-stream plumbing shared by the identity and store boundaries.

Both boundaries deliver whole values (the current identity, the complete
transaction list) to registered callbacks. A Subscription is the handle
a listener keeps so it can stop listening.

Callbacks that are bound methods are held weakly: when the object that
owns them is discarded (a Streamlit session going away), delivery to it
stops without anyone having to call cancel().
"""

import inspect
import threading
import weakref
from typing import Callable, Generic, Optional, TypeVar

T = TypeVar("T")


def callback_ref(callback: Callable) -> Callable[[], Optional[Callable]]:
    """
    Reference to a callback: weak for bound methods, strong otherwise.

    Calling the result gives the callback, or None once its owner is gone.
    """
    if inspect.ismethod(callback):
        return weakref.WeakMethod(callback)
    return lambda: callback


class Subscription:
    """
    Handle for an active listener.

    cancel() is idempotent and safe to call from any thread.
    """

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None):
        self._on_cancel = on_cancel
        self._lock = threading.Lock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            on_cancel, self._on_cancel = self._on_cancel, None
        if on_cancel is not None:
            on_cancel()


class Broadcaster(Generic[T]):
    """
    Fan-out of values to callbacks.

    Each callback receives the full value, never a diff.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: dict[int, Callable[[], Optional[Callable[[T], None]]]] = {}
        self._next_key = 0

    def __len__(self) -> int:
        with self._lock:
            return sum(1 for ref in self._listeners.values() if ref() is not None)

    def add(self, callback: Callable[[T], None]) -> Subscription:
        with self._lock:
            key = self._next_key
            self._next_key += 1
            self._listeners[key] = callback_ref(callback)
        return Subscription(lambda: self._remove(key))

    def _remove(self, key: int) -> None:
        with self._lock:
            self._listeners.pop(key, None)

    def publish(self, value: T) -> None:
        with self._lock:
            refs = list(self._listeners.items())
        for key, ref in refs:
            callback = ref()
            if callback is None:
                self._remove(key)
                continue
            callback(value)
