"""
Abstract Identity Interface

The dashboard never asks "who is signed in?" imperatively. It subscribes
to a stream of identity values (an Identity, or None when signed out)
and reacts. sign_in() and sign_out() only start the process; their
effect arrives through the stream.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from expense_tracker.models import Identity
from expense_tracker.services.streams import Broadcaster, Subscription


IdentityCallback = Callable[[Optional[Identity]], None]


class IdentityProviderInterface(ABC):
    """
    Base for identity providers.

    Implementations call _set_identity() whenever they learn the current
    identity; listeners hear about it only when it actually changed.
    A failed authentication simply leaves the identity at None.
    """

    def __init__(self):
        self._identity: Optional[Identity] = None
        self._listeners: Broadcaster[Optional[Identity]] = Broadcaster()

    def current(self) -> Optional[Identity]:
        """The identity as last observed."""
        return self._identity

    def subscribe(self, callback: IdentityCallback) -> Subscription:
        """
        Call back with the current identity now and on every change.

        If that first call raises, the listener is removed again and the
        error propagates, so the caller can simply subscribe again later.
        """
        subscription = self._listeners.add(callback)
        try:
            callback(self._identity)
        except Exception:
            subscription.cancel()
            raise
        return subscription

    def _set_identity(self, identity: Optional[Identity]) -> None:
        if identity == self._identity:
            return
        self._identity = identity
        self._listeners.publish(identity)

    @abstractmethod
    def sign_in(self) -> None:
        """Begin an interactive sign-in."""
        pass

    @abstractmethod
    def sign_out(self) -> None:
        """End the session."""
        pass
