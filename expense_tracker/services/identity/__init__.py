"""
Identity Services Package

Who is signed in, delivered as a stream of Identity-or-None values.
"""

from expense_tracker.services.identity.interface import (
    IdentityCallback,
    IdentityProviderInterface,
)
from expense_tracker.services.identity.providers import (
    LocalIdentityProvider,
    StreamlitIdentityProvider,
    identity_from_user_info,
)

__all__ = [
    "IdentityCallback",
    "IdentityProviderInterface",
    "LocalIdentityProvider",
    "StreamlitIdentityProvider",
    "identity_from_user_info",
]
