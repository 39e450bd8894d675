"""
Identity Providers

LocalIdentityProvider: one fixed user, for development and tests.

StreamlitIdentityProvider: Streamlit's built-in OIDC login
(st.login / st.logout / st.user). Providers and client secrets live in
.streamlit/secrets.toml under [auth]; the app never sees them.
Streamlit reruns the script on every interaction, so the provider is
refreshed once per run and emits only when the signed-in user changed.
"""

from typing import Any, Optional

import streamlit as st
import structlog

from expense_tracker.models import Identity
from expense_tracker.services.identity.interface import IdentityProviderInterface


logger = structlog.get_logger(__name__)


class LocalIdentityProvider(IdentityProviderInterface):
    """Signs a single configured user in and out, no network involved."""

    def __init__(self, identity: Identity, signed_in: bool = False):
        super().__init__()
        self._configured = identity
        if signed_in:
            self._set_identity(identity)

    def sign_in(self) -> None:
        self._set_identity(self._configured)

    def sign_out(self) -> None:
        self._set_identity(None)


def identity_from_user_info(user: Any) -> Optional[Identity]:
    """
    Build an Identity from Streamlit's st.user mapping.

    Uses the OIDC subject as uid, falling back to email. Anything that
    does not look signed in, or has neither, counts as no identity.
    """
    if not user or not user.get("is_logged_in", False):
        return None
    uid = user.get("sub") or user.get("email")
    if not uid:
        logger.warning("identity_missing_subject")
        return None
    return Identity(
        uid=str(uid),
        display_name=user.get("name"),
        email=user.get("email"),
    )


class StreamlitIdentityProvider(IdentityProviderInterface):
    """Identity from Streamlit's OIDC integration."""

    def __init__(self, provider: Optional[str] = None):
        """
        Args:
            provider: Named [auth.<provider>] section to use, or None
                      for the default [auth] section.
        """
        super().__init__()
        self._provider = provider

    def refresh(self) -> Optional[Identity]:
        """Re-read st.user; call once per script run."""
        self._set_identity(identity_from_user_info(st.user))
        return self.current()

    def sign_in(self) -> None:
        if self._provider:
            st.login(self._provider)
        else:
            st.login()

    def sign_out(self) -> None:
        st.logout()
