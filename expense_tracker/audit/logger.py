"""
Audit Logger

DESIGN DECISION: Every user action and backend failure is logged.
This provides:
1. Traceability (who added what, when the store assigned created_at)
2. Debugging capability when a backend misbehaves

The audit logger:
- Is async so it can share the event loop with store calls
- Gracefully handles failures (doesn't crash the app if logging fails)
"""

import logging
import sys
from typing import Callable, Optional

import structlog

from expense_tracker.models.audit import AuditEvent, AuditEventBuilder
from expense_tracker.services.storage import AuditStorageInterface


def configure_logging(level: str = "INFO") -> None:
    """
    Configure structlog over stdlib logging.

    Call once from the entry point. Library modules only call
    structlog.get_logger(__name__).
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def _record(self, build: Callable[..., AuditEvent], **kwargs) -> bool:
        """Build an event and log it. An event that cannot be built is reported, never raised."""
        try:
            event = build(**kwargs)
        except Exception as e:
            self._logger.error(
                "audit_event_invalid",
                builder=build.__name__,
                error=str(e),
            )
            return False
        return await self.log(event)

    async def log_signed_in(self, user_id: str) -> None:
        await self._record(AuditEventBuilder.signed_in, user_id=user_id)

    async def log_signed_out(self, user_id: str) -> None:
        await self._record(AuditEventBuilder.signed_out, user_id=user_id)

    async def log_subscription_started(self, user_id: str) -> None:
        await self._record(AuditEventBuilder.subscription_started, user_id=user_id)

    async def log_subscription_cancelled(self, user_id: str) -> None:
        await self._record(AuditEventBuilder.subscription_cancelled, user_id=user_id)

    async def log_transaction_created(
        self,
        user_id: str,
        transaction_id: str,
        amount: str,
        transaction_type: str,
        category: str,
    ) -> None:
        """Log an accepted form submission."""
        await self._record(
            AuditEventBuilder.transaction_created,
            user_id=user_id,
            transaction_id=transaction_id,
            amount=amount,
            transaction_type=transaction_type,
            category=category,
        )

    async def log_transaction_rejected(
        self,
        user_id: Optional[str],
        issues: list[dict],
    ) -> None:
        """Log a submission that failed validation."""
        await self._record(
            AuditEventBuilder.transaction_rejected,
            user_id=user_id,
            issues=issues,
        )

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Log an unexpected error."""
        await self._record(
            AuditEventBuilder.system_error,
            error_type=error_type,
            error_message=error_message,
            details=details,
            user_id=user_id,
        )

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        user_id: Optional[str] = None,
    ) -> None:
        """Log external service error."""
        await self._record(
            AuditEventBuilder.external_service_error,
            service=service,
            error_message=error_message,
            user_id=user_id,
        )
