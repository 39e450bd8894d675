"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.transaction import (
    Category,
    Identity,
    MonthlySummary,
    NewTransaction,
    Transaction,
    TransactionType,
    ValidationIssue,
)
from expense_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "Category",
    "Identity",
    "MonthlySummary",
    "NewTransaction",
    "Transaction",
    "TransactionType",
    "ValidationIssue",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
