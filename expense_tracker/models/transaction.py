"""
Core Data Models for Expense Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at the boundaries (store reads, form submits)
2. Provide clear validation error messages
3. Be immutable once built, so snapshots can be shared without copying

DESIGN DECISION: We use Pydantic v2 with frozen models.
A Transaction read from the store is a cached copy; nothing in the
application is allowed to edit it.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money. Never any other value."""
    INCOME = "income"
    EXPENSE = "expense"


class Category(str, Enum):
    """
    Fixed category labels offered by the form.

    The value doubles as the display label, so it is what gets stored.
    """
    FOOD = "Food"
    TRANSPORT = "Transport"
    HOUSING = "Housing"
    UTILITIES = "Utilities"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    HEALTH = "Health"
    EDUCATION = "Education"
    TRAVEL = "Travel"
    SALARY = "Salary"
    FREELANCE = "Freelance"
    INVESTMENT = "Investment"
    GIFT = "Gift"
    OTHER = "Other"


# =============================================================================
# TRANSACTION MODELS
# =============================================================================

class NewTransaction(BaseModel):
    """
    A validated candidate record, ready for the store's create call.

    Has no id and no created_at: both are assigned by the store.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    amount: Decimal = Field(
        ...,
        gt=0,
        description="Positive amount, currency-agnostic"
    )
    type: TransactionType
    category: Category
    date: dt.date = Field(
        ...,
        description="Calendar day of the transaction"
    )
    note: Optional[str] = Field(
        default=None,
        description="Optional free-text annotation"
    )

    @field_validator('amount')
    @classmethod
    def amount_is_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v

    @field_validator('note')
    @classmethod
    def empty_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class Transaction(BaseModel):
    """
    A stored transaction as delivered by a subscription snapshot.

    category is a plain string here: the enumeration is enforced when a
    record is created, not retroactively when it is read back.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned identifier"
    )
    amount: Decimal = Field(..., gt=0)
    type: TransactionType
    category: str = Field(..., min_length=1)
    date: dt.date
    note: Optional[str] = None
    created_at: Optional[dt.datetime] = Field(
        default=None,
        description="Store-assigned creation time (audit only, never displayed)"
    )

    @field_validator('amount')
    @classmethod
    def amount_is_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v

    @field_validator('note')
    @classmethod
    def empty_note_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign the aggregation applies."""
        return self.amount if self.is_income else -self.amount


# =============================================================================
# DERIVED MODELS
# =============================================================================

class MonthlySummary(BaseModel):
    """
    Aggregate of one calendar month of transactions.

    Derived on every render, never persisted.
    """
    model_config = ConfigDict(frozen=True)

    month_start: dt.date = Field(
        ...,
        description="First day of the summarised month"
    )
    income: Decimal = Field(default=Decimal("0"), ge=0)
    expense: Decimal = Field(default=Decimal("0"), ge=0)
    by_category: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Category label -> signed net for the month"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def net(self) -> Decimal:
        return self.income - self.expense

    @model_validator(mode='after')
    def no_zero_categories(self) -> 'MonthlySummary':
        if any(value == 0 for value in self.by_category.values()):
            raise ValueError("by_category must not contain zero-net categories")
        return self

    @property
    def has_activity(self) -> bool:
        return bool(self.by_category) or self.income > 0 or self.expense > 0


# =============================================================================
# IDENTITY
# =============================================================================

class Identity(BaseModel):
    """An authenticated user principal."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    uid: str = Field(
        ...,
        min_length=1,
        description="Stable key for the user's transaction collection"
    )
    display_name: Optional[str] = None
    email: Optional[str] = None

    @property
    def label(self) -> str:
        """What the header shows after 'Logged in as'."""
        return self.display_name or self.email or self.uid


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'submission_in_progress')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )
