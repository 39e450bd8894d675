"""
Transaction Form Controller

Holds what the user is typing into the "Add Transaction" form,
validates it on submit, and hands the result to the store.

IMPORTANT: The controller never touches the displayed transaction list.
After a successful create it only resets its own amount and note; the
new row shows up when the store's subscription pushes the next snapshot.
"""

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from expense_tracker.audit import AuditLogger
from expense_tracker.models import (
    Category,
    Identity,
    NewTransaction,
    TransactionType,
    ValidationIssue,
)
from expense_tracker.services.storage import TransactionStoreInterface


class TransactionFormState(BaseModel):
    """
    Raw form fields.

    type and category are kept as plain strings so that whatever the
    widget sent can be checked, not assumed.
    """
    model_config = ConfigDict(validate_assignment=True)

    amount: str = ""
    type: str = TransactionType.EXPENSE.value
    category: str = Category.FOOD.value
    date: dt.date = Field(default_factory=dt.date.today)
    note: str = ""


class FormValidation(BaseModel):
    """Outcome of checking the form: a record to create, or issues."""

    new_transaction: Optional[NewTransaction] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.new_transaction is not None and not self.issues


class SubmissionResult(BaseModel):
    """What submit() did."""

    accepted: bool
    transaction_id: Optional[str] = None
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def message(self) -> str:
        """One line for the blocking error notice."""
        return " ".join(issue.message for issue in self.issues)


def parse_amount(raw: str) -> Optional[Decimal]:
    """Strictly positive, finite decimal from user text, or None."""
    try:
        amount = Decimal(raw.strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


class TransactionFormController:
    """
    Form state plus the submit operation.

    At most one submission is in flight at a time; a second submit while
    the first is still being accepted by the store is rejected.
    """

    def __init__(
        self,
        store: TransactionStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
        today: Callable[[], dt.date] = dt.date.today,
    ):
        self._store = store
        self._audit_logger = audit_logger
        self._state = TransactionFormState(date=today())
        self._in_flight = False

    @property
    def state(self) -> TransactionFormState:
        return self._state

    @property
    def is_submitting(self) -> bool:
        return self._in_flight

    def update(self, **fields) -> None:
        """Set one or more form fields by name."""
        unknown = set(fields) - set(TransactionFormState.model_fields)
        if unknown:
            raise ValueError(f"Unknown form fields: {', '.join(sorted(unknown))}")
        for name, value in fields.items():
            setattr(self._state, name, value)

    def validate(self) -> FormValidation:
        """Check the current fields without side effects."""
        state = self._state
        issues = []

        amount = parse_amount(state.amount)
        if amount is None:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Enter a positive amount.",
                suggested_fix="Use a number greater than zero, e.g. 12.50",
            ))

        try:
            tx_type = TransactionType(state.type)
        except ValueError:
            tx_type = None
            issues.append(ValidationIssue(
                field="type",
                issue_type="invalid_choice",
                message=f"Unknown transaction type: {state.type!r}.",
            ))

        try:
            category = Category(state.category)
        except ValueError:
            category = None
            issues.append(ValidationIssue(
                field="category",
                issue_type="invalid_choice",
                message=f"Unknown category: {state.category!r}.",
            ))

        if issues:
            return FormValidation(issues=issues)

        try:
            new_tx = NewTransaction(
                amount=amount,
                type=tx_type,
                category=category,
                date=state.date,
                note=state.note,
            )
        except ValidationError as e:
            return FormValidation(issues=[
                ValidationIssue(
                    field=".".join(str(p) for p in err["loc"]) or "form",
                    issue_type="invalid_value",
                    message=err["msg"],
                )
                for err in e.errors()
            ])
        return FormValidation(new_transaction=new_tx)

    def _reject(self, issue: ValidationIssue) -> SubmissionResult:
        return SubmissionResult(accepted=False, issues=[issue])

    async def submit(self, user: Optional[Identity]) -> SubmissionResult:
        """
        Validate and create.

        On success only amount and note are cleared; type, category and
        date stay for the next entry. Store errors propagate and leave
        the form untouched.
        """
        if user is None:
            return self._reject(ValidationIssue(
                field="user",
                issue_type="not_signed_in",
                message="Sign in to add transactions.",
            ))
        if self._in_flight:
            return self._reject(ValidationIssue(
                field="form",
                issue_type="submission_in_progress",
                message="A transaction is already being saved.",
                severity="warning",
            ))

        validation = self.validate()
        if not validation.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_transaction_rejected(
                    user_id=user.uid,
                    issues=[
                        {"field": i.field, "type": i.issue_type, "message": i.message}
                        for i in validation.issues
                    ],
                )
            return SubmissionResult(accepted=False, issues=validation.issues)

        new_tx = validation.new_transaction
        self._in_flight = True
        try:
            transaction_id = await self._store.add_transaction(user.uid, new_tx)
        finally:
            self._in_flight = False

        self._state.amount = ""
        self._state.note = ""

        if self._audit_logger:
            await self._audit_logger.log_transaction_created(
                user_id=user.uid,
                transaction_id=transaction_id,
                amount=str(new_tx.amount),
                transaction_type=new_tx.type.value,
                category=new_tx.category.value,
            )

        return SubmissionResult(accepted=True, transaction_id=transaction_id)
