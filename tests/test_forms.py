"""Tests for the transaction form controller."""

import asyncio
import datetime as dt
from decimal import Decimal

import pytest

from expense_tracker.audit import AuditLogger
from expense_tracker.forms import TransactionFormController, parse_amount
from expense_tracker.models import AuditEventType, Category, NewTransaction, TransactionType
from expense_tracker.services.storage import (
    InMemoryAuditStorage,
    StorageError,
    TransactionStoreInterface,
)
from expense_tracker.services.streams import Subscription


TODAY = dt.date(2025, 3, 15)


class RecordingStore(TransactionStoreInterface):
    """Remembers create requests instead of storing them."""

    def __init__(self):
        self.created: list[tuple[str, NewTransaction]] = []

    async def add_transaction(self, uid, new_tx):
        self.created.append((uid, new_tx))
        return f"tx-{len(self.created)}"

    def subscribe(self, uid, callback):
        callback(())
        return Subscription()


class BlockingStore(RecordingStore):
    """Holds every create until release is set."""

    def __init__(self):
        super().__init__()
        self.release = None

    async def add_transaction(self, uid, new_tx):
        await self.release.wait()
        return await super().add_transaction(uid, new_tx)


class FailingStore(RecordingStore):
    async def add_transaction(self, uid, new_tx):
        raise StorageError("backend unavailable")


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def form(store) -> TransactionFormController:
    return TransactionFormController(store=store, today=lambda: TODAY)


class TestParseAmount:
    """Tests for amount parsing."""

    @pytest.mark.parametrize("raw,expected", [
        ("25.50", Decimal("25.5")),
        (" 3 ", Decimal("3")),
        ("0.01", Decimal("0.01")),
        ("1e3", Decimal("1000")),
    ])
    def test_valid(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", ["", "0", "-5", "abc", "NaN", "Infinity", "0.00"])
    def test_invalid(self, raw):
        assert parse_amount(raw) is None


class TestFormState:
    """Tests for field handling."""

    def test_defaults(self, form):
        state = form.state
        assert state.amount == ""
        assert state.type == TransactionType.EXPENSE.value
        assert state.category == Category.FOOD.value
        assert state.date == TODAY
        assert state.note == ""
        assert form.is_submitting is False

    def test_update_fields(self, form):
        form.update(amount="12", type="income", category="Salary", note="bonus")
        assert form.state.amount == "12"
        assert form.state.type == "income"
        assert form.state.category == "Salary"
        assert form.state.note == "bonus"

    def test_update_date_from_iso_string(self, form):
        form.update(date="2024-12-31")
        assert form.state.date == dt.date(2024, 12, 31)

    def test_update_unknown_field(self, form):
        with pytest.raises(ValueError, match="Unknown form fields"):
            form.update(colour="red")


class TestValidate:
    """Tests for validate()."""

    def test_valid_form(self, form):
        form.update(amount="25.50", note="  lunch  ")
        result = form.validate()
        assert result.is_valid
        assert result.new_transaction.amount == Decimal("25.5")
        assert result.new_transaction.type == TransactionType.EXPENSE
        assert result.new_transaction.category == Category.FOOD
        assert result.new_transaction.note == "lunch"

    def test_blank_note_becomes_none(self, form):
        form.update(amount="1", note="   ")
        assert form.validate().new_transaction.note is None

    def test_unknown_type_and_category(self, form):
        form.update(amount="5", type="transfer", category="Crypto")
        result = form.validate()
        assert not result.is_valid
        assert {issue.field for issue in result.issues} == {"type", "category"}

    def test_no_date_range_restriction(self, form):
        form.update(amount="5", date=dt.date(1999, 1, 1))
        assert form.validate().new_transaction.date == dt.date(1999, 1, 1)


class TestSubmit:
    """Tests for submit()."""

    def test_zero_amount_rejected(self, form, store, user):
        """Amount '0' is rejected, nothing is sent, nothing is cleared."""
        form.update(amount="0", type="income", category="Salary", note="keep me")
        before = form.state.model_copy()

        result = asyncio.run(form.submit(user))

        assert result.accepted is False
        assert result.issues[0].field == "amount"
        assert result.message == "Enter a positive amount."
        assert store.created == []
        assert form.state == before

    def test_valid_submit_creates_and_clears(self, form, store, user):
        """25.50 is sent as 25.5; amount and note reset, the rest stays."""
        form.update(
            amount="25.50",
            type="income",
            category="Freelance",
            date=dt.date(2025, 3, 2),
            note="invoice 7",
        )

        result = asyncio.run(form.submit(user))

        assert result.accepted is True
        assert result.transaction_id == "tx-1"
        uid, sent = store.created[0]
        assert uid == user.uid
        assert sent.amount == Decimal("25.5")
        assert sent.type == TransactionType.INCOME
        assert sent.category == Category.FREELANCE
        assert sent.date == dt.date(2025, 3, 2)
        assert sent.note == "invoice 7"

        assert form.state.amount == ""
        assert form.state.note == ""
        assert form.state.type == "income"
        assert form.state.category == "Freelance"
        assert form.state.date == dt.date(2025, 3, 2)

    def test_signed_out_rejected(self, form, store):
        form.update(amount="10")
        result = asyncio.run(form.submit(None))
        assert result.accepted is False
        assert result.issues[0].issue_type == "not_signed_in"
        assert store.created == []

    def test_second_submit_while_in_flight_rejected(self, user):
        store = BlockingStore()
        form = TransactionFormController(store=store, today=lambda: TODAY)
        form.update(amount="10")

        async def scenario():
            store.release = asyncio.Event()
            first = asyncio.create_task(form.submit(user))
            await asyncio.sleep(0)
            assert form.is_submitting is True
            second = await form.submit(user)
            store.release.set()
            return await first, second

        first, second = asyncio.run(scenario())

        assert first.accepted is True
        assert second.accepted is False
        assert second.issues[0].issue_type == "submission_in_progress"
        assert len(store.created) == 1
        assert form.is_submitting is False

    def test_store_failure_propagates_and_keeps_fields(self, user):
        form = TransactionFormController(store=FailingStore(), today=lambda: TODAY)
        form.update(amount="10", note="keep")

        with pytest.raises(StorageError):
            asyncio.run(form.submit(user))

        assert form.state.amount == "10"
        assert form.state.note == "keep"
        assert form.is_submitting is False

    def test_audit_events(self, store, user):
        audit_storage = InMemoryAuditStorage()
        form = TransactionFormController(
            store=store,
            audit_logger=AuditLogger(audit_storage),
            today=lambda: TODAY,
        )

        form.update(amount="abc")
        asyncio.run(form.submit(user))
        form.update(amount="3")
        asyncio.run(form.submit(user))

        events = audit_storage.events
        types = {event.event_type for event in events}
        assert types == {
            AuditEventType.TRANSACTION_REJECTED,
            AuditEventType.TRANSACTION_CREATED,
        }
        assert all(event.user_id == user.uid for event in events)

    def test_long_note_is_accepted(self, form, store, user):
        """Notes are free text with no length limit."""
        form.update(amount="10", note="x" * 2000)

        result = asyncio.run(form.submit(user))

        assert result.accepted is True
        _, sent = store.created[0]
        assert len(sent.note) == 2000

    def test_model_rejection_becomes_issue(self, form, monkeypatch):
        """Anything the record model refuses is reported, not raised."""
        monkeypatch.setattr("expense_tracker.forms.parse_amount", lambda raw: Decimal("-1"))
        form.update(amount="10")

        result = form.validate()

        assert not result.is_valid
        assert result.issues[0].field == "amount"

    def test_very_long_amount_is_saved_and_audited(self, store, user):
        """An accepted save is never turned into a failure by auditing."""
        audit_storage = InMemoryAuditStorage()
        form = TransactionFormController(
            store=store,
            audit_logger=AuditLogger(audit_storage),
            today=lambda: TODAY,
        )
        form.update(amount="1" * 520)

        result = asyncio.run(form.submit(user))

        assert result.accepted is True
        assert len(store.created) == 1
        assert form.state.amount == ""
        (event,) = audit_storage.events
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.details["amount"] == "1" * 520


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
