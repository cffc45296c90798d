from datetime import date, datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from models import Ledger, TransactionType
from schemas import TransactionIn
from services import (
    DashboardService,
    EntryError,
    EntryService,
    LedgerService,
    TransactionService,
    parse_amount,
)


def make_session() -> Session:
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return Session(engine)


def test_ledger_is_created_on_first_access() -> None:
    with make_session() as session:
        assert LedgerService(session).total() == 0
        assert session.query(Ledger).count() == 1


def test_create_updates_running_total() -> None:
    with make_session() as session:
        txns = TransactionService(session)
        txns.create(TransactionIn(type=TransactionType.income, amount=Decimal("250.00")))
        txns.create(
            TransactionIn(
                type=TransactionType.expense,
                amount=Decimal("40.50"),
                category="Groceries",
            )
        )
        assert LedgerService(session).total() == Decimal("209.50")


def test_created_at_matches_date() -> None:
    with make_session() as session:
        when = datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc)
        txn = TransactionService(session).create(
            TransactionIn(type=TransactionType.income, amount=Decimal("10"), date=when)
        )
        assert txn.category == "General"
        assert txn.created_at == txn.date


def test_delete_reverses_the_total() -> None:
    with make_session() as session:
        txns = TransactionService(session)
        income = txns.create(
            TransactionIn(type=TransactionType.income, amount=Decimal("100"))
        )
        expense = txns.create(
            TransactionIn(type=TransactionType.expense, amount=Decimal("30"))
        )

        txns.delete(expense.id)
        assert LedgerService(session).total() == 100
        txns.delete(income.id)
        assert LedgerService(session).total() == 0
        assert txns.list() == []

        with pytest.raises(ValueError):
            txns.delete(income.id)


def test_list_is_newest_first() -> None:
    with make_session() as session:
        txns = TransactionService(session)
        for day in (3, 1, 2):
            txns.create(
                TransactionIn(
                    type=TransactionType.income,
                    amount=Decimal(day),
                    date=datetime(2024, 1, day, tzinfo=timezone.utc),
                )
            )
        assert [t.amount for t in txns.list()] == [3, 2, 1]


def test_stage_rejects_invalid_amounts() -> None:
    with make_session() as session:
        entries = EntryService(session)
        for bad in ("", "abc", "0", "-5", None):
            with pytest.raises(EntryError, match="valid positive amount"):
                entries.stage("Income", bad)

        staged = entries.stage("Income", "99.999")
        assert staged.amount == Decimal("100.00")


def test_expense_cannot_exceed_current_total() -> None:
    with make_session() as session:
        entries = EntryService(session)
        entries.confirm(entries.stage("Income", "100"), "Gifts")

        with pytest.raises(EntryError, match="less than or equal to current total"):
            entries.stage("Expense", "100.01")
        staged = entries.stage(TransactionType.expense, "100")
        assert staged.type == TransactionType.expense


def test_confirm_resolves_categories() -> None:
    with make_session() as session:
        entries = EntryService(session)
        staged = entries.stage("Income", "500")
        assert entries.confirm(staged, "Other", "Bonus").category == "Bonus"
        assert entries.confirm(staged, "Other", "  ").category == "Other"
        assert entries.confirm(staged, "rent gain").category == "Rent Gain"

        with pytest.raises(ValueError, match="select a category"):
            entries.confirm(staged, "")

        assert LedgerService(session).total() == 1500


def test_dashboard_report_from_stored_transactions() -> None:
    with make_session() as session:
        txns = TransactionService(session)
        rows = [
            (TransactionType.income, "100", datetime(2024, 1, 1, 8, 0)),
            (TransactionType.expense, "30", datetime(2024, 1, 2, 8, 0)),
            (TransactionType.income, "50", datetime(2024, 2, 1, 8, 0)),
        ]
        for kind, amount, when in rows:
            txns.create(
                TransactionIn(
                    type=kind,
                    amount=Decimal(amount),
                    date=when.replace(tzinfo=timezone.utc),
                )
            )

        report = DashboardService(session).report("monthly", date(2024, 2, 15))
        assert report.income[-2:] == [100, 50]
        assert report.expense[-2:] == [30, 0]
        assert report.balance[-2:] == [70, 120]
        assert report.summary.current_balance == LedgerService(session).total()

        default = DashboardService(session).report(now=date(2024, 2, 15))
        assert default.timeframe.value == "monthly"


def test_parse_amount_bounds() -> None:
    assert parse_amount("12.345") == Decimal("12.35")
    assert parse_amount(9_999_999_999) == Decimal("9999999999.00")
    assert parse_amount("1e30") is None
    assert parse_amount("-1e30") is None
    assert parse_amount("Infinity") is None
    assert parse_amount(True) is None


def test_stage_rejects_oversized_amounts() -> None:
    with make_session() as session:
        with pytest.raises(EntryError, match="valid positive amount"):
            EntryService(session).stage("Income", "1e30")
