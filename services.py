from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from aggregation import Report, TransactionRecord, aggregate, parse_decimal
from categories import resolve_category
from config import get_settings
from models import DEFAULT_CATEGORY, Ledger, Transaction, TransactionType
from periods import Timeframe
from schemas import TransactionIn

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("9999999999.99")


def get_current_user_id() -> int:
    return 1


def local_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def as_utc(when: datetime) -> datetime:
    # SQLite hands DateTime columns back naive; they are written as UTC
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def signed_amount(txn_type: TransactionType, amount: Decimal) -> Decimal:
    return amount if txn_type == TransactionType.income else -amount


class EntryError(ValueError):
    pass


class LedgerService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()

    def get_or_create(self) -> Ledger:
        ledger = self.session.scalar(
            select(Ledger).where(Ledger.user_id == self.user_id)
        )
        if ledger is None:
            ledger = Ledger(user_id=self.user_id, total_amount=Decimal("0"))
            self.session.add(ledger)
            self.session.flush()
            logger.info(f"ledger_created: user_id={self.user_id}")
        return ledger

    def total(self) -> Decimal:
        return Decimal(self.get_or_create().total_amount)


class TransactionService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.ledger = LedgerService(session, self.user_id)

    def create(self, data: TransactionIn) -> Transaction:
        when = as_utc(data.date or datetime.now(timezone.utc))
        category = data.category.strip() or DEFAULT_CATEGORY
        txn = Transaction(
            user_id=self.user_id,
            type=data.type,
            amount=data.amount,
            category=category,
            date=when,
            created_at=when,
        )
        ledger = self.ledger.get_or_create()
        ledger.total_amount = Decimal(ledger.total_amount) + signed_amount(
            data.type, data.amount
        )
        self.session.add(txn)
        self.session.commit()
        self.session.refresh(txn)
        logger.info(
            f"transaction_created: id={txn.id} type={txn.type.value} "
            f"amount={txn.amount} total={ledger.total_amount}"
        )
        return txn

    def get(self, transaction_id: int) -> Transaction:
        txn = self.session.get(Transaction, transaction_id)
        if not txn or txn.user_id != self.user_id:
            raise ValueError("Transaction not found")
        return txn

    def list(self) -> list[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.user_id == self.user_id)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
        )
        return list(self.session.scalars(stmt))

    def delete(self, transaction_id: int) -> None:
        txn = self.get(transaction_id)
        ledger = self.ledger.get_or_create()
        ledger.total_amount = Decimal(ledger.total_amount) - signed_amount(
            txn.type, Decimal(txn.amount)
        )
        self.session.delete(txn)
        self.session.commit()
        logger.info(
            f"transaction_deleted: id={transaction_id} total={ledger.total_amount}"
        )

    def snapshot(self) -> tuple[TransactionRecord, ...]:
        return tuple(
            TransactionRecord(
                type=txn.type.value,
                amount=Decimal(txn.amount),
                date=as_utc(txn.date),
                category=txn.category or DEFAULT_CATEGORY,
                created_at=as_utc(txn.created_at),
            )
            for txn in self.list()
            if txn.date is not None
        )


@dataclass(frozen=True)
class StagedEntry:
    type: TransactionType
    amount: Decimal


def parse_amount(value: Union[str, int, float, Decimal, None]) -> Optional[Decimal]:
    amount = parse_decimal(value)
    # Numeric(12, 2) holds at most ten integer digits
    if amount is None or abs(amount) > MAX_AMOUNT:
        return None
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


class EntryService:
    """Validation of the two-step entry: stage an amount, then pick a category."""

    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.transactions = TransactionService(session, self.user_id)

    def stage(
        self,
        txn_type: Union[str, TransactionType],
        amount: Union[str, int, float, Decimal, None],
    ) -> StagedEntry:
        txn_type = TransactionType(txn_type)
        parsed = parse_amount(amount)
        if txn_type == TransactionType.income:
            if parsed is None or parsed <= 0:
                raise EntryError("Please enter a valid positive amount")
        else:
            total = self.transactions.ledger.total()
            if parsed is None or parsed <= 0 or parsed > total:
                raise EntryError(
                    "Please enter a valid amount less than or equal to current total"
                )
        return StagedEntry(type=txn_type, amount=parsed)

    def confirm(
        self,
        staged: StagedEntry,
        category: Optional[str],
        custom_name: Optional[str] = None,
        *,
        when: Optional[datetime] = None,
    ) -> Transaction:
        name = resolve_category(staged.type, category, custom_name)
        return self.transactions.create(
            TransactionIn(type=staged.type, amount=staged.amount, category=name, date=when)
        )


class DashboardService:
    def __init__(self, session: Session, user_id: Optional[int] = None) -> None:
        self.session = session
        self.user_id = user_id or get_current_user_id()
        self.transactions = TransactionService(session, self.user_id)

    def report(
        self,
        timeframe: Union[str, Timeframe, None] = None,
        now: Union[date, datetime, None] = None,
    ) -> Report:
        tz = local_tz()
        frame = Timeframe.parse(timeframe or get_settings().default_timeframe)
        records = self.transactions.snapshot()
        report = aggregate(records, frame, now or datetime.now(tz), tz)
        logger.info(
            f"dashboard_report: user_id={self.user_id} timeframe={frame.value} "
            f"transactions={len(records)} buckets={len(report.keys)}"
        )
        return report
