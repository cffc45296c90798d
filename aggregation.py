"""Dashboard aggregation engine.

``aggregate`` is a pure function of the transaction snapshot, the timeframe
and an injected "now". It never raises on malformed records: undated ones
are ignored, unusable amounts count as zero and unknown types add to no sum.
"""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

from models import DEFAULT_CATEGORY, TransactionType
from periods import Bucket, Timeframe, bucket_key, local_date, seed_window

ZERO = Decimal("0")
HUNDRED = Decimal("100")

INCOME = TransactionType.income.value
EXPENSE = TransactionType.expense.value


def parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or isinstance(value, bool) or value == "":
        return None
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not amount.is_finite():
        return None
    return amount


def to_amount(value: Any) -> Decimal:
    amount = parse_decimal(value)
    return ZERO if amount is None else amount


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class TransactionRecord:
    type: str
    amount: Any
    date: Optional[datetime]
    category: str = DEFAULT_CATEGORY
    created_at: Optional[datetime] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TransactionRecord":
        """Build a record from a stored document (``createdAt`` style keys)."""
        when = parse_timestamp(data.get("date"))
        created = parse_timestamp(data.get("createdAt", data.get("created_at")))
        return cls(
            type=str(data.get("type") or ""),
            amount=data.get("amount"),
            date=when,
            category=(str(data.get("category") or "").strip() or DEFAULT_CATEGORY),
            created_at=created or when,
        )


@dataclass(frozen=True)
class Summary:
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    current_balance: Decimal = ZERO
    balance_change: Decimal = ZERO
    savings_rate: Decimal = ZERO
    expense_ratio: Decimal = ZERO
    net_savings: Decimal = ZERO
    income_share: Decimal = ZERO
    expense_share: Decimal = ZERO


@dataclass(frozen=True)
class Report:
    timeframe: Timeframe
    keys: list[str]
    labels: list[str]
    income: list[Decimal]
    expense: list[Decimal]
    balance: list[Decimal]
    summary: Summary = field(default_factory=Summary)


def _to_local(when: Union[date, datetime], tz: Optional[tzinfo]) -> datetime:
    # naive local wall-clock time, comparable across aware and naive inputs
    if not isinstance(when, datetime):
        return datetime.combine(when, time.min)
    if when.tzinfo is not None:
        if tz is not None:
            when = when.astimezone(tz)
        return when.replace(tzinfo=None)
    return when


def _dated(records: Iterable[TransactionRecord]) -> list[TransactionRecord]:
    # dates may arrive as ISO strings; unparseable ones drop the record
    out: list[TransactionRecord] = []
    for record in records:
        when = parse_timestamp(record.date)
        if when is None:
            continue
        out.append(record if when is record.date else replace(record, date=when))
    return out


def _signed(record: TransactionRecord) -> Decimal:
    if record.type == INCOME:
        return to_amount(record.amount)
    if record.type == EXPENSE:
        return -to_amount(record.amount)
    return ZERO


def _fold(
    records: Iterable[TransactionRecord],
    buckets: Mapping[str, Bucket],
    timeframe: Timeframe,
    tz: Optional[tzinfo],
) -> None:
    for record in records:
        key, _ = bucket_key(_to_local(record.date, tz), timeframe)
        bucket = buckets.get(key)
        if bucket is None:
            continue
        if record.type == INCOME:
            bucket.income += to_amount(record.amount)
        elif record.type == EXPENSE:
            bucket.expense += to_amount(record.amount)


def _running_balance(
    records: Sequence[TransactionRecord],
    window: Sequence[Bucket],
    timeframe: Timeframe,
    tz: Optional[tzinfo],
) -> list[Decimal]:
    ordered = sorted(records, key=lambda r: _to_local(r.date, tz))

    running = ZERO
    points: dict[str, Decimal] = {}
    for record in ordered:
        if record.type not in (INCOME, EXPENSE):
            continue
        running += _signed(record)
        key, _ = bucket_key(_to_local(record.date, tz), timeframe)
        points[key] = running

    if not window:
        return []

    first_start = datetime.combine(window[0].start, time.min)
    last_known = sum(
        (_signed(r) for r in ordered if _to_local(r.date, tz) < first_start), ZERO
    )

    series: list[Decimal] = []
    for bucket in window:
        if bucket.key in points:
            last_known = points[bucket.key]
        series.append(last_known)
    return series


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    return part / whole * HUNDRED


def summarize(
    income: Sequence[Decimal], expense: Sequence[Decimal], balance: Sequence[Decimal]
) -> Summary:
    total_income = sum(income, ZERO)
    total_expense = sum(expense, ZERO)
    current = balance[-1] if balance else ZERO
    change = current - balance[-2] if len(balance) >= 2 else ZERO
    net = total_income - total_expense

    savings_rate = expense_ratio = ZERO
    if total_income > 0:
        savings_rate = max(ZERO, _percent(net, total_income))
        expense_ratio = _percent(total_expense, total_income)

    income_share = expense_share = ZERO
    gross = total_income + total_expense
    if gross > 0:
        income_share = _percent(total_income, gross)
        expense_share = _percent(total_expense, gross)

    return Summary(
        total_income=total_income,
        total_expense=total_expense,
        current_balance=current,
        balance_change=change,
        savings_rate=savings_rate,
        expense_ratio=expense_ratio,
        net_savings=net,
        income_share=income_share,
        expense_share=expense_share,
    )


def aggregate(
    transactions: Iterable[TransactionRecord],
    timeframe: Union[str, Timeframe],
    now: Union[date, datetime],
    tz: Optional[tzinfo] = None,
) -> Report:
    """Bucket ``transactions`` into the window ending at ``now``.

    Income and expense are summed per bucket for transactions inside the
    window. The balance series is rebuilt from the full history, so older
    transactions shift every value through the opening balance without
    getting a bucket of their own. When ``tz`` is omitted an aware ``now``
    supplies it.
    """
    timeframe = Timeframe.parse(timeframe)
    if tz is None and isinstance(now, datetime) and now.tzinfo is not None:
        tz = now.tzinfo
    today = local_date(now, tz)

    dated = _dated(transactions)
    years: set[int] = set()
    if timeframe is Timeframe.yearly:
        years = {_to_local(t.date, tz).year for t in dated}

    window = seed_window(timeframe, today, years)
    by_key = {bucket.key: bucket for bucket in window}
    _fold(dated, by_key, timeframe, tz)

    income = [bucket.income for bucket in window]
    expense = [bucket.expense for bucket in window]
    balance = _running_balance(dated, window, timeframe, tz)

    return Report(
        timeframe=timeframe,
        keys=[bucket.key for bucket in window],
        labels=[bucket.label for bucket in window],
        income=income,
        expense=expense,
        balance=balance,
        summary=summarize(income, expense, balance),
    )
