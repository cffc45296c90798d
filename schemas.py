from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from models import TransactionType


class TransactionIn(BaseModel):
    type: TransactionType
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    category: str = Field(default="General", min_length=1, max_length=100)
    date: Optional[datetime] = None


class EntryIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: TransactionType
    amount: Union[str, int, float]
    category: Optional[str] = Field(default=None, max_length=100)
    custom_category: Optional[str] = Field(default=None, max_length=100)


class TransactionOut(BaseModel):
    id: int
    type: TransactionType
    amount: float
    category: str
    date: datetime
    created_at: datetime


class LedgerOut(BaseModel):
    total_amount: float
    transactions: list[TransactionOut]


class SummaryOut(BaseModel):
    total_income: float
    total_expense: float
    current_balance: float
    balance_change: float
    savings_rate: float
    expense_ratio: float
    net_savings: float
    income_share: float
    expense_share: float


class DashboardOut(BaseModel):
    timeframe: str
    keys: list[str]
    labels: list[str]
    income: list[float]
    expense: list[float]
    balance: list[float]
    summary: SummaryOut
