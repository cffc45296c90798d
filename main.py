import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Response
from sqlalchemy.orm import Session

from aggregation import Report
from categories import search_categories
from database import SessionLocal, create_tables
from models import Transaction, TransactionType
from periods import Timeframe
from schemas import (
    DashboardOut,
    EntryIn,
    LedgerOut,
    SummaryOut,
    TransactionOut,
)
from services import (
    DashboardService,
    EntryService,
    LedgerService,
    TransactionService,
    as_utc,
)

logging.basicConfig(level=logging.INFO)

app = FastAPI(title="Finance Tracker")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@app.on_event("startup")
def startup_event():
    create_tables()


def transaction_out(txn: Transaction) -> TransactionOut:
    return TransactionOut(
        id=txn.id,
        type=txn.type,
        amount=float(txn.amount),
        category=txn.category,
        date=as_utc(txn.date),
        created_at=as_utc(txn.created_at),
    )


def dashboard_out(report: Report) -> DashboardOut:
    s = report.summary
    return DashboardOut(
        timeframe=report.timeframe.value,
        keys=report.keys,
        labels=report.labels,
        income=[float(v) for v in report.income],
        expense=[float(v) for v in report.expense],
        balance=[float(v) for v in report.balance],
        summary=SummaryOut(
            total_income=float(s.total_income),
            total_expense=float(s.total_expense),
            current_balance=float(s.current_balance),
            balance_change=float(s.balance_change),
            savings_rate=round(float(s.savings_rate), 1),
            expense_ratio=round(float(s.expense_ratio), 1),
            net_savings=float(s.net_savings),
            income_share=round(float(s.income_share), 1),
            expense_share=round(float(s.expense_share), 1),
        ),
    )


@app.get("/api/dashboard", response_model=DashboardOut)
def api_dashboard(timeframe: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        frame = Timeframe.parse(timeframe) if timeframe else None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return dashboard_out(DashboardService(db).report(frame))


@app.get("/api/transactions", response_model=LedgerOut)
def api_transactions(db: Session = Depends(get_db)):
    total = LedgerService(db).total()
    items = TransactionService(db).list()
    return LedgerOut(
        total_amount=float(total),
        transactions=[transaction_out(txn) for txn in items],
    )


@app.post("/api/transactions", response_model=TransactionOut, status_code=201)
def api_create_transaction(data: EntryIn, db: Session = Depends(get_db)):
    service = EntryService(db)
    try:
        staged = service.stage(data.type, data.amount)
        txn = service.confirm(staged, data.category, data.custom_category)
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return transaction_out(txn)


@app.delete("/api/transactions/{transaction_id}", status_code=204)
def api_delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    try:
        TransactionService(db).delete(transaction_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return Response(status_code=204)


@app.get("/api/categories")
def api_categories(type: TransactionType, q: Optional[str] = None):
    return {"type": type.value, "categories": search_categories(type, q)}
