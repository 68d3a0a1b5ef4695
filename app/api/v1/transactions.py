"""
Transaction API endpoints
"""
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_fanout
from app.application.fanout import TransactionFanout
from app.application.transactions import (
    list_all_transactions,
    list_user_transactions,
    summarize_ledger,
)


router = APIRouter(prefix="/api/transactions", tags=["transactions"])


# === Request models ===

class CreateTransactionRequest(BaseModel):
    """
    Loose on purpose: field-level checks happen in AppendTransactionUseCase
    so that every failure maps to a 400 with an Indonesian message.
    """
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    contributor_name: Any = Field(default=None, alias="contributorName")
    amount: Any = None
    type: Any = None
    note: str | None = None
    date: Any = None


# === Endpoints ===

@router.get("")
def list_for_user(
    user_id: str | None = Query(default=None, alias="userId"),
    db: Session = Depends(get_db),
):
    """Transaksi milik satu user, terbaru dulu"""
    return [entry.to_wire() for entry in list_user_transactions(db, user_id)]


@router.get("/all")
def list_all(db: Session = Depends(get_db)):
    """Seluruh ledger bersama, terbaru dulu"""
    return [entry.to_wire() for entry in list_all_transactions(db)]


@router.get("/summary")
def summary(db: Session = Depends(get_db)):
    return summarize_ledger(db).to_wire()


@router.post("")
async def create_transaction(
    req: CreateTransactionRequest,
    db: Session = Depends(get_db),
    fanout: TransactionFanout = Depends(get_fanout),
):
    """
    Append a ledger entry, broadcast it live and push it to other members.

    The response is the committed entry; broadcast/push failures never change it.
    """
    entry = await fanout.record(
        db,
        user_id=req.user_id,
        contributor_name=req.contributor_name,
        amount=req.amount,
        type=req.type,
        note=req.note,
        date=req.date,
    )
    return entry.to_wire()
