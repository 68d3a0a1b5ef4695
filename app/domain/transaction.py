"""
Ledger entry domain - immutable deposit/withdrawal records of the shared pool
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from app.application.errors import InvalidArgument
from app.utils.timestamps import as_utc, format_instant, parse_instant


class TransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"

    @classmethod
    def parse(cls, value: Any) -> "TransactionType":
        """
        Closed set: DEPOSIT or WITHDRAWAL, exact match

        Raises:
            InvalidArgument: for anything else (e.g. "TRANSFER")
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgument("Tipe transaksi tidak valid") from None


@dataclass(frozen=True)
class LedgerEntry:
    """
    One committed ledger entry.

    Entries are never mutated after insert; the same value is returned to
    the author, broadcast on the live channel and served by the read path.
    """
    id: str
    user_id: str
    contributor_name: str
    amount: int
    type: TransactionType
    date: datetime
    note: Optional[str] = None

    @property
    def signed_amount(self) -> int:
        if self.type is TransactionType.DEPOSIT:
            return self.amount
        return -self.amount

    def to_wire(self) -> Dict[str, Any]:
        """
        Public wire shape:
            {id, userId, contributorName, amount, type, date, note}
        """
        return {
            "id": self.id,
            "userId": self.user_id,
            "contributorName": self.contributor_name,
            "amount": self.amount,
            "type": self.type.value,
            "date": format_instant(self.date),
            "note": self.note or "",
        }

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "LedgerEntry":
        return cls(
            id=data["id"],
            user_id=data.get("userId", ""),
            contributor_name=data["contributorName"],
            amount=int(data["amount"]),
            type=TransactionType.parse(data["type"]),
            date=parse_instant(data["date"]),
            note=data.get("note") or None,
        )

    @classmethod
    def from_model(cls, row) -> "LedgerEntry":
        """Build from a TransactionModel row"""
        return cls(
            id=row.id,
            user_id=row.user_id,
            contributor_name=row.contributor_name,
            amount=int(row.amount),
            type=TransactionType(row.type),
            date=as_utc(row.date),
            note=row.note,
        )


def ledger_sort_key(entry: LedgerEntry):
    """Chronological key; sort with reverse=True for newest first (ties by id)."""
    return (as_utc(entry.date), entry.id)


@dataclass(frozen=True)
class SavingsSummary:
    total_balance: int
    total_deposits: int
    total_withdrawals: int

    def to_wire(self) -> Dict[str, int]:
        return {
            "totalBalance": self.total_balance,
            "totalDeposits": self.total_deposits,
            "totalWithdrawals": self.total_withdrawals,
        }


def summarize(entries: Iterable[LedgerEntry]) -> SavingsSummary:
    """
    Derive the pool balance: sum(DEPOSIT) - sum(WITHDRAWAL).

    There is no stored balance, every reader computes it this way.
    """
    deposits = 0
    withdrawals = 0
    for entry in entries:
        if entry.type is TransactionType.DEPOSIT:
            deposits += entry.amount
        else:
            withdrawals += entry.amount
    return SavingsSummary(
        total_balance=deposits - withdrawals,
        total_deposits=deposits,
        total_withdrawals=withdrawals,
    )
