"""
Ledger use cases - append-only writes and chronological reads of the shared ledger
"""
import logging
import uuid
from typing import Any, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.errors import InvalidArgument, StorageFailure
from app.domain.transaction import LedgerEntry, SavingsSummary, TransactionType, summarize
from app.infrastructure.db.models import TransactionModel
from app.utils.timestamps import parse_instant, utc_now

logger = logging.getLogger(__name__)


def _parse_amount(value: Any) -> int:
    """
    Positive integer in minor units.

    Accepts ints, integral floats (JSON 50000.0) and digit strings ("50000").
    """
    if isinstance(value, bool):
        raise InvalidArgument("Jumlah transaksi tidak valid")
    if isinstance(value, int):
        amount = value
    elif isinstance(value, float) and value.is_integer():
        amount = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        amount = int(value.strip())
    else:
        raise InvalidArgument("Jumlah transaksi tidak valid")

    if amount <= 0:
        raise InvalidArgument("Jumlah transaksi tidak valid")
    return amount


def _validate_contributor_name(value: Any) -> str:
    if not isinstance(value, str) or not value.strip() or not value.isprintable():
        raise InvalidArgument("Nama kontributor tidak valid")
    return value


class AppendTransactionUseCase:
    """
    Use case: append one DEPOSIT/WITHDRAWAL to the shared ledger

    The author id is trusted here (the front-door resolved it). No
    notifications are sent from this use case; see TransactionFanout.
    """

    def __init__(self, db: Session):
        self.db = db

    def execute(
        self,
        user_id: str | None,
        contributor_name: Any,
        amount: Any,
        type: Any,
        note: str | None = None,
        date: Any = None,
    ) -> LedgerEntry:
        """
        Validate, insert and commit a ledger entry

        Args:
            user_id: authoring user id
            contributor_name: free label shown in the history
            amount: positive integer (minor units)
            type: "DEPOSIT" or "WITHDRAWAL"
            note: optional free text
            date: optional ISO-8601 instant (default=now UTC)

        Returns:
            The persisted entry, exactly as readers will see it

        Raises:
            InvalidArgument: missing/invalid field
            StorageFailure: the store rejected the insert
        """
        if not user_id or not contributor_name or not amount or not type:
            raise InvalidArgument("Data transaksi tidak lengkap")

        tx_type = TransactionType.parse(type)
        amount = _parse_amount(amount)
        contributor_name = _validate_contributor_name(contributor_name)

        if date is not None and date != "":
            try:
                occurred_at = parse_instant(date)
            except ValueError:
                raise InvalidArgument("Tanggal transaksi tidak valid") from None
        else:
            occurred_at = utc_now()

        entry = LedgerEntry(
            id=str(uuid.uuid4()),
            user_id=str(user_id),
            contributor_name=contributor_name,
            amount=amount,
            type=tx_type,
            date=occurred_at,
            note=note or None,
        )

        try:
            self.db.add(TransactionModel(
                id=entry.id,
                user_id=entry.user_id,
                contributor_name=entry.contributor_name,
                amount=entry.amount,
                type=entry.type.value,
                date=entry.date,
                note=entry.note,
            ))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Create transaction error")
            raise StorageFailure("Gagal menyimpan transaksi") from exc

        logger.info(
            "Ledger append %s: %s %d by user %s",
            entry.id, entry.type.value, entry.amount, entry.user_id,
        )
        return entry


def _ordered_query(db: Session):
    # Newest first, id as tie-breaker
    return db.query(TransactionModel).order_by(
        TransactionModel.date.desc(),
        TransactionModel.id.desc(),
    )


def list_user_transactions(db: Session, user_id: str | None) -> List[LedgerEntry]:
    """Entries authored by one user, newest first"""
    if not user_id:
        raise InvalidArgument("userId wajib")

    try:
        rows = _ordered_query(db).filter(TransactionModel.user_id == user_id).all()
    except SQLAlchemyError as exc:
        logger.exception("Fetch transactions error")
        raise StorageFailure("Gagal mengambil transaksi") from exc
    return [LedgerEntry.from_model(row) for row in rows]


def list_all_transactions(db: Session) -> List[LedgerEntry]:
    """The whole shared ledger, newest first"""
    try:
        rows = _ordered_query(db).all()
    except SQLAlchemyError as exc:
        logger.exception("Fetch global transactions error")
        raise StorageFailure("Gagal mengambil transaksi") from exc
    return [LedgerEntry.from_model(row) for row in rows]


def summarize_ledger(db: Session) -> SavingsSummary:
    return summarize(list_all_transactions(db))
