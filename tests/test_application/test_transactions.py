"""
Tests for the ledger write path and read paths
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.application.errors import InvalidArgument, StorageFailure
from app.application.transactions import (
    AppendTransactionUseCase,
    list_all_transactions,
    list_user_transactions,
    summarize_ledger,
)
from app.domain.transaction import TransactionType
from app.infrastructure.db.models import TransactionModel

U1 = "11111111-1111-1111-1111-111111111111"
U2 = "22222222-2222-2222-2222-222222222222"


def _append(db, **overrides):
    fields = dict(user_id=U1, contributor_name="Andi", amount=50000, type="DEPOSIT")
    fields.update(overrides)
    return AppendTransactionUseCase(db).execute(**fields)


class TestAppendTransaction:
    def test_persists_entry(self, db_session):
        entry = _append(db_session, note="gaji")

        row = db_session.query(TransactionModel).filter(TransactionModel.id == entry.id).one()
        assert row.user_id == U1
        assert row.contributor_name == "Andi"
        assert row.amount == 50000
        assert row.type == "DEPOSIT"
        assert row.note == "gaji"
        assert entry.type is TransactionType.DEPOSIT
        assert len(entry.id) == 36

    def test_returned_entry_equals_what_readers_see(self, db_session):
        entry = _append(db_session)

        assert list_all_transactions(db_session) == [entry]

    def test_default_timestamp_is_now_utc(self, db_session):
        before = datetime.now(timezone.utc)
        entry = _append(db_session)
        after = datetime.now(timezone.utc)

        assert entry.date.tzinfo == timezone.utc
        assert before.replace(microsecond=0) <= entry.date <= after

    def test_explicit_date_is_kept(self, db_session):
        entry = _append(db_session, date="2025-12-31T23:59:59.500Z")

        assert entry.to_wire()["date"] == "2025-12-31T23:59:59.500Z"
        stored = list_all_transactions(db_session)[0]
        assert stored.to_wire()["date"] == "2025-12-31T23:59:59.500Z"

    def test_empty_note_is_stored_as_null(self, db_session):
        entry = _append(db_session, note="")
        assert entry.note is None
        assert entry.to_wire()["note"] == ""

    @pytest.mark.parametrize("missing", ["user_id", "contributor_name", "amount", "type"])
    def test_missing_field(self, db_session, missing):
        with pytest.raises(InvalidArgument) as exc_info:
            _append(db_session, **{missing: None})
        assert exc_info.value.message == "Data transaksi tidak lengkap"

    def test_invalid_type(self, db_session):
        with pytest.raises(InvalidArgument) as exc_info:
            _append(db_session, type="TRANSFER")
        assert exc_info.value.message == "Tipe transaksi tidak valid"
        assert db_session.query(TransactionModel).count() == 0

    @pytest.mark.parametrize("amount", [-100, 10.5, "abc", "-5", True, [1]])
    def test_invalid_amount(self, db_session, amount):
        with pytest.raises(InvalidArgument) as exc_info:
            _append(db_session, amount=amount)
        assert exc_info.value.message == "Jumlah transaksi tidak valid"

    @pytest.mark.parametrize("amount, expected", [(50000.0, 50000), ("75000", 75000), (1, 1)])
    def test_integral_amounts_are_accepted(self, db_session, amount, expected):
        assert _append(db_session, amount=amount).amount == expected

    @pytest.mark.parametrize("name", ["   ", "Andi\x00", 42])
    def test_invalid_contributor_name(self, db_session, name):
        with pytest.raises(InvalidArgument) as exc_info:
            _append(db_session, contributor_name=name)
        assert exc_info.value.message == "Nama kontributor tidak valid"

    def test_contributor_name_is_free_label(self, db_session):
        """Nama kontributor boleh beda dari nama user"""
        entry = _append(db_session, contributor_name="Ibu Sari")
        assert entry.contributor_name == "Ibu Sari"

    @pytest.mark.parametrize("date", ["not-a-date", "2026-02-30", 1700000000, "0001-01-01T00:00:00+01:00"])
    def test_invalid_date(self, db_session, date):
        with pytest.raises(InvalidArgument) as exc_info:
            _append(db_session, date=date)
        assert exc_info.value.message == "Tanggal transaksi tidak valid"
        assert db_session.query(TransactionModel).count() == 0

    def test_store_failure(self):
        db = MagicMock()
        db.commit.side_effect = OperationalError("INSERT", {}, Exception("db down"))

        with pytest.raises(StorageFailure) as exc_info:
            _append(db)

        assert exc_info.value.message == "Gagal menyimpan transaksi"
        db.rollback.assert_called_once()


class TestListTransactions:
    def test_all_newest_first(self, db_session):
        first = _append(db_session, date="2026-01-01T08:00:00Z")
        third = _append(db_session, date="2026-01-03T08:00:00Z")
        second = _append(db_session, user_id=U2, date="2026-01-02T08:00:00Z")

        ids = [e.id for e in list_all_transactions(db_session)]

        assert ids == [third.id, second.id, first.id]

    def test_same_timestamp_tie_broken_by_id(self, db_session):
        entries = [_append(db_session, date="2026-01-01T08:00:00Z") for _ in range(5)]

        ids = [e.id for e in list_all_transactions(db_session)]

        assert ids == sorted((e.id for e in entries), reverse=True)

    def test_list_is_permutation_of_appends(self, db_session):
        appended = {_append(db_session, amount=i).id for i in range(1, 8)}
        assert {e.id for e in list_all_transactions(db_session)} == appended

    def test_for_user_filters_by_author(self, db_session):
        mine = _append(db_session)
        _append(db_session, user_id=U2)

        assert [e.id for e in list_user_transactions(db_session, U1)] == [mine.id]

    def test_for_user_requires_user_id(self, db_session):
        with pytest.raises(InvalidArgument) as exc_info:
            list_user_transactions(db_session, None)
        assert exc_info.value.message == "userId wajib"

    def test_read_failure(self):
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        with pytest.raises(StorageFailure) as exc_info:
            list_all_transactions(db)
        assert exc_info.value.message == "Gagal mengambil transaksi"


def test_summarize_ledger(db_session):
    _append(db_session, amount=50000)
    _append(db_session, amount=20000, type="WITHDRAWAL")

    summary = summarize_ledger(db_session)

    assert summary.total_balance == 30000
    assert summary.total_deposits == 50000
    assert summary.total_withdrawals == 20000
