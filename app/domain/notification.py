"""
Push notification payloads for ledger events.

Payload format (rendered by the client service worker, tag = data.type):
    {"title": "...", "body": "...", "data": {"type": "DEPOSIT", "userId": "..."}}
"""
from typing import Any, Dict

from app.domain.transaction import LedgerEntry, TransactionType
from app.utils.money import format_rupiah

# Title of notifications not tied to a ledger entry
DEFAULT_TITLE = "Savvy"

_TITLES = {
    TransactionType.DEPOSIT: "Tabungan Masuk",
    TransactionType.WITHDRAWAL: "Penarikan Dana",
}

_VERBS = {
    TransactionType.DEPOSIT: "menabung",
    TransactionType.WITHDRAWAL: "menarik",
}


def build_transaction_notification(entry: LedgerEntry) -> Dict[str, Any]:
    """
    Advisory payload describing a ledger append.

    Carries no authoritative state: clients must not mutate their ledgers from it.
    """
    return {
        "title": _TITLES[entry.type],
        "body": f"{entry.contributor_name} {_VERBS[entry.type]} {format_rupiah(entry.amount)}",
        "data": {
            "type": entry.type.value,
            "userId": entry.user_id,
        },
    }
