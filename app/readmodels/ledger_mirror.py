"""
LedgerMirror - client-side read model of the shared ledger

Reconciliation contract for live clients:
    1. on connect / reconnect: fetch /api/transactions/all and seed()
    2. on every live frame: apply_frame() drops ids already seen
    3. after a successful POST: record_local() with the server response,
       so the echoed live frame is dropped as well

The live channel is only a low-latency shortcut. Push payloads are
advisory and are never applied here.
"""
import json
from typing import Any, Dict, Iterable, List, Set, Union

from app.domain.transaction import LedgerEntry, SavingsSummary, ledger_sort_key, summarize

Frame = Union[str, bytes, Dict[str, Any]]


class LedgerMirror:
    def __init__(self) -> None:
        self._entries: Dict[str, LedgerEntry] = {}
        self._seen: Set[str] = set()

    def seed(self, entries: Iterable[Union[LedgerEntry, Dict[str, Any]]]) -> int:
        """
        Replace local state with a full fetch and reset the seen-set.

        Returns:
            Number of entries loaded
        """
        self._entries = {}
        self._seen = set()
        for item in entries:
            entry = item if isinstance(item, LedgerEntry) else LedgerEntry.from_wire(item)
            self._entries[entry.id] = entry
            self._seen.add(entry.id)
        return len(self._entries)

    def has_seen(self, entry_id: str) -> bool:
        return entry_id in self._seen

    def record_local(self, entry: Union[LedgerEntry, Dict[str, Any]]) -> bool:
        """
        Insert the authoritative POST response.

        Returns False if the entry already arrived through the live channel.
        """
        if not isinstance(entry, LedgerEntry):
            entry = LedgerEntry.from_wire(entry)
        return self._add(entry)

    def apply_frame(self, frame: Frame) -> bool:
        """
        Apply one live channel frame.

        Idempotent: frames of other types and ids already seen are ignored.

        Returns:
            True if a new entry was added
        """
        if isinstance(frame, (str, bytes)):
            try:
                frame = json.loads(frame)
            except ValueError:
                return False
        if not isinstance(frame, dict) or frame.get("type") != "transaction":
            return False

        data = frame.get("data") or {}
        entry_id = data.get("id")
        if not entry_id or entry_id in self._seen:
            return False
        return self._add(LedgerEntry.from_wire(data))

    def _add(self, entry: LedgerEntry) -> bool:
        if entry.id in self._seen:
            return False
        self._seen.add(entry.id)
        self._entries[entry.id] = entry
        return True

    @property
    def entries(self) -> List[LedgerEntry]:
        """Newest first, id as tie-breaker"""
        return sorted(self._entries.values(), key=ledger_sort_key, reverse=True)

    def __len__(self) -> int:
        return len(self._entries)

    def summary(self) -> SavingsSummary:
        return summarize(self._entries.values())
