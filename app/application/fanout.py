"""
Transaction fan-out: ledger append -> live broadcast -> web push.

Order per append by user U:
    1. append the entry (failure propagates, nothing else runs)
    2. build the frame {"type": "transaction", "data": <entry>}
    3. broadcast it to every open live channel, U's own sessions included
    4. push a notification to every endpoint not owned by U

Step 3 starts right after the append returns, before any other I/O, and
always before step 4. Broadcast and push failures are logged, never raised.
"""
import asyncio
import logging
from typing import Any, Optional, Set

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.application.live_channels import LiveChannelHub
from app.application.push_service import DispatchReport
from app.application.transactions import AppendTransactionUseCase
from app.domain.notification import build_transaction_notification
from app.domain.transaction import LedgerEntry

logger = logging.getLogger(__name__)

TRANSACTION_FRAME = "transaction"


def build_transaction_frame(entry: LedgerEntry) -> dict:
    return {"type": TRANSACTION_FRAME, "data": entry.to_wire()}


class TransactionFanout:
    def __init__(self, hub: LiveChannelHub, dispatcher):
        self.hub = hub
        self.dispatcher = dispatcher
        self._background: Set[asyncio.Task] = set()

    async def record(
        self,
        db: Session,
        *,
        user_id: Optional[str],
        contributor_name: Any,
        amount: Any,
        type: Any,
        note: Optional[str] = None,
        date: Any = None,
        await_push: bool = True,
    ) -> LedgerEntry:
        """
        Append an entry and fan it out.

        Args:
            await_push: True on the HTTP write path (the push result is
                awaited but never changes the response); False schedules
                the push as a background task

        Raises:
            InvalidArgument / StorageFailure from the append only
        """
        entry = await run_in_threadpool(
            AppendTransactionUseCase(db).execute,
            user_id=user_id,
            contributor_name=contributor_name,
            amount=amount,
            type=type,
            note=note,
            date=date,
        )

        self.publish(entry)

        if await_push:
            await self.notify(entry)
        else:
            task = asyncio.create_task(self.notify(entry))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
        return entry

    def publish(self, entry: LedgerEntry) -> int:
        """Broadcast the change frame. Returns how many channels got it."""
        try:
            return self.hub.broadcast_json(build_transaction_frame(entry))
        except Exception:
            logger.exception("Broadcast error for entry %s", entry.id)
            return 0

    async def notify(self, entry: LedgerEntry) -> DispatchReport:
        """Push to everyone except the author (all of the author's devices)."""
        try:
            return await self.dispatcher.dispatch(
                build_transaction_notification(entry),
                exclude_user_id=entry.user_id,
            )
        except Exception:
            logger.exception("Push fan-out error for entry %s", entry.id)
            return DispatchReport()

    @property
    def pending(self) -> int:
        return len(self._background)

    async def drain(self) -> None:
        """Wait for scheduled background pushes (shutdown)."""
        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
