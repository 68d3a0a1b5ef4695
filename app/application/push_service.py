"""
Web Push dispatcher.

Sends a notification payload to every registered endpoint via pywebpush,
concurrently and bounded, and prunes endpoints that report 404/410.
Dispatch is best-effort and never raises to the caller.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from pywebpush import webpush, WebPushException
from starlette.concurrency import run_in_threadpool

from app.application.errors import UpstreamFailure
from app.application.push_subscriptions import PushSubscriptionRegistry, SubscriptionRecord
from app.config import Settings
from app.infrastructure.db.session import get_session_factory, session_scope

logger = logging.getLogger(__name__)

GONE_STATUSES = (404, 410)


class PushOutcome(str, Enum):
    DELIVERED = "DELIVERED"
    GONE = "GONE"  # endpoint permanently unsubscribed, row is pruned
    FAILED = "FAILED"  # network / 5xx / encryption; row is kept


@dataclass
class DispatchReport:
    attempted: int = 0
    delivered: int = 0
    pruned: int = 0
    failed: int = 0
    skipped: int = 0
    outcomes: Dict[str, PushOutcome] = field(default_factory=dict)
    failures: Dict[str, UpstreamFailure] = field(default_factory=dict)


def normalize_vapid_private_key(raw_key: str) -> str:
    """
    pywebpush accepts a raw base64url key or the base64 DER body of a PEM.

    .env may store PEM with literal \\n or real newlines depending on quoting.
    """
    if "\\n" in raw_key:
        raw_key = raw_key.replace("\\n", "\n")
    if "BEGIN" in raw_key:
        lines = [line.strip() for line in raw_key.strip().splitlines()
                 if line.strip() and not line.strip().startswith("-----")]
        raw_key = "".join(lines)
    return raw_key.strip()


class PushDispatcher:
    enabled = True

    def __init__(
        self,
        session_factory,
        vapid_private_key: str,
        vapid_subject: str,
        concurrency: int = 32,
        timeout: float = 10.0,
        ttl: int = 86400,
        sender: Callable[..., Any] = webpush,
    ):
        self.session_factory = session_factory
        self.vapid_private_key = normalize_vapid_private_key(vapid_private_key)
        self.vapid_subject = vapid_subject
        self.concurrency = max(1, concurrency)
        self.timeout = timeout
        self.ttl = ttl
        self.sender = sender

    async def dispatch(
        self,
        payload: Dict[str, Any],
        exclude_user_id: Optional[str] = None,
        only_user_id: Optional[str] = None,
    ) -> DispatchReport:
        """
        Send `payload` to every registered endpoint.

        Args:
            payload: {"title": ..., "body": ..., "data": {...}}
            exclude_user_id: all endpoints of this user are skipped
            only_user_id: restrict the dispatch to this user's endpoints

        Returns:
            DispatchReport once every send has resolved and gone endpoints are pruned
        """
        report = DispatchReport()
        try:
            # Snapshot first: pruning below must not race the enumeration
            subscriptions = await run_in_threadpool(self._snapshot)
            targets: List[SubscriptionRecord] = []
            for sub in subscriptions:
                if exclude_user_id is not None and sub.user_id == str(exclude_user_id):
                    report.skipped += 1
                elif only_user_id is not None and sub.user_id != str(only_user_id):
                    report.skipped += 1
                else:
                    targets.append(sub)

            data = json.dumps(payload, ensure_ascii=False)
            semaphore = asyncio.Semaphore(self.concurrency)

            async def send(sub: SubscriptionRecord):
                async with semaphore:
                    outcome, failure = await run_in_threadpool(self._send, sub, data)
                return sub, outcome, failure

            report.attempted = len(targets)
            results = await asyncio.gather(*(send(sub) for sub in targets))

            gone_ids = []
            for sub, outcome, failure in results:
                report.outcomes[sub.endpoint] = outcome
                if outcome is PushOutcome.DELIVERED:
                    report.delivered += 1
                elif outcome is PushOutcome.GONE:
                    gone_ids.append(sub.id)
                else:
                    report.failed += 1
                    report.failures[sub.endpoint] = failure

            if gone_ids:
                report.pruned = await run_in_threadpool(self._prune, gone_ids)
        except Exception:
            logger.exception("Push dispatch error")

        logger.info(
            "Push dispatch: attempted=%d delivered=%d pruned=%d failed=%d skipped=%d",
            report.attempted, report.delivered, report.pruned, report.failed, report.skipped,
        )
        return report

    def _snapshot(self) -> List[SubscriptionRecord]:
        with session_scope(self.session_factory) as db:
            return PushSubscriptionRegistry(db).list_all()

    def _prune(self, subscription_ids: List[int]) -> int:
        with session_scope(self.session_factory) as db:
            deleted = PushSubscriptionRegistry(db).delete_ids(subscription_ids)
        logger.info("Pruned %d expired push subscription(s)", deleted)
        return deleted

    def _send(self, sub: SubscriptionRecord, data: str) -> Tuple[PushOutcome, Optional[UpstreamFailure]]:
        """Blocking send of one notification (runs in the thread pool)."""
        try:
            self.sender(
                subscription_info=sub.subscription_info(),
                data=data,
                vapid_private_key=self.vapid_private_key,
                # pywebpush adds aud/exp to the claims dict, so a fresh one per send
                vapid_claims={"sub": self.vapid_subject},
                timeout=self.timeout,
                ttl=self.ttl,
            )
            return PushOutcome.DELIVERED, None
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else 0
            if status_code in GONE_STATUSES:
                logger.info("Subscription expired (HTTP %d), removing: %s", status_code, sub.endpoint[:60])
                return PushOutcome.GONE, None
            failure = UpstreamFailure(f"WebPush error (HTTP {status_code}): {e}", upstream_status=status_code)
        except Exception as e:
            failure = UpstreamFailure(f"Push send error: {e}")

        logger.error("%s for %s", failure.message, sub.endpoint[:60])
        return PushOutcome.FAILED, failure


class DisabledPushDispatcher:
    """Stand-in used when VAPID keys are absent: every dispatch is a no-op."""
    enabled = False

    async def dispatch(
        self,
        payload: Dict[str, Any],
        exclude_user_id: Optional[str] = None,
        only_user_id: Optional[str] = None,
    ) -> DispatchReport:
        return DispatchReport()


def build_push_dispatcher(settings: Settings, session_factory=None):
    if not settings.push_enabled:
        logger.warning("VAPID keys missing. Push notifications are disabled.")
        return DisabledPushDispatcher()

    return PushDispatcher(
        session_factory or get_session_factory(),
        vapid_private_key=settings.VAPID_PRIVATE_KEY,
        vapid_subject=settings.VAPID_SUBJECT,
        concurrency=settings.PUSH_CONCURRENCY,
        timeout=settings.PUSH_TIMEOUT_SECONDS,
        ttl=settings.PUSH_TTL_SECONDS,
    )
