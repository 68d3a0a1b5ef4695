"""
Push subscription registry - endpoints keyed by their unique URL
"""
import logging
import re
from dataclasses import dataclass
from typing import Iterable, List
from urllib.parse import urlparse

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.errors import InvalidArgument, StorageFailure
from app.infrastructure.db.models import PushSubscription

logger = logging.getLogger(__name__)

_BASE64URL = re.compile(r"^[A-Za-z0-9_-]+={0,2}$")


@dataclass(frozen=True)
class SubscriptionRecord:
    """Detached snapshot of a push_subscriptions row"""
    id: int
    user_id: str
    endpoint: str
    p256dh: str
    auth: str

    @classmethod
    def from_model(cls, row: PushSubscription) -> "SubscriptionRecord":
        return cls(
            id=row.id,
            user_id=row.user_id,
            endpoint=row.endpoint,
            p256dh=row.p256dh,
            auth=row.auth,
        )

    def subscription_info(self) -> dict:
        """Format expected by pywebpush"""
        return {
            "endpoint": self.endpoint,
            "keys": {"p256dh": self.p256dh, "auth": self.auth},
        }


def validate_subscription(user_id, endpoint, p256dh, auth) -> None:
    """
    Raises:
        InvalidArgument: missing field, relative/non-http endpoint or non-base64url key
    """
    if not user_id or not endpoint or not p256dh or not auth:
        raise InvalidArgument("Data subscription tidak lengkap")

    parsed = urlparse(str(endpoint))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidArgument("Endpoint subscription tidak valid")

    for key in (p256dh, auth):
        if not isinstance(key, str) or not _BASE64URL.match(key):
            raise InvalidArgument("Kunci subscription tidak valid")


class PushSubscriptionRegistry:
    """
    Upsert / delete / enumerate push endpoints.

    One row per endpoint: a device that re-subscribes under another
    account moves its row to the new user instead of creating a duplicate.
    """

    def __init__(self, db: Session):
        self.db = db

    def upsert(self, user_id: str, endpoint: str, p256dh: str, auth: str) -> None:
        validate_subscription(user_id, endpoint, p256dh, auth)

        try:
            if not self._update(user_id, endpoint, p256dh, auth):
                self.db.add(PushSubscription(
                    user_id=user_id,
                    endpoint=endpoint,
                    p256dh=p256dh,
                    auth=auth,
                ))
            self.db.commit()
        except IntegrityError:
            # Concurrent insert of the same endpoint won the unique index
            self.db.rollback()
            try:
                self._update(user_id, endpoint, p256dh, auth)
                self.db.commit()
            except SQLAlchemyError as exc:
                self.db.rollback()
                logger.exception("Subscribe error")
                raise StorageFailure("Gagal menyimpan subscription") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Subscribe error")
            raise StorageFailure("Gagal menyimpan subscription") from exc

        logger.info("Push endpoint registered for user %s: %s", user_id, endpoint[:60])

    def _update(self, user_id: str, endpoint: str, p256dh: str, auth: str) -> bool:
        existing = self.db.query(PushSubscription).filter(
            PushSubscription.endpoint == endpoint
        ).first()
        if not existing:
            return False
        existing.user_id = user_id
        existing.p256dh = p256dh
        existing.auth = auth
        return True

    def delete(self, endpoint: str, user_id: str | None = None) -> int:
        """
        Remove an endpoint explicitly (unsubscribe). Optionally restricted to its owner.

        Returns the number of deleted rows (0 or 1).
        """
        if not endpoint:
            raise InvalidArgument("Data subscription tidak lengkap")

        query = self.db.query(PushSubscription).filter(PushSubscription.endpoint == endpoint)
        if user_id is not None:
            query = query.filter(PushSubscription.user_id == user_id)
        try:
            deleted = query.delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Unsubscribe error")
            raise StorageFailure("Gagal menghapus subscription") from exc
        return deleted

    def delete_ids(self, subscription_ids: Iterable[int]) -> int:
        """Prune by surrogate id. Already-deleted rows are a no-op."""
        ids = list(subscription_ids)
        if not ids:
            return 0
        try:
            deleted = self.db.query(PushSubscription).filter(
                PushSubscription.id.in_(ids)
            ).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageFailure("Gagal menghapus subscription") from exc
        return deleted

    def list_all(self) -> List[SubscriptionRecord]:
        try:
            rows = self.db.query(PushSubscription).order_by(PushSubscription.id).all()
        except SQLAlchemyError as exc:
            raise StorageFailure("Gagal mengambil subscription") from exc
        return [SubscriptionRecord.from_model(row) for row in rows]

    def list_for_user(self, user_id: str) -> List[SubscriptionRecord]:
        try:
            rows = self.db.query(PushSubscription).filter(
                PushSubscription.user_id == user_id
            ).order_by(PushSubscription.id).all()
        except SQLAlchemyError as exc:
            raise StorageFailure("Gagal mengambil subscription") from exc
        return [SubscriptionRecord.from_model(row) for row in rows]
