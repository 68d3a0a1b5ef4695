"""
Web Push subscription API endpoints.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_push_dispatcher
from app.application.errors import InvalidArgument
from app.application.push_subscriptions import PushSubscriptionRegistry
from app.config import get_settings
from app.domain.notification import DEFAULT_TITLE

router = APIRouter(prefix="/api/push", tags=["push"])


class PushKeys(BaseModel):
    p256dh: str | None = None
    auth: str | None = None


class SubscriptionBody(BaseModel):
    endpoint: str | None = None
    keys: PushKeys | None = None


class SubscribeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    subscription: SubscriptionBody | None = None


class UnsubscribeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    endpoint: str | None = None


class TestPushRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")


@router.post("/subscribe")
def subscribe(body: SubscribeRequest, db: Session = Depends(get_db)):
    sub = body.subscription or SubscriptionBody()
    keys = sub.keys or PushKeys()
    PushSubscriptionRegistry(db).upsert(
        user_id=body.user_id,
        endpoint=sub.endpoint,
        p256dh=keys.p256dh,
        auth=keys.auth,
    )
    return {"ok": True}


@router.delete("/unsubscribe")
def unsubscribe(body: UnsubscribeRequest, db: Session = Depends(get_db)):
    deleted = PushSubscriptionRegistry(db).delete(body.endpoint, user_id=body.user_id)
    return {"ok": True, "deleted": deleted}


@router.get("/public-key")
def public_key():
    """Application server key for PushManager.subscribe() on the client"""
    settings = get_settings()
    return {
        "enabled": settings.push_enabled,
        "publicKey": settings.VAPID_PUBLIC_KEY or None,
    }


@router.post("/test")
async def test_push(body: TestPushRequest, dispatcher=Depends(get_push_dispatcher)):
    """Send a test push to the caller's own devices to verify the setup."""
    if not body.user_id:
        raise InvalidArgument("userId wajib")

    report = await dispatcher.dispatch(
        {
            "title": DEFAULT_TITLE,
            "body": "Notifikasi push berfungsi!",
            "data": {"type": "TEST", "userId": body.user_id},
        },
        only_user_id=body.user_id,
    )
    return {"ok": True, "enabled": dispatcher.enabled, "sent": report.delivered}
