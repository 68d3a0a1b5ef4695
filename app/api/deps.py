"""
FastAPI dependencies (DB session, live hub, push dispatcher, fan-out)

The long-lived components are built once per process in the app lifespan
and stored on app.state; routes receive them through these dependencies.
"""
from fastapi.requests import HTTPConnection

from app.application.fanout import TransactionFanout
from app.application.live_channels import LiveChannelHub
from app.infrastructure.db.session import get_db as _get_db


# Re-exported so routers import every dependency from one place
get_db = _get_db


def get_live_hub(conn: HTTPConnection) -> LiveChannelHub:
    return conn.app.state.live_hub


def get_push_dispatcher(conn: HTTPConnection):
    return conn.app.state.push_dispatcher


def get_fanout(conn: HTTPConnection) -> TransactionFanout:
    return conn.app.state.fanout
