"""
Authentication routes (register, login, change password)

Sync handlers: FastAPI runs them in the thread pool, so password
hashing never blocks the event loop.
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.application.accounts import (
    AuthenticateUserUseCase,
    ChangePasswordUseCase,
    RegisterUserUseCase,
)


router = APIRouter(prefix="/api/auth", tags=["auth"])


# === Request models ===

class RegisterRequest(BaseModel):
    name: str | None = None
    username: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    username: str | None = None
    password: str | None = None


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    current_password: str | None = Field(default=None, alias="currentPassword")
    new_password: str | None = Field(default=None, alias="newPassword")


# === Endpoints ===

@router.post("/register")
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    """Daftar anggota baru -> {id, name, username}"""
    user = RegisterUserUseCase(db).execute(
        name=req.name,
        username=req.username,
        password=req.password,
    )
    return user.to_wire()


@router.post("/login")
def login(req: LoginRequest, db: Session = Depends(get_db)):
    """Login -> {id, name, username}"""
    user = AuthenticateUserUseCase(db).execute(
        username=req.username,
        password=req.password,
    )
    return user.to_wire()


@router.post("/change-password")
def change_password(req: ChangePasswordRequest, db: Session = Depends(get_db)):
    ChangePasswordUseCase(db).execute(
        user_id=req.user_id,
        current_password=req.current_password,
        new_password=req.new_password,
    )
    return {"ok": True}
