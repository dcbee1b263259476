from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from core.auth import (
    clear_auth_cookie,
    create_access_token,
    get_current_user,
    hash_password,
    set_auth_cookie,
    verify_password,
)
from core.config import logger
from core.database import get_db
from core.errors import ConflictError, UnauthorizedError
from models.user import User, ROLE_ADMIN, ROLE_USER
from utils.rate_limit import login_throttle, rate_limited, register_throttle
from utils.validation import validate_login, validate_register

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fullName: str
    email: str
    password: str


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str
    password: str


def _session_response(user: User, status_code: int = 200) -> JSONResponse:
    response = JSONResponse(user.to_auth_dict(), status_code=status_code)
    set_auth_cookie(response, create_access_token(user.id))
    return response


@router.post("/register", dependencies=[Depends(rate_limited(register_throttle, "register"))])
async def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Create a merchant account and start a session"""
    validate_register(data.model_dump()).raise_for_errors()

    email = data.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise ConflictError("User with this email already exists")

    # First account on a fresh install administers it
    is_first = db.query(User).count() == 0
    user = User(
        email=email,
        full_name=data.fullName.strip(),
        password_hash=hash_password(data.password),
        role=ROLE_ADMIN if is_first else ROLE_USER,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"[auth.register] New merchant {user.id} ({email})")
    return _session_response(user, status_code=201)


@router.post("/login", dependencies=[Depends(rate_limited(login_throttle, "login"))])
async def login(data: LoginRequest, db: Session = Depends(get_db)):
    validate_login(data.model_dump()).raise_for_errors()

    email = data.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(data.password, user.password_hash):
        logger.warning(f"[auth.login] Invalid credentials for {email}")
        raise UnauthorizedError("Invalid credentials")

    return _session_response(user)


@router.post("/logout")
async def logout(user: User = Depends(get_current_user)):
    response = JSONResponse({"message": "Logged out successfully"})
    clear_auth_cookie(response)
    return response


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """Current merchant profile"""
    return user.to_dict()
