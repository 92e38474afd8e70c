"""Authentication routes and session tokens, recorded in the access log."""
from datetime import datetime, timedelta
from typing import Dict, Optional

import bcrypt
import secrets
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from . import schemas
from .access_log import AccessLog, ConnectResult, Disconnect, Incoming, get_access_log
from .config import TOKEN_EXPIRY_MINUTES
from .database import get_db
from .logging_config import configure_logging
from .models import User
from ..shared.utils import is_password_strong

router = APIRouter(prefix="/auth", tags=["auth"])
logger = configure_logging()

LOGIN_METHOD = "password"
MAX_FAILED_ATTEMPTS = 5
LOCK_MINUTES = 10

# In-memory session store: token -> {"user_id": int, "login": str, "ip": str, "expires": datetime}
TOKEN_STORE: Dict[str, Dict[str, object]] = {}


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/register")
def register(payload: schemas.RegisterRequest, db: Session = Depends(get_db)):
    if payload.login in (".", ".."):
        raise HTTPException(status_code=400, detail="Invalid login")
    if not is_password_strong(payload.password):
        raise HTTPException(status_code=400, detail="Password too weak or blacklisted")
    if db.query(User).filter(User.login == payload.login).first():
        raise HTTPException(status_code=400, detail="Login already exists")

    user = User(
        login=payload.login,
        password_hash=bcrypt.hashpw(payload.password.encode(), bcrypt.gensalt()).decode(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("REGISTER_SUCCESS login=%s", payload.login)
    return {"message": "Registration successful"}


def _register_failure(db: Session, user: User) -> None:
    user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
    if user.failed_login_attempts >= MAX_FAILED_ATTEMPTS:
        user.lock_until = datetime.utcnow() + timedelta(minutes=LOCK_MINUTES)
        logger.warning("ACCOUNT_BLOCKED login=%s locked_until=%s", user.login, user.lock_until)
    db.commit()


@router.post("/login", response_model=schemas.LoginResponse)
def login(
    payload: schemas.LoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    journal: AccessLog = Depends(get_access_log),
):
    ip = client_ip(request)
    journal.log_access(Incoming(ip=ip, user=payload.login, method=LOGIN_METHOD))

    def reject(code: int, reason: str, msg: str):
        logger.info("LOGIN_FAIL login=%s ip=%s reason=%s", payload.login, ip, reason)
        journal.log_access(ConnectResult(ip=ip, user=payload.login, method=LOGIN_METHOD, ok=False, msg=msg))
        return HTTPException(status_code=code, detail="Invalid credentials" if code == 401 else msg)

    user: Optional[User] = db.query(User).filter(User.login == payload.login).first()
    if not user:
        raise reject(401, "not_found", "unknown user")

    if user.lock_until and user.lock_until > datetime.utcnow():
        raise reject(403, "locked", "account locked")

    if not bcrypt.checkpw(payload.password.encode(), user.password_hash.encode()):
        _register_failure(db, user)
        raise reject(401, "bad_password", "bad credentials")

    user.failed_login_attempts = 0
    user.lock_until = None
    db.commit()

    token = secrets.token_urlsafe(32)
    TOKEN_STORE[token] = {
        "user_id": user.id,
        "login": user.login,
        "ip": ip,
        "expires": datetime.utcnow() + timedelta(minutes=TOKEN_EXPIRY_MINUTES),
    }
    logger.info("LOGIN_SUCCESS login=%s user_id=%s ip=%s", user.login, user.id, ip)
    journal.log_access(ConnectResult(ip=ip, user=user.login, method=LOGIN_METHOD, ok=True, msg="session established"))
    return schemas.LoginResponse(token=token, user=schemas.UserOut(id=user.id, login=user.login))


def _validate_token(header: Optional[str], journal: AccessLog) -> Dict[str, object]:
    if not header or not header.startswith("Bearer "):
        logger.warning("UNAUTHORIZED_ACCESS reason=missing_token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing token")
    token = header.split(" ", 1)[1]
    session = TOKEN_STORE.get(token)
    if not session:
        logger.warning("UNAUTHORIZED_ACCESS reason=unknown_token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if session["expires"] < datetime.utcnow():
        logger.warning("UNAUTHORIZED_ACCESS reason=expired_token login=%s", session["login"])
        TOKEN_STORE.pop(token, None)
        journal.log_access(Disconnect(ip=str(session["ip"]), user=str(session["login"]), reason="session expired"))
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    return dict(session, token=token)


def get_current_session(
    authorization: Optional[str] = Header(default=None),
    journal: AccessLog = Depends(get_access_log),
) -> Dict[str, object]:
    """FastAPI dependency returning the authenticated session."""
    return _validate_token(authorization, journal)


@router.post("/logout")
def logout(
    request: Request,
    session: Dict[str, object] = Depends(get_current_session),
    journal: AccessLog = Depends(get_access_log),
):
    TOKEN_STORE.pop(str(session["token"]), None)
    logger.info("LOGOUT login=%s", session["login"])
    journal.log_access(Disconnect(ip=client_ip(request), user=str(session["login"]), reason="client logout"))
    return {"message": "Logged out"}
