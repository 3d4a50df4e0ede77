import re

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cryptoacademy.core.audit_log import audit_log
from cryptoacademy.core.config import settings
from cryptoacademy.core.rate_limit import rate_limit
from cryptoacademy.core.security import create_access_token, get_current_user, hash_password, verify_password
from cryptoacademy.db.session import get_db
from cryptoacademy.models.user import User, UserRole
from cryptoacademy.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, TokenResponse, UserPublic

router = APIRouter(prefix="/api", tags=["auth"])

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _user_public(user: User) -> dict:
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "role": user.role.value,
        "lastActivityAt": user.last_activity_at.isoformat() if user.last_activity_at else None,
    }


def _set_session_cookie(response: Response, user: User) -> None:
    token = create_access_token(user_id=str(user.id), role=user.role.value)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=int(settings.jwt_access_token_minutes) * 60,
        httponly=True,
        samesite="lax",
        secure=(settings.app_env or "").strip().lower() in {"prod", "production"},
    )


def _find_user(db: Session, login: str) -> User | None:
    return db.scalar(select(User).where(or_(User.username == login, User.email == login)))


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(
    request: Request,
    response: Response,
    payload: RegisterRequest,
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_register", limit=10, window_seconds=60),
):
    if not settings.allow_public_register:
        raise HTTPException(status_code=403, detail="registration disabled")

    username = (payload.username or "").strip()
    if len(username) < 3 or len(username) > 50:
        raise HTTPException(status_code=400, detail="Username must be between 3 and 50 characters")

    email = (payload.email or "").strip() or None
    if email is not None and not _EMAIL_RE.match(email):
        raise HTTPException(status_code=400, detail="Invalid email address")

    if not payload.password or len(payload.password) < int(settings.password_min_length or 0):
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {settings.password_min_length} characters long",
        )

    if _find_user(db, username) is not None or (email and _find_user(db, email) is not None):
        audit_log(db=db, request=request, event_type="auth_register_failed", meta={"reason": "user_exists", "username": username})
        db.commit()
        raise HTTPException(status_code=400, detail="Username already exists")

    user = User(username=username, email=email, role=UserRole.user, password_hash=hash_password(payload.password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail="Username already exists") from e
    db.refresh(user)

    audit_log(db=db, request=request, event_type="auth_register_success", user_id=user.id)
    db.commit()

    _set_session_cookie(response, user)
    return {"message": "Registration successful", "user": _user_public(user)}


@router.post("/login", response_model=AuthResponse)
def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_login", limit=20, window_seconds=60),
):
    if not payload.username or not payload.password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    user = _find_user(db, payload.username.strip())
    if user is None or not verify_password(payload.password, user.password_hash):
        audit_log(db=db, request=request, event_type="auth_login_failed", meta={"username": payload.username})
        db.commit()
        raise HTTPException(status_code=401, detail="Incorrect username or password")

    audit_log(db=db, request=request, event_type="auth_login_success", user_id=user.id)
    db.commit()

    _set_session_cookie(response, user)
    return {"message": "Login successful", "user": _user_public(user)}


@router.post("/token", response_model=TokenResponse)
def token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    _: object = rate_limit(key_prefix="auth_token", limit=20, window_seconds=60),
):
    user = _find_user(db, form_data.username)
    if user is None or not verify_password(form_data.password, user.password_hash):
        audit_log(db=db, request=request, event_type="auth_login_failed", meta={"username": form_data.username})
        db.commit()
        raise HTTPException(status_code=401, detail="Incorrect username or password")

    audit_log(db=db, request=request, event_type="auth_login_success", user_id=user.id, meta={"via": "token"})
    db.commit()

    return TokenResponse(
        access_token=create_access_token(user_id=str(user.id), role=user.role.value),
        expires_in=int(settings.jwt_access_token_minutes) * 60,
    )


@router.post("/logout")
def logout(request: Request, response: Response, db: Session = Depends(get_db)):
    had_session = bool(request.cookies.get(settings.session_cookie_name))
    audit_log(db=db, request=request, event_type="auth_logout", meta={"had_session": had_session})
    db.commit()
    response.delete_cookie(settings.session_cookie_name)
    return {"message": "Logout successful"}


@router.get("/user", response_model=UserPublic)
def current_user(user: User = Depends(get_current_user)):
    return _user_public(user)
