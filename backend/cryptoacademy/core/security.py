from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from cryptoacademy.core.config import settings
from cryptoacademy.db.session import get_db
from cryptoacademy.models.user import User, UserRole


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/token", auto_error=False)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

NOT_LOGGED_IN = "Unauthorized - Please log in"
INVALID_SESSION = "Invalid session"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(*, user_id: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.jwt_access_token_minutes)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": expire,
        "iss": str(settings.jwt_issuer),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def _invalid_session() -> HTTPException:
    return HTTPException(status_code=401, detail=INVALID_SESSION)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: str | None = Depends(oauth2_scheme),
) -> User:
    if not token:
        token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise HTTPException(status_code=401, detail=NOT_LOGGED_IN)

    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=str(settings.jwt_issuer),
        )
    except JWTError as e:
        raise _invalid_session() from e

    try:
        user_id = uuid.UUID(str(payload.get("sub") or ""))
    except ValueError as e:
        raise _invalid_session() from e

    user = db.scalar(select(User).where(User.id == user_id))
    if user is None:
        raise _invalid_session()

    request.state.user_id = str(user.id)
    return user


def get_optional_user(
    request: Request,
    db: Session = Depends(get_db),
    token: str | None = Depends(oauth2_scheme),
) -> User | None:
    """Signed-in user when the request carries a valid session, otherwise None."""
    try:
        return get_current_user(request, db, token)
    except HTTPException:
        return None


def require_roles(*roles: UserRole):
    def _dep(user: User = Depends(get_current_user)) -> User:
        # admin can access everything, everyone else only what the route allows
        if user.role == UserRole.admin:
            return user

        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Not authorized")
        return user

    return _dep
