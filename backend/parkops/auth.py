# backend/parkops/auth.py
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from parkops import config, errors
from parkops.db import get_db
from parkops.models.user import User

bearer_scheme = HTTPBearer(auto_error=False, description="JWT obtained from /auth/login")


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(user: User, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    claims = {
        "sub": str(user.id),
        "username": user.username,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=config.JWT_EXPIRES_MINUTES)).timestamp()),
    }
    return jwt.encode(claims, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def authenticate(db: Session, username: Optional[str], password: Optional[str]) -> User:
    if not username or not password:
        raise errors.ValidationError("Username and password are required")
    user = db.execute(select(User).where(User.username == username.strip())).scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        raise errors.AuthenticationError("Invalid credentials")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """FastAPI dependency: the user behind the bearer token, or 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise errors.AuthenticationError("Authentication required")
    try:
        claims = jwt.decode(credentials.credentials, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
        user_id = int(claims["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError):
        raise errors.AuthenticationError("Invalid or expired token")

    user = db.get(User, user_id)
    if user is None:
        raise errors.AuthenticationError("Invalid or expired token")
    return user
