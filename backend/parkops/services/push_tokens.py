# backend/parkops/services/push_tokens.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from parkops import errors
from parkops.models.user import User

logger = logging.getLogger(__name__)


def _require_token(token: Optional[str]) -> str:
    token = (token or "").strip()
    if not token:
        raise errors.ValidationError("Push token is required")
    return token


def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise errors.NotFoundError("User not found")
    return user


def register_push_token(db: Session, user_id: int, token: Optional[str]) -> User:
    """Add ``token`` to the user's set; registering it again changes nothing."""
    token = _require_token(token)
    user = _get_user(db, user_id)

    tokens = list(user.push_tokens or [])
    if token not in tokens:
        user.push_tokens = tokens + [token]
        db.commit()
        logger.info(f"[push-tokens] Registered token for user {user_id} ({len(user.push_tokens)} total)")
    return user


def remove_push_token(db: Session, user_id: int, token: Optional[str]) -> User:
    """Drop ``token`` from the user's set; removing an unknown token is a no-op."""
    token = _require_token(token)
    user = _get_user(db, user_id)

    tokens = list(user.push_tokens or [])
    remaining = [t for t in tokens if t != token]
    if len(remaining) != len(tokens):
        user.push_tokens = remaining
        db.commit()
        logger.info(f"[push-tokens] Removed token for user {user_id} ({len(remaining)} left)")
    return user
