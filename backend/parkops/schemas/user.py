# backend/parkops/schemas/user.py
from typing import Optional

from .mission import CamelModel, UserRef


class PushTokenIn(CamelModel):
    token: Optional[str] = None


class PushTokenOut(CamelModel):
    message: str
    token_count: int


class LoginIn(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class LoginOut(CamelModel):
    token: str
    user: UserRef
