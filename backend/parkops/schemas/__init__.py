# backend/parkops/schemas/__init__.py

# Missions
from .mission import (
    MissionCreate,
    MissionUpdate,
    MissionOut,
    MissionPage,
    Pagination,
    UserRef,
)

# Users / auth
from .user import (
    PushTokenIn,
    PushTokenOut,
    LoginIn,
    LoginOut,
)

__all__ = [
    "MissionCreate", "MissionUpdate", "MissionOut", "MissionPage", "Pagination", "UserRef",
    "PushTokenIn", "PushTokenOut", "LoginIn", "LoginOut",
]
