# backend/parkops/models/__init__.py
# Base comes from parkops.db; importing the model modules registers their tables on Base.metadata
from parkops.db import Base

from .user import User
from .mission import Mission


__all__ = [
    "Base",
    "User",
    "Mission",
]
