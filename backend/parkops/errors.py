# backend/parkops/errors.py
"""
Error taxonomy shared by the services and the HTTP layer.

Services raise these; ``parkops.main`` turns them into ``{"error": ...}``
responses with the matching status code.
"""
from __future__ import annotations

from typing import Any, Optional


class MissionServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, extra: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, **self.extra}


class ValidationError(MissionServiceError):
    status_code = 400


class NotFoundError(MissionServiceError):
    status_code = 404


class ConflictError(MissionServiceError):
    status_code = 409


class UpstreamError(MissionServiceError):
    status_code = 500


class AuthenticationError(MissionServiceError):
    status_code = 401
