# backend/parkops/services/expo_push.py
"""
Expo push notifications for newly assigned missions.

Only tokens shaped like ``ExponentPushToken[...]`` / ``ExpoPushToken[...]``
are sent to. Tokens the push service reports as failed are pruned from the
user so the next dispatch does not retry them.
"""
from __future__ import annotations

import json
import logging
from typing import Callable, Optional, Protocol

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from parkops import config, errors
from parkops.db import SessionLocal
from parkops.models.user import User

logger = logging.getLogger(__name__)

EXPO_TOKEN_PREFIXES = ("ExponentPushToken[", "ExpoPushToken[")


class Notifier(Protocol):
    def send_mission_notification(self, mission_payload: dict, username: str) -> Optional[dict]:
        ...


def is_expo_push_token(token: str) -> bool:
    return isinstance(token, str) and token.startswith(EXPO_TOKEN_PREFIXES)


def build_messages(mission_payload: dict, tokens: list[str]) -> list[dict]:
    machine = mission_payload.get("machineName") or "Unknown"
    cashier = mission_payload.get("cashier") or "Unknown cashier"
    return [
        {
            "to": token,
            "sound": "default",
            "title": "New Mission",
            "body": f"Machine: {machine} - {cashier}",
            "data": {
                "id": mission_payload.get("id"),
                "payload": json.dumps(mission_payload),
            },
            "priority": "high",
            "vibrate": [0, 250, 250, 250],
            "channelId": "missions",
        }
        for token in tokens
    ]


class ExpoPushNotifier:
    """Thin wrapper around httpx; pass ``client`` to swap the transport in tests."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        client: Optional[httpx.Client] = None,
        url: str = config.EXPO_PUSH_URL,
    ) -> None:
        self.session_factory = session_factory
        self.url = url
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(config.EXPO_PUSH_TIMEOUT, connect=5.0),
            headers={
                "Accept": "application/json",
                "Accept-Encoding": "gzip, deflate",
            },
        )

    def close(self) -> None:
        self._client.close()

    def _post(self, messages: list[dict]) -> dict:
        try:
            r = self._client.post(self.url, json=messages)
            r.raise_for_status()
            body = r.json()
        except httpx.HTTPError as e:
            raise errors.UpstreamError(f"Expo push request failed: {e}") from e
        except ValueError as e:
            raise errors.UpstreamError("Expo push returned a non-JSON response") from e
        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise errors.UpstreamError("Expo push response has no data list")
        return body

    def _prune_tokens(self, s: Session, user: User, failed: list[str]) -> None:
        try:
            user.push_tokens = [t for t in (user.push_tokens or []) if t not in failed]
            s.commit()
            logger.info(f"[expo-push] Removed {len(failed)} invalid tokens from {user.username}")
        except SQLAlchemyError as e:
            s.rollback()
            logger.error(f"[expo-push] Could not prune tokens for {user.username}: {e}")

    def send_mission_notification(self, mission_payload: dict, username: str) -> Optional[dict]:
        with self.session_factory() as s:
            try:
                user = s.execute(select(User).where(User.username == username)).scalar_one_or_none()
            except SQLAlchemyError as e:
                raise errors.UpstreamError(f"Could not load user '{username}': {e}") from e

            if user is None:
                logger.info(f"[expo-push] User not found: {username}")
                return None

            tokens = [t for t in (user.push_tokens or []) if is_expo_push_token(t)]
            if not tokens:
                logger.info(f"[expo-push] No valid Expo push tokens for user: {username}")
                return None

            body = self._post(build_messages(mission_payload, tokens))

            failed = []
            for token, result in zip(tokens, body["data"]):
                if (result or {}).get("status") != "ok":
                    failed.append(token)
                    logger.error(f"[expo-push] Failed to send to token {token}: {(result or {}).get('message')}")

            logger.info(
                f"[expo-push] Sent to {username}. Success: {len(tokens) - len(failed)}, Failure: {len(failed)}"
            )
            if failed:
                self._prune_tokens(s, user, failed)
            return body

    def broadcast_mission_notification(self, mission_payload: dict) -> dict:
        """Notify every user holding at least one token; failures are counted, not raised."""
        with self.session_factory() as s:
            try:
                users = s.execute(select(User).order_by(User.id)).scalars().all()
            except SQLAlchemyError as e:
                raise errors.UpstreamError(f"Could not load users: {e}") from e
            usernames = [u.username for u in users if u.push_tokens]

        successful = failed = 0
        for username in usernames:
            try:
                self.send_mission_notification(mission_payload, username)
                successful += 1
            except errors.UpstreamError as e:
                failed += 1
                logger.error(f"[expo-push] Broadcast to {username} failed: {e.message}")

        logger.info(f"[expo-push] Broadcast complete. Success: {successful}, Failed: {failed}")
        return {"successful": successful, "failed": failed}
