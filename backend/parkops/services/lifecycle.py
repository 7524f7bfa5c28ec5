# backend/parkops/services/lifecycle.py
"""
Mission lifecycle: payload normalization, the open transition, task-completion
updates and the status derivation rule.

Status is never written by clients. After every update the status is
recomputed from the completion flags of the *present* task leaves:

    all present leaves completed          -> completed   (stamps completed_at)
    some completed, or already opened     -> in_progress (clears completed_at)
    nothing completed and never opened    -> unchanged

so unchecking a leaf on a completed mission moves it back to in_progress.
"""
from __future__ import annotations

import copy
import logging
import math
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified
from sqlalchemy.orm.exc import StaleDataError

from parkops import errors
from parkops.models.mission import (
    Mission,
    STATUSES,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_UNOPENED,
)
from parkops.models.user import User
from parkops.schemas.mission import MissionCreate, MissionUpdate, MaintenanceTaskIn

logger = logging.getLogger(__name__)

AMOUNT_LEAVES = (
    ("collect", "notes"),
    ("collect", "coins"),
    ("refill", "coins"),
    ("refill", "notes"),
)

# unopened first, completed last
_STATUS_ORDER = case(
    {STATUS_UNOPENED: 0, STATUS_IN_PROGRESS: 1, STATUS_COMPLETED: 2},
    value=Mission.status,
    else_=3,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ----------------------------------------------------------------------
# Normalization
# ----------------------------------------------------------------------
def _amount_leaf(amount, **extra) -> dict:
    return {"amount": amount or 0, **extra, "completed": False}


def normalize_payload(data: MissionCreate) -> dict:
    """Build the stored payload; every leaf present in the input starts incomplete."""
    payload: dict = {
        "id": data.id,
        "date": data.date,
        "cashier": data.cashier,
        "machineName": data.machine_name,
        "qrCode": data.qr_code,
    }

    if data.collect is not None:
        collect = {}
        notes_amount = data.collect.notes.amount if data.collect.notes else data.collect.note_amount
        coins_amount = data.collect.coins.amount if data.collect.coins else data.collect.coin_amount
        if notes_amount is not None:
            collect["notes"] = _amount_leaf(notes_amount)
        if coins_amount is not None:
            collect["coins"] = _amount_leaf(coins_amount)
        payload["collect"] = collect

    if data.refill is not None:
        refill = {}
        if data.refill.coins is not None:
            refill["coins"] = _amount_leaf(
                data.refill.coins.amount, coinTypes=dict(data.refill.coins.coin_types)
            )
        if data.refill.notes is not None:
            refill["notes"] = _amount_leaf(
                data.refill.notes.amount, noteTypes=dict(data.refill.notes.note_types)
            )
        payload["refill"] = refill

    if data.maintenance is not None:
        items = []
        for entry in data.maintenance:
            label = entry.task if isinstance(entry, MaintenanceTaskIn) else entry
            if not isinstance(label, str):
                label = label.model_dump()
            items.append({"task": label, "completed": False})
        payload["maintenance"] = items

    return payload


# ----------------------------------------------------------------------
# Status derivation
# ----------------------------------------------------------------------
def has_task_leaves(payload: dict) -> bool:
    if payload.get("maintenance"):
        return True
    return any((payload.get(group) or {}).get(name) for group, name in AMOUNT_LEAVES)


def present_leaves(payload: dict) -> Iterator[dict]:
    """Leaves that take part in aggregation: non-zero amounts and every maintenance item."""
    for group, name in AMOUNT_LEAVES:
        leaf = (payload.get(group) or {}).get(name)
        if leaf and leaf.get("amount"):
            yield leaf
    for item in payload.get("maintenance") or []:
        yield item


def derive_status(mission: Mission, now: Optional[datetime] = None) -> str:
    now = now or _now()
    leaves = list(present_leaves(mission.payload or {}))
    if not leaves:
        return mission.status

    done = sum(1 for leaf in leaves if leaf.get("completed"))
    if done == len(leaves):
        if mission.status != STATUS_COMPLETED:
            mission.status = STATUS_COMPLETED
            mission.completed_at = now
    elif done or mission.status != STATUS_UNOPENED:
        mission.status = STATUS_IN_PROGRESS
        mission.completed_at = None
    else:
        return mission.status

    if mission.opened_at is None:
        mission.opened_at = now
    return mission.status


def apply_task_updates(payload: dict, update: MissionUpdate) -> dict:
    """Return a copy of ``payload`` with the supplied completion flags applied.

    Flags for leaves the mission does not have, and maintenance indices
    outside the list, are ignored.
    """
    out = copy.deepcopy(payload)

    for group_name, group in (("collect", update.collect), ("refill", update.refill)):
        if group is None:
            continue
        stored = out.get(group_name) or {}
        for name in ("notes", "coins"):
            flag = getattr(group, name)
            if flag is None or flag.completed is None:
                continue
            leaf = stored.get(name)
            if leaf is not None:
                leaf["completed"] = flag.completed

    items = out.get("maintenance") or []
    for item_update in update.maintenance or []:
        if 0 <= item_update.index < len(items):
            items[item_update.index]["completed"] = item_update.completed

    return out


# ----------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------
def get_mission(db: Session, mission_id: str) -> Mission:
    mission = db.execute(
        select(Mission).where(Mission.mission_id == mission_id)
    ).scalar_one_or_none()
    if mission is None:
        raise errors.NotFoundError("Mission not found")
    return mission


def list_missions(db: Session, status: Optional[str] = None) -> list[Mission]:
    q = select(Mission).order_by(_STATUS_ORDER, Mission.scheduled_date.desc(), Mission.id.desc())
    if status is not None:
        if status not in STATUSES:
            raise errors.ValidationError(f"Invalid status. Must be one of: {', '.join(STATUSES)}")
        q = q.where(Mission.status == status)
    return list(db.execute(q).scalars().unique().all())


def pagination_meta(total: int, page: int, limit: int) -> dict:
    if page < 1 or limit < 1:
        raise errors.ValidationError("Page and limit must be positive integers")
    total_pages = math.ceil(total / limit)
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }


def list_assigned_missions(db: Session, user_id: int, page: int = 1, limit: int = 10) -> tuple[list[Mission], dict]:
    """Missions assigned to ``user_id``, newest first, one page at a time."""
    total = db.scalar(
        select(func.count()).select_from(Mission).where(Mission.assigned_to_id == user_id)
    ) or 0
    meta = pagination_meta(total, page, limit)
    rows = db.execute(
        select(Mission)
        .where(Mission.assigned_to_id == user_id)
        .order_by(Mission.created_at.desc(), Mission.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).scalars().unique().all()
    return list(rows), meta


# ----------------------------------------------------------------------
# Writes
# ----------------------------------------------------------------------
def _commit(db: Session, mission_id: str) -> None:
    try:
        db.commit()
    except StaleDataError:
        db.rollback()
        logger.warning(f"[missions] Concurrent update detected on '{mission_id}'")
        raise errors.ConflictError("Mission was modified concurrently, reload and retry")


def create_mission(db: Session, data: MissionCreate) -> Mission:
    if not data.id:
        raise errors.ValidationError("Mission ID is required in payload")
    if not data.username:
        raise errors.ValidationError("Username is required to assign mission")
    payload = normalize_payload(data)
    # an empty group such as {"collect": {}} counts as absent
    if not has_task_leaves(payload):
        raise errors.ValidationError("At least one of collect, refill or maintenance is required")

    user = db.execute(select(User).where(User.username == data.username)).scalar_one_or_none()
    if user is None:
        raise errors.NotFoundError(f"User '{data.username}' not found")

    exists = db.execute(select(Mission.id).where(Mission.mission_id == data.id)).scalar_one_or_none()
    if exists is not None:
        raise errors.ConflictError("Mission with this ID already exists")

    mission = Mission(
        mission_id=data.id,
        payload=payload,
        scheduled_date=data.date,
        status=STATUS_UNOPENED,
        comment="",
        assigned_to_id=user.id,
    )
    db.add(mission)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise errors.ConflictError("Mission with this ID already exists")
    db.refresh(mission)
    logger.info(f"[missions] Created mission '{mission.mission_id}' for '{user.username}'")
    return mission


def open_mission(db: Session, mission_id: str, actor: User) -> Mission:
    mission = get_mission(db, mission_id)
    if mission.status != STATUS_UNOPENED:
        raise errors.ConflictError(
            "Mission is not in unopened status",
            extra={"currentStatus": mission.status},
        )

    mission.status = STATUS_IN_PROGRESS
    mission.opened_at = _now()
    mission.opened_by_id = actor.id
    _commit(db, mission_id)
    db.refresh(mission)
    logger.info(f"[missions] '{mission_id}' opened by '{actor.username}'")
    return mission


def update_mission(db: Session, mission_id: str, update: MissionUpdate) -> Mission:
    mission = get_mission(db, mission_id)
    previous = mission.status

    mission.payload = apply_task_updates(mission.payload, update)
    flag_modified(mission, "payload")
    if update.comment is not None:
        mission.comment = update.comment

    derive_status(mission)
    _commit(db, mission_id)
    db.refresh(mission)

    if mission.status != previous:
        logger.info(f"[missions] '{mission_id}' status {previous} -> {mission.status}")
    return mission


def notify_assignee(notifier, mission_payload: dict, username: str) -> None:
    """Best-effort push to the assignee; never raises."""
    try:
        notifier.send_mission_notification(mission_payload, username)
    except errors.UpstreamError as e:
        logger.error(f"[missions] Push notification error for '{username}': {e.message}")
    except Exception:
        logger.exception(f"[missions] Unexpected push notification failure for '{username}'")
