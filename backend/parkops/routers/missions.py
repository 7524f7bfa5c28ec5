# backend/parkops/routers/missions.py
from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from parkops.auth import get_current_user
from parkops.db import get_db
from parkops.models.user import User
from parkops.schemas.mission import MissionCreate, MissionUpdate, MissionOut, MissionPage
from parkops.services import lifecycle
from parkops.services.expo_push import Notifier

router = APIRouter(
    prefix="/missions",
    tags=["Missions"],
    dependencies=[Depends(get_current_user)],
)


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


# ----------------------------------------------------------------------
# Reads
# ----------------------------------------------------------------------
@router.get("", response_model=List[MissionOut])
def list_missions(
    status: Optional[str] = Query(None, description="unopened | in_progress | completed"),
    db: Session = Depends(get_db),
):
    """All missions, unopened first, then by date (newest first)."""
    return lifecycle.list_missions(db, status=status)


@router.get("/assigned", response_model=MissionPage)
def list_assigned_missions(
    page: int = Query(1),
    limit: int = Query(10),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Missions assigned to the caller, newest first, paginated."""
    rows, meta = lifecycle.list_assigned_missions(db, user.id, page=page, limit=limit)
    return {"missions": [MissionOut.model_validate(m) for m in rows], "pagination": meta}


@router.get("/{mission_id}", response_model=MissionOut)
def get_mission(mission_id: str, db: Session = Depends(get_db)):
    return lifecycle.get_mission(db, mission_id)


# ----------------------------------------------------------------------
# Transitions
# ----------------------------------------------------------------------
@router.post("/{mission_id}/open", response_model=MissionOut)
def open_mission(
    mission_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Move an unopened mission to in_progress; 409 with currentStatus otherwise."""
    return lifecycle.open_mission(db, mission_id, user)


@router.post("/{mission_id}/update", response_model=MissionOut)
def update_mission(mission_id: str, payload: MissionUpdate, db: Session = Depends(get_db)):
    """Apply task completion flags / comment; status is recomputed from the flags."""
    return lifecycle.update_mission(db, mission_id, payload)


@router.post("", response_model=MissionOut, status_code=201)
def create_mission(
    payload: MissionCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Create a mission and notify the assignee after the response is sent."""
    mission = lifecycle.create_mission(db, payload)
    background_tasks.add_task(lifecycle.notify_assignee, notifier, mission.payload, payload.username)
    return mission
