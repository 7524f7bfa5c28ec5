# backend/parkops/schemas/mission.py
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from pydantic.config import ConfigDict

Amount = Union[int, float]


class CamelModel(BaseModel):
    """Wire models use camelCase keys; Python code uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRef(CamelModel):
    id: int
    username: str

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


# ----------------------------------------------------------------------
# Create
# ----------------------------------------------------------------------
class AmountLeafIn(CamelModel):
    amount: Amount = 0
    # accepted for compatibility, always reset to False on create
    completed: Optional[bool] = None


class CollectIn(CamelModel):
    notes: Optional[AmountLeafIn] = None
    coins: Optional[AmountLeafIn] = None
    # legacy flat shape: {"noteAmount": 500, "coinAmount": 200}
    note_amount: Optional[Amount] = None
    coin_amount: Optional[Amount] = None


class RefillCoinsIn(AmountLeafIn):
    coin_types: Dict[str, int] = Field(default_factory=dict)


class RefillNotesIn(AmountLeafIn):
    note_types: Dict[str, int] = Field(default_factory=dict)


class RefillIn(CamelModel):
    coins: Optional[RefillCoinsIn] = None
    notes: Optional[RefillNotesIn] = None


class BilingualLabel(BaseModel):
    en: str
    fr: str


TaskLabel = Union[str, BilingualLabel]


class MaintenanceTaskIn(BaseModel):
    task: TaskLabel
    completed: Optional[bool] = None


class MissionCreate(CamelModel):
    # username / id are checked by the service so the error messages stay uniform
    username: Optional[str] = None
    id: Optional[str] = Field(default=None, max_length=128)

    date: str = Field(default="", max_length=32)
    cashier: str = ""
    machine_name: str = ""
    qr_code: str = ""

    collect: Optional[CollectIn] = None
    refill: Optional[RefillIn] = None
    maintenance: Optional[List[Union[str, MaintenanceTaskIn]]] = None


# ----------------------------------------------------------------------
# Update
# ----------------------------------------------------------------------
class LeafUpdate(BaseModel):
    completed: Optional[bool] = None


class CollectUpdate(BaseModel):
    notes: Optional[LeafUpdate] = None
    coins: Optional[LeafUpdate] = None


class RefillUpdate(BaseModel):
    coins: Optional[LeafUpdate] = None
    notes: Optional[LeafUpdate] = None


class MaintenanceUpdate(BaseModel):
    index: int
    completed: bool


class MissionUpdate(BaseModel):
    """Status is derived from the task flags, so it is not an accepted field."""
    model_config = ConfigDict(extra="forbid")

    collect: Optional[CollectUpdate] = None
    refill: Optional[RefillUpdate] = None
    maintenance: Optional[List[MaintenanceUpdate]] = None
    comment: Optional[str] = None


# ----------------------------------------------------------------------
# Read
# ----------------------------------------------------------------------
class MissionOut(CamelModel):
    mission_id: str
    status: str
    payload: dict
    comment: str = ""
    assigned_to: Optional[UserRef] = None
    opened_by: Optional[UserRef] = None
    opened_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class Pagination(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class MissionPage(CamelModel):
    missions: List[MissionOut]
    pagination: Pagination
