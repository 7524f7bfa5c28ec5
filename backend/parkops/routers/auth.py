# backend/parkops/routers/auth.py
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from parkops.auth import authenticate, create_access_token
from parkops.db import get_db
from parkops.schemas.mission import UserRef
from parkops.schemas.user import LoginIn, LoginOut

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    """Exchange username/password for a bearer token."""
    user = authenticate(db, payload.username, payload.password)
    logger.info(f"[auth] '{user.username}' logged in")
    return LoginOut(token=create_access_token(user), user=UserRef.model_validate(user))
