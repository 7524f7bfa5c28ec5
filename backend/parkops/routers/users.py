# backend/parkops/routers/users.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from parkops.auth import get_current_user
from parkops.db import get_db
from parkops.schemas.user import PushTokenIn, PushTokenOut
from parkops.services.push_tokens import register_push_token, remove_push_token

router = APIRouter(
    prefix="/users",
    tags=["Users"],
    dependencies=[Depends(get_current_user)],
)


@router.post("/{user_id}/push-token", response_model=PushTokenOut)
def register_token(user_id: int, payload: PushTokenIn, db: Session = Depends(get_db)):
    """
    POST /users/{id}/push-token
    Body: { "token": "ExponentPushToken[...]" }
    """
    user = register_push_token(db, user_id, payload.token)
    return PushTokenOut(message="Push token registered successfully", token_count=len(user.push_tokens))


@router.delete("/{user_id}/push-token", response_model=PushTokenOut)
def remove_token(user_id: int, payload: PushTokenIn, db: Session = Depends(get_db)):
    """
    DELETE /users/{id}/push-token
    Body: { "token": "ExponentPushToken[...]" }
    """
    user = remove_push_token(db, user_id, payload.token)
    return PushTokenOut(message="Push token removed successfully", token_count=len(user.push_tokens))
