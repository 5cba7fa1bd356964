from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from models.user import User
from routers.auth import get_current_user, get_optional_user
from schemas.push import PushSubscriptionCreate, PushSubscriptionDelete, PushStatus, PushPublicKey
from services.push_service import PushSubscriptionService

router = APIRouter(prefix="/api/push", tags=["Push"])


@router.get("/public-key", response_model=PushPublicKey)
async def get_public_key(db: Session = Depends(get_db)):
    return PushPublicKey(public_key=PushSubscriptionService(db).public_key())


@router.get("/status", response_model=PushStatus)
async def get_push_status(
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    user_id = current_user.id if current_user else None
    return PushStatus(**PushSubscriptionService(db).push_status(user_id))


@router.post("/subscriptions", status_code=status.HTTP_201_CREATED)
async def upsert_subscription(
    subscription: PushSubscriptionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    saved = PushSubscriptionService(db).upsert_subscription(
        current_user,
        endpoint=subscription.endpoint,
        p256dh=subscription.p256dh,
        auth=subscription.auth,
        user_agent=subscription.user_agent,
    )
    return {"id": saved.id}


@router.post("/subscriptions/delete")
async def delete_subscription(
    subscription: PushSubscriptionDelete,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"deleted": PushSubscriptionService(db).delete_subscription(current_user, subscription.endpoint)}
