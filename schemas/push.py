from typing import Optional
from pydantic import BaseModel, Field


class PushSubscriptionCreate(BaseModel):
    endpoint: str = Field(..., min_length=1, max_length=1024)
    p256dh: str = Field(..., min_length=1, max_length=255)
    auth: str = Field(..., min_length=1, max_length=255)
    user_agent: Optional[str] = None


class PushSubscriptionDelete(BaseModel):
    endpoint: str = Field(..., min_length=1, max_length=1024)


class PushStatus(BaseModel):
    supported: bool
    has_subscription: bool


class PushPublicKey(BaseModel):
    public_key: Optional[str] = None
