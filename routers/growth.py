from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.user import User
from routers.auth import get_current_user
from schemas.follow import SeedWelcomeResult
from services.growth_service import GrowthService

router = APIRouter(prefix="/api/growth", tags=["Growth"])


@router.post("/seed-welcome", response_model=SeedWelcomeResult)
async def ensure_seed_welcome(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Have the seed accounts follow the current user, once."""
    return GrowthService(db, settings.SEED_ACCOUNT_EMAILS).ensure_seed_welcome(current_user)
