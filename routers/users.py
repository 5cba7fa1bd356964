from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from schemas.user import UserSearchResult
from services.identity_service import IdentityService

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("/search", response_model=List[UserSearchResult])
async def search_users(
    q: str = Query("", max_length=100, description="Part of a display name"),
    db: Session = Depends(get_db)
):
    """Public profiles whose display name contains the query."""
    return IdentityService(db).search_users(q)
