from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from config import settings
from models.user import User, Profile
from schemas.user import DisplayIdentity, UserSearchResult

FALLBACK_DISPLAY_NAME = "Anonymous"


def avatar_url(avatar: Optional[str]) -> Optional[str]:
    """Resolve a blob-store avatar reference into a fetchable URL."""
    if not avatar or not settings.AVATAR_BASE_URL:
        return None
    return f"{settings.AVATAR_BASE_URL.rstrip('/')}/{avatar}"


class IdentityService:
    """Resolves display names and avatars for users. Read only."""

    def __init__(self, db: Session):
        self.db = db

    def _load(self, user_id: int):
        user = self.db.get(User, user_id)
        profile = self.db.query(Profile).filter(Profile.user_id == user_id).first()
        return user, profile

    @staticmethod
    def _name(user: Optional[User], profile: Optional[Profile]) -> str:
        if profile and profile.display_name:
            return profile.display_name
        if user is not None:
            return user.name or user.email or FALLBACK_DISPLAY_NAME
        return FALLBACK_DISPLAY_NAME

    def display_name(self, user_id: int) -> str:
        user, profile = self._load(user_id)
        return self._name(user, profile)

    def display_identity(self, user_id: int) -> DisplayIdentity:
        user, profile = self._load(user_id)
        avatar = profile.avatar if profile else None
        return DisplayIdentity(
            id=user_id,
            display_name=self._name(user, profile),
            avatar=avatar,
            avatar_url=avatar_url(avatar),
        )

    def display_identities(self, user_ids: Iterable[int]) -> Dict[int, DisplayIdentity]:
        """Batch variant used by list endpoints."""
        return {user_id: self.display_identity(user_id) for user_id in set(user_ids)}

    def find_user_ids_by_display_name(self, handles: Iterable[str]) -> Dict[str, int]:
        """
        Map lower-cased handles to user ids.

        Matches the *current* display name case-insensitively; accounts
        without a profile are matched on their account name instead.
        Unknown handles are simply absent from the result.
        """
        wanted = {h.lower() for h in handles if h}
        if not wanted:
            return {}

        found: Dict[str, int] = {}
        profiles = self.db.query(Profile).filter(
            func.lower(Profile.display_name).in_(wanted)
        ).order_by(Profile.user_id).all()
        for profile in profiles:
            found.setdefault(profile.display_name.lower(), profile.user_id)

        remaining = wanted - set(found)
        if remaining:
            users = self.db.query(User).outerjoin(
                Profile, Profile.user_id == User.id
            ).filter(
                Profile.id.is_(None),
                func.lower(User.name).in_(remaining)
            ).order_by(User.id).all()
            for user in users:
                found.setdefault(user.name.lower(), user.id)
        return found

    def list_user_ids(self) -> List[int]:
        return [row.id for row in self.db.query(User.id).filter(User.is_anonymous.is_(False)).all()]

    def search_users(self, term: Optional[str], limit: int = 10) -> List[UserSearchResult]:
        """
        Case-insensitive substring search on the display name.

        The searched name falls back to the account name and then the email
        for users without a profile. Non-public profiles are never returned.
        """
        term = (term or "").strip().lower()
        if not term:
            return []

        name = func.coalesce(func.nullif(Profile.display_name, ""), User.name, User.email, "")
        rows = self.db.query(User, Profile).outerjoin(
            Profile, Profile.user_id == User.id
        ).filter(
            or_(Profile.id.is_(None), Profile.is_public.is_(True)),
            func.lower(name).contains(term, autoescape=True)
        ).order_by(User.id).limit(limit).all()

        return [
            UserSearchResult(
                id=user.id,
                display_name=self._name(user, profile),
                avatar=profile.avatar if profile else None,
                avatar_url=avatar_url(profile.avatar if profile else None),
                bio=profile.bio if profile else None,
            )
            for user, profile in rows
        ]
