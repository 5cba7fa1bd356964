import logging
from typing import Iterable, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from database import utcnow
from models.growth_onboarding import GrowthOnboarding
from models.user import User
from schemas.follow import SeedWelcomeResult
from services.social_service import SocialService

logger = logging.getLogger(__name__)


class GrowthService:
    """
    Seed-account onboarding: every configured seed account follows a new
    user once, which also gives that user their first notifications.
    """

    def __init__(self, db: Session, seed_emails: Iterable[str]):
        self.db = db
        self.seed_emails = {e.strip().lower() for e in seed_emails if e and e.strip()}
        self.social = SocialService(db)

    def seed_user_ids(self, exclude_user_id: int) -> List[int]:
        if not self.seed_emails:
            return []
        rows = self.db.query(User.id).filter(
            User.is_anonymous.is_(False),
            User.id != exclude_user_id,
            func.lower(User.email).in_(self.seed_emails)
        ).order_by(User.id).all()
        return [row.id for row in rows]

    def ensure_seed_welcome(self, user: User) -> SeedWelcomeResult:
        if user.is_anonymous:
            return SeedWelcomeResult(skipped=True, reason="anonymous")

        now = utcnow()
        onboarding = self.db.query(GrowthOnboarding).filter(GrowthOnboarding.user_id == user.id).first()
        if onboarding is not None and onboarding.seed_followed_at is not None:
            return SeedWelcomeResult(skipped=True, reason="already_done")
        if onboarding is None:
            onboarding = GrowthOnboarding(user_id=user.id, created_at=now)
            self.db.add(onboarding)
        onboarding.updated_at = now

        seed_ids = self.seed_user_ids(user.id)
        if not seed_ids:
            self.db.commit()
            return SeedWelcomeResult(skipped=True, reason="no_seed_accounts")

        followed = 0
        try:
            for seed_id in seed_ids:
                if self.social.is_following(seed_id, user.id):
                    continue
                self.social.add_follow(seed_id, user.id)
                followed += 1
            onboarding.seed_followed_at = now
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Seed accounts followed user {user.id} ({followed} new)")
        return SeedWelcomeResult(followed_count=followed)
