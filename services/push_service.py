"""
Browser push delivery for notifications.

Push is optional: without VAPID keys in settings every dispatch is a
no-op. Delivery is best effort. Endpoints the push service reports as
gone (HTTP 404/410) are deleted; any other failure is only logged.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import timezone
from typing import Dict, NamedTuple, Optional
from urllib.parse import quote

import requests
from fastapi import HTTPException, status
from pywebpush import webpush, WebPushException
from sqlalchemy.orm import Session

from config import settings
from database import utcnow
from models.notification import Notification, NotificationType
from models.push_subscription import PushSubscription
from models.user import User
from schemas.notification import PushPayload

logger = logging.getLogger(__name__)

GONE_STATUS_CODES = (404, 410)

PUSH_TITLES: Dict[NotificationType, str] = {
    NotificationType.LIKE: "Someone liked your track",
    NotificationType.COMMENT: "New comment",
    NotificationType.FOLLOW: "New follower",
    NotificationType.MENTION: "You were mentioned",
    NotificationType.REPOST: "Your post was reposted",
    NotificationType.SHARE: "Someone shared your track",
    NotificationType.FRIEND_LISTENING: "Friend started listening",
    NotificationType.NETWORK_TRENDING: "Trending in your network",
    NotificationType.SYSTEM_UPDATE: "New update",
}


class PushDeliveryError(Exception):
    """Delivery failed for a reason that may be transient."""


class PushEndpointGone(PushDeliveryError):
    """The push service no longer knows this endpoint."""


class PushTarget(NamedTuple):
    endpoint: str
    p256dh: str
    auth: str


class DispatchResult(NamedTuple):
    sent: int = 0
    gone: int = 0
    failed: int = 0


class WebPushTransport:
    """Sends encrypted Web Push messages with VAPID authentication."""

    def __init__(self, private_key: str, subject: str, timeout: float = 10.0):
        self.private_key = private_key
        self.subject = subject
        self.timeout = timeout

    def send(self, target: PushTarget, payload: str) -> None:
        try:
            webpush(
                subscription_info={
                    "endpoint": target.endpoint,
                    "keys": {"p256dh": target.p256dh, "auth": target.auth},
                },
                data=payload,
                vapid_private_key=self.private_key,
                vapid_claims={"sub": self.subject},
                timeout=self.timeout,
            )
        except WebPushException as e:
            status_code = getattr(e.response, "status_code", None)
            if status_code in GONE_STATUS_CODES:
                raise PushEndpointGone(f"endpoint gone ({status_code})") from e
            raise PushDeliveryError(f"push service error ({status_code}): {e}") from e
        except requests.RequestException as e:
            raise PushDeliveryError(f"transport error: {e}") from e


def default_transport() -> WebPushTransport:
    return WebPushTransport(settings.WEB_PUSH_PRIVATE_KEY, settings.WEB_PUSH_SUBJECT)


def build_title(notification_type: NotificationType) -> str:
    return PUSH_TITLES[NotificationType(notification_type)]


def build_target_path(notification: Notification) -> str:
    """Deep link opened when the push is clicked."""
    if notification.post_id is not None:
        path = f"/?tab=feed&postId={quote(str(notification.post_id))}"
        if notification.comment_id is not None:
            path += f"&commentId={quote(str(notification.comment_id))}"
        return path

    user_id = notification.profile_id if notification.profile_id is not None else notification.actor_id
    if user_id is not None:
        return f"/?tab=search&userId={quote(str(user_id))}"

    return "/?tab=notifications"


def to_absolute_url(path: str) -> str:
    return f"{settings.SITE_URL.rstrip('/')}{path}"


def build_payload(notification: Notification) -> PushPayload:
    return PushPayload(
        title=build_title(notification.type),
        body=notification.message,
        tag=notification.group_key or f"notification:{notification.id}",
        url=to_absolute_url(build_target_path(notification)),
        created_at=int(notification.created_at.replace(tzinfo=timezone.utc).timestamp() * 1000),
    )


class PushDispatcher:
    """
    Delivers one stored notification to every browser of its recipient.

    Always reads the current notification row, so dispatching the same id
    twice is safe.
    """

    def __init__(self, db: Session, transport=None, max_workers: Optional[int] = None):
        self.db = db
        self._transport = transport
        self.max_workers = max_workers or settings.PUSH_MAX_WORKERS

    @property
    def transport(self):
        if self._transport is None:
            self._transport = default_transport()
        return self._transport

    def _send_one(self, target: PushTarget, payload: str) -> str:
        try:
            self.transport.send(target, payload)
            return "sent"
        except PushEndpointGone:
            return "gone"
        except Exception as e:
            logger.warning(f"Push delivery to {target.endpoint[:60]}... failed: {e}")
            return "failed"

    def dispatch(self, notification_id: int) -> DispatchResult:
        if not settings.web_push_configured:
            logger.debug("Web push not configured; skipping dispatch")
            return DispatchResult()

        notification = self.db.get(Notification, notification_id)
        if notification is None:
            return DispatchResult()

        targets = [
            PushTarget(s.endpoint, s.p256dh, s.auth)
            for s in self.db.query(PushSubscription).filter(
                PushSubscription.user_id == notification.recipient_id
            ).all()
        ]
        if not targets:
            return DispatchResult()

        payload = build_payload(notification).model_dump_json()

        # Each endpoint gets its own future; outcomes are read back per target
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(targets))) as pool:
            futures = {target: pool.submit(self._send_one, target, payload) for target in targets}
        outcomes = {target: future.result() for target, future in futures.items()}

        gone = [target.endpoint for target, outcome in outcomes.items() if outcome == "gone"]
        if gone:
            self.db.query(PushSubscription).filter(
                PushSubscription.user_id == notification.recipient_id,
                PushSubscription.endpoint.in_(gone)
            ).delete(synchronize_session=False)
            self.db.commit()
            logger.info(f"Removed {len(gone)} expired push subscription(s) for user {notification.recipient_id}")

        result = DispatchResult(
            sent=sum(1 for o in outcomes.values() if o == "sent"),
            gone=len(gone),
            failed=sum(1 for o in outcomes.values() if o == "failed"),
        )
        logger.debug(f"Push for notification {notification_id}: {result}")
        return result


class PushSubscriptionService:
    """Registration of browser push endpoints."""

    def __init__(self, db: Session):
        self.db = db

    def _require_registered(self, user: User) -> None:
        if user.is_anonymous:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Create an account to enable push notifications."
            )

    def upsert_subscription(
        self,
        user: User,
        endpoint: str,
        p256dh: str,
        auth: str,
        user_agent: Optional[str] = None,
    ) -> PushSubscription:
        """Register an endpoint; an endpoint already known moves to this user."""
        self._require_registered(user)
        subscription = self.db.query(PushSubscription).filter(
            PushSubscription.endpoint == endpoint
        ).first()

        if subscription is not None:
            if subscription.user_id != user.id:
                logger.info(f"Push endpoint moved from user {subscription.user_id} to {user.id}")
            subscription.user_id = user.id
            subscription.p256dh = p256dh
            subscription.auth = auth
            subscription.user_agent = user_agent
            subscription.updated_at = utcnow()
        else:
            subscription = PushSubscription(
                user_id=user.id,
                endpoint=endpoint,
                p256dh=p256dh,
                auth=auth,
                user_agent=user_agent,
            )
            self.db.add(subscription)

        self.db.commit()
        self.db.refresh(subscription)
        return subscription

    def delete_subscription(self, user: User, endpoint: str) -> bool:
        self._require_registered(user)
        subscription = self.db.query(PushSubscription).filter(
            PushSubscription.endpoint == endpoint
        ).first()
        if subscription is None or subscription.user_id != user.id:
            return False
        self.db.delete(subscription)
        self.db.commit()
        return True

    def push_status(self, user_id: Optional[int]) -> Dict[str, bool]:
        supported = settings.web_push_configured
        if user_id is None:
            return {"supported": supported, "has_subscription": False}
        has_subscription = self.db.query(PushSubscription.id).filter(
            PushSubscription.user_id == user_id
        ).first() is not None
        return {"supported": supported, "has_subscription": has_subscription}

    def public_key(self) -> Optional[str]:
        """VAPID application server key for the browser, or None when push is off."""
        return settings.WEB_PUSH_PUBLIC_KEY if settings.web_push_configured else None
