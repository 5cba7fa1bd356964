"""
Group keys for notification deduplication.

Each key names "the same logical event": every recurrence of that event
for one recipient updates a single notification row instead of adding one.
"""
import hashlib


def follow(actor_id: int, recipient_id: int) -> str:
    return f"follow:{actor_id}:{recipient_id}"


def like(post_id: int, actor_id: int) -> str:
    return f"like:{post_id}:{actor_id}"


def repost(post_id: int, actor_id: int) -> str:
    return f"repost:{post_id}:{actor_id}"


def comment(comment_id: int) -> str:
    return f"comment:{comment_id}"


def mention(comment_id: int, mentioned_user_id: int) -> str:
    return f"mention:{comment_id}:{mentioned_user_id}"


def share(post_id: int, actor_id: int) -> str:
    return f"share:{post_id}:{actor_id}"


def friend_listening(actor_id: int, track_id: str) -> str:
    # Track URLs can be long; the digest keeps the key within the column size
    digest = hashlib.sha1(track_id.encode("utf-8")).hexdigest()
    return f"friend_listening:{actor_id}:{digest}"


def network_trending(post_id: int, threshold: int, follower_id: int) -> str:
    return f"network_trending:{post_id}:{threshold}:{follower_id}"


def system_update(recipient_id: int, message: str) -> str:
    digest = hashlib.sha1(message.strip().encode("utf-8")).hexdigest()
    return f"system_update:{recipient_id}:{digest}"
