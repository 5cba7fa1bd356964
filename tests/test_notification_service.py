import pytest
from fastapi import HTTPException

from models.notification import Notification, NotificationType
from services import group_keys
from services.notification_service import (
    NotificationService, extract_mentions, crossed_threshold
)
from services.post_service import PostService


def _notifications(db, recipient, type=None):
    query = db.query(Notification).filter(Notification.recipient_id == recipient.id)
    if type is not None:
        query = query.filter(Notification.type == type)
    return query.all()


def test_extract_mentions_dedupes_case_insensitively():
    assert extract_mentions("hey @Alice and @bob_b, also @alice again") == ["alice", "bob_b"]


def test_extract_mentions_ignores_short_and_empty():
    assert extract_mentions("@a is too short") == []
    assert extract_mentions("") == []
    assert extract_mentions(None) == []


def test_extract_mentions_drops_trailing_punctuation():
    assert extract_mentions("thanks @alice. and @bob-") == ["alice", "bob"]
    assert extract_mentions("@dj.shadow spinning") == ["dj.shadow"]
    assert extract_mentions("@a. nope") == []


@pytest.mark.parametrize("before,after,expected", [
    (4, 5, 5),
    (6, 7, None),
    (9, 10, 10),
    (24, 25, 25),
    (25, 26, None),
    (0, 30, 5),
])
def test_crossed_threshold(before, after, expected):
    assert crossed_threshold(before, after, [5, 10, 25]) == expected


def test_upsert_with_same_group_key_keeps_one_row(test_db, create_user):
    alice = create_user(display_name="alice")
    bob = create_user(display_name="bob")
    service = NotificationService(test_db)
    key = group_keys.follow(bob.id, alice.id)

    first = service.upsert_notification(alice.id, NotificationType.FOLLOW, "bob followed you",
                                        actor_id=bob.id, group_key=key)
    test_db.commit()
    service.mark_read(alice.id, first)

    second = service.upsert_notification(alice.id, NotificationType.FOLLOW, "bob followed you again",
                                         actor_id=bob.id, group_key=key)
    test_db.commit()

    rows = _notifications(test_db, alice)
    assert first == second
    assert len(rows) == 1
    assert rows[0].message == "bob followed you again"
    assert rows[0].read_at is None


def test_upsert_without_group_key_always_inserts(test_db, create_user):
    alice = create_user()
    service = NotificationService(test_db)
    service.upsert_notification(alice.id, NotificationType.SYSTEM_UPDATE, "one")
    service.upsert_notification(alice.id, NotificationType.SYSTEM_UPDATE, "one")
    test_db.commit()

    assert len(_notifications(test_db, alice)) == 2


def test_push_is_scheduled_only_after_commit(test_db, create_user, scheduled_pushes):
    alice = create_user()
    service = NotificationService(test_db)

    notification_id = service.upsert_notification(alice.id, NotificationType.SYSTEM_UPDATE, "hello",
                                                  group_key="system:test")
    assert scheduled_pushes == []

    test_db.commit()
    assert scheduled_pushes == [notification_id]


def test_rollback_discards_pending_pushes(test_db, create_user, scheduled_pushes):
    alice = create_user()
    service = NotificationService(test_db)

    service.upsert_notification(alice.id, NotificationType.SYSTEM_UPDATE, "hello", group_key="system:test")
    test_db.rollback()
    test_db.commit()

    assert scheduled_pushes == []
    assert _notifications(test_db, alice) == []


def test_trending_fires_when_likes_reach_threshold(test_db, create_user, create_post, follow):
    author = create_user(display_name="author")
    fan = create_user(display_name="fan")
    follow(fan, author)
    post = create_post(author, title="Night Drive")
    likers = [create_user() for _ in range(5)]
    service = PostService(test_db)

    for liker in likers[:4]:
        service.like(liker.id, post.id)
    assert _notifications(test_db, fan, NotificationType.NETWORK_TRENDING) == []

    service.like(likers[4].id, post.id)
    trending = _notifications(test_db, fan, NotificationType.NETWORK_TRENDING)
    assert len(trending) == 1
    assert trending[0].post_id == post.id
    assert trending[0].actor_id is None
    assert trending[0].group_key == group_keys.network_trending(post.id, 5, fan.id)


def test_trending_does_not_fire_between_thresholds(test_db, create_user, create_post, follow):
    author = create_user()
    fan = create_user()
    follow(fan, author)
    post = create_post(author, likes_count=6)

    PostService(test_db).like(create_user().id, post.id)

    assert _notifications(test_db, fan, NotificationType.NETWORK_TRENDING) == []


def test_mentions_notify_resolved_users_except_commenter_and_post_author(
        test_db, create_user, create_post):
    author = create_user(display_name="PostAuthor")
    commenter = create_user(display_name="commenter")
    dana = create_user(display_name="Dana")
    post = create_post(author)

    PostService(test_db).add_comment(
        commenter.id, post.id, "@dana listen! @commenter @postauthor @nobody_here"
    )

    mentions = test_db.query(Notification).filter(Notification.type == NotificationType.MENTION).all()
    assert [m.recipient_id for m in mentions] == [dana.id]
    assert mentions[0].actor_id == commenter.id
    assert len(_notifications(test_db, author, NotificationType.COMMENT)) == 1


def test_mentions_match_account_name_without_profile(test_db, create_user, create_post):
    author = create_user()
    commenter = create_user()
    nameonly = create_user(name="nameonly")
    post = create_post(author)

    PostService(test_db).add_comment(commenter.id, post.id, "cc @NameOnly")

    assert len(_notifications(test_db, nameonly, NotificationType.MENTION)) == 1


def test_list_notifications_flags_deleted_targets(test_db, create_user, create_post):
    author = create_user()
    fan = create_user(display_name="fan")
    post = create_post(author)
    PostService(test_db).like(fan.id, post.id)
    PostService(test_db).delete_post(author.id, post.id)

    listed = NotificationService(test_db).list_notifications(author.id)

    assert len(listed) == 1
    assert listed[0].target_exists is False
    assert listed[0].actor.display_name == "fan"


def test_list_notifications_is_empty_for_anonymous_reader(test_db):
    service = NotificationService(test_db)
    assert service.list_notifications(None) == []
    assert service.unread_count(None) == 0


def test_mark_read_rejects_other_users(test_db, create_user):
    alice = create_user()
    mallory = create_user()
    service = NotificationService(test_db)
    notification_id = service.upsert_notification(alice.id, NotificationType.SYSTEM_UPDATE, "hi")
    test_db.commit()

    with pytest.raises(HTTPException) as exc:
        service.mark_read(mallory.id, notification_id)
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        service.mark_read(alice.id, notification_id + 100)
    assert exc.value.status_code == 404


def test_mark_all_read_clears_unread_count(test_db, create_user):
    alice = create_user()
    service = NotificationService(test_db)
    service.upsert_notification(alice.id, NotificationType.SYSTEM_UPDATE, "one")
    service.upsert_notification(alice.id, NotificationType.SYSTEM_UPDATE, "two")
    test_db.commit()
    assert service.unread_count(alice.id) == 2

    assert service.mark_all_read(alice.id) == 2
    assert service.unread_count(alice.id) == 0


def test_broadcast_collapses_identical_messages(test_db, create_user, scheduled_pushes):
    alice = create_user()
    bob = create_user()
    create_user(is_anonymous=True)
    service = NotificationService(test_db)

    assert service.broadcast_system_update("New release is out") == 2
    service.broadcast_system_update("New release is out")
    service.broadcast_system_update("Something else", recipient_ids=[alice.id])

    assert len(_notifications(test_db, alice)) == 2
    assert len(_notifications(test_db, bob)) == 1
    assert len(scheduled_pushes) == 5


def test_broadcast_rejects_blank_message(test_db):
    with pytest.raises(HTTPException) as exc:
        NotificationService(test_db).broadcast_system_update("   ")
    assert exc.value.status_code == 400


def test_two_resolved_mentions_produce_two_notifications(test_db, create_user, create_post):
    post = create_post(create_user())
    commenter = create_user()
    alice = create_user(display_name="alice")
    bob = create_user(display_name="bob")

    PostService(test_db).add_comment(commenter.id, post.id, "@alice great track @bob")

    mentions = test_db.query(Notification).filter(Notification.type == NotificationType.MENTION).all()
    assert sorted(m.recipient_id for m in mentions) == sorted([alice.id, bob.id])


def test_self_mention_produces_nothing(test_db, create_user, create_post):
    post = create_post(create_user())
    commenter = create_user(display_name="loner")

    PostService(test_db).add_comment(commenter.id, post.id, "note to self @loner")

    assert test_db.query(Notification).filter(Notification.type == NotificationType.MENTION).count() == 0


def test_mention_at_end_of_sentence_resolves(test_db, create_user, create_post):
    post = create_post(create_user())
    commenter = create_user()
    alice = create_user(display_name="alice")

    PostService(test_db).add_comment(commenter.id, post.id, "great pick, thanks @alice.")

    assert len(_notifications(test_db, alice, NotificationType.MENTION)) == 1
