import pytest
from fastapi import HTTPException

from services.feed_service import FeedService, FeedScope
from services.post_service import PostService
from services.presence_service import PresenceService


@pytest.fixture
def network(create_user, create_post, follow):
    viewer = create_user(display_name="viewer")
    friend = create_user(display_name="friend")
    stranger = create_user(display_name="stranger")
    follow(viewer, friend)
    posts = {
        "own": create_post(viewer, title="own"),
        "friend": create_post(friend, title="friend"),
        "stranger": create_post(stranger, title="stranger"),
    }
    return viewer, friend, stranger, posts


def test_personal_feed_has_self_and_followed(test_db, network):
    viewer, _, _, _ = network

    feed = FeedService(test_db).get_feed(viewer.id, FeedScope.PERSONAL)

    assert [p.title for p in feed] == ["friend", "own"]


def test_public_feed_has_everyone_newest_first(test_db, network):
    viewer, _, _, _ = network

    feed = FeedService(test_db).get_feed(viewer.id, FeedScope.PUBLIC)

    assert [p.title for p in feed] == ["stranger", "friend", "own"]


def test_personal_feed_without_viewer_falls_back_to_public(test_db, network):
    feed = FeedService(test_db).get_feed(None, FeedScope.PERSONAL)

    assert len(feed) == 3
    assert all(p.is_liked is False for p in feed)


def test_feed_limit_is_clamped(test_db, network):
    service = FeedService(test_db)

    assert len(service.get_feed(None, FeedScope.PUBLIC, limit=1)) == 1
    assert len(service.get_feed(None, FeedScope.PUBLIC, limit=-5)) == 1


def test_feed_marks_viewer_likes_and_author_presence(test_db, network):
    viewer, friend, _, posts = network
    PostService(test_db).like(viewer.id, posts["friend"].id)
    PresenceService(test_db).report_playback(friend.id, "track-1", "Alberto Balsalm", True)

    feed = FeedService(test_db).get_feed(viewer.id)
    by_title = {p.title: p for p in feed}

    assert by_title["friend"].is_liked is True
    assert by_title["friend"].likes_count == 1
    assert by_title["friend"].author.display_name == "friend"
    assert by_title["friend"].author.listening_now.track_title == "Alberto Balsalm"
    assert by_title["own"].author.listening_now is None


def test_get_post_missing_is_not_found(test_db):
    with pytest.raises(HTTPException) as exc:
        FeedService(test_db).get_post(404)
    assert exc.value.status_code == 404


def test_user_posts_only_by_author(test_db, network):
    _, friend, _, _ = network

    posts = FeedService(test_db).get_user_posts(friend.id)

    assert [p.title for p in posts] == ["friend"]


def test_personal_feed_truncates_to_limit(test_db, network, create_post):
    viewer, friend, _, _ = network
    create_post(friend, title="friend again")

    feed = FeedService(test_db).get_feed(viewer.id, FeedScope.PERSONAL, limit=2)

    assert [p.title for p in feed] == ["friend again", "friend"]


def test_search_posts_matches_title_or_caption(test_db, create_user, create_post):
    author = create_user(display_name="author")
    viewer = create_user()
    by_title = create_post(author, title="Nightcall")
    create_post(author, title="Untitled", content="driving at NIGHT again")
    create_post(author, title="Daylight")
    PostService(test_db).like(viewer.id, by_title.id)

    results = FeedService(test_db).search_posts("night", viewer.id)

    assert [p.title for p in results] == ["Untitled", "Nightcall"]
    assert [p.is_liked for p in results] == [False, True]
    assert results[0].author.display_name == "author"


def test_search_posts_with_blank_term_is_empty(test_db, create_user, create_post):
    create_post(create_user(), title="anything")
    service = FeedService(test_db)

    assert service.search_posts("", None) == []
    assert service.search_posts("   ", None) == []
    assert service.search_posts(None, None) == []


def test_search_posts_caps_results(test_db, create_user, create_post):
    author = create_user()
    for i in range(25):
        create_post(author, title=f"Loop {i}")

    assert len(FeedService(test_db).search_posts("loop", None)) == 20
