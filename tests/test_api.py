from models.notification import NotificationType


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_writes_require_authentication(client):
    response = client.post("/api/posts", json={"title": "Untitled"})
    assert response.status_code == 401

    response = client.post("/api/posts", json={"title": "Untitled"},
                           headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_anonymous_reader_gets_public_feed(client, create_user, create_post):
    create_post(create_user(), title="hello")

    response = client.get("/api/posts/feed")

    assert response.status_code == 200
    assert [p["title"] for p in response.json()] == ["hello"]


def test_post_like_and_notification_flow(client, create_user, auth_headers):
    author = create_user(display_name="author")
    fan = create_user(display_name="fan")

    response = client.post("/api/posts", json={"title": "Roygbiv", "type": "song"},
                           headers=auth_headers(author))
    assert response.status_code == 201
    post_id = response.json()["id"]
    assert response.json()["author"]["display_name"] == "author"

    response = client.post(f"/api/posts/{post_id}/like", headers=auth_headers(fan))
    assert response.json() == {"active": True, "count": 1}

    response = client.get("/api/notifications/unread-count", headers=auth_headers(author))
    assert response.json() == {"count": 1}

    notifications = client.get("/api/notifications", headers=auth_headers(author)).json()
    assert notifications[0]["type"] == NotificationType.LIKE.value
    assert notifications[0]["actor"]["display_name"] == "fan"

    response = client.post(f"/api/notifications/{notifications[0]['id']}/read", headers=auth_headers(author))
    assert response.json()["is_read"] is True

    response = client.post(f"/api/posts/{post_id}/like", headers=auth_headers(fan))
    assert response.json() == {"active": False, "count": 0}
    assert client.get("/api/notifications", headers=auth_headers(author)).json() == []


def test_comment_endpoint(client, create_user, create_post, auth_headers):
    post = create_post(create_user())
    fan = create_user(display_name="fan")

    response = client.post(f"/api/posts/{post.id}/comments", json={"content": "nice"},
                           headers=auth_headers(fan))
    assert response.status_code == 201
    assert response.json()["author"]["display_name"] == "fan"

    comments = client.get(f"/api/posts/{post.id}/comments").json()
    assert [c["content"] for c in comments] == ["nice"]


def test_follow_endpoints(client, create_user, auth_headers):
    alice = create_user()
    bob = create_user()

    response = client.post("/api/relationships/follow", json={"followed_id": alice.id},
                           headers=auth_headers(bob))
    assert response.status_code == 201

    response = client.post("/api/relationships/follow", json={"followed_id": alice.id},
                           headers=auth_headers(bob))
    assert response.status_code == 409

    assert client.get(f"/api/relationships/stats/{alice.id}").json() == {
        "followers_count": 1, "following_count": 0
    }
    assert client.get(f"/api/relationships/is-following/{alice.id}",
                      headers=auth_headers(bob)).json() == {"following": True}

    response = client.delete(f"/api/relationships/unfollow/{alice.id}", headers=auth_headers(bob))
    assert response.status_code == 204


def test_system_broadcast_is_admin_only(client, create_user, auth_headers):
    user = create_user()
    admin = create_user(is_admin=True)

    response = client.post("/api/notifications/system", json={"message": "Maintenance tonight"},
                           headers=auth_headers(user))
    assert response.status_code == 403

    response = client.post("/api/notifications/system", json={"message": "Maintenance tonight"},
                           headers=auth_headers(admin))
    assert response.json() == {"recipients": 2}


def test_player_state_and_presence(client, create_user, auth_headers):
    user = create_user()

    assert client.get(f"/api/player/presence/{user.id}").status_code == 404

    response = client.put("/api/player/state", headers=auth_headers(user), json={
        "track_url": "https://youtu.be/abc", "track_title": "Teardrop", "is_playing": True
    })
    assert response.status_code == 200
    assert response.json()["track_title"] == "Teardrop"

    presence = client.get(f"/api/player/presence/{user.id}").json()
    assert presence["is_active"] is True
    assert presence["track_title"] == "Teardrop"

    assert client.get("/api/player/state").json() is None


def test_push_endpoints(client, create_user, auth_headers, push_configured):
    user = create_user()

    assert client.get("/api/push/public-key").json() == {"public_key": "test-public-key"}

    response = client.post("/api/push/subscriptions", headers=auth_headers(user), json={
        "endpoint": "https://push.test/a", "p256dh": "k", "auth": "a"
    })
    assert response.status_code == 201
    assert client.get("/api/push/status", headers=auth_headers(user)).json() == {
        "supported": True, "has_subscription": True
    }

    response = client.post("/api/push/subscriptions/delete", headers=auth_headers(user),
                           json={"endpoint": "https://push.test/a"})
    assert response.json() == {"deleted": True}


def test_seed_welcome_endpoint(client, create_user, auth_headers, monkeypatch):
    from config import settings
    monkeypatch.setattr(settings, "SEED_ACCOUNT_EMAILS", ["curator@tunecircle.test"])
    create_user(email="curator@tunecircle.test")
    newcomer = create_user()

    response = client.post("/api/growth/seed-welcome", headers=auth_headers(newcomer))

    assert response.json() == {"skipped": False, "reason": None, "followed_count": 1}


def test_search_endpoints(client, create_user, create_post):
    author = create_user(display_name="Four Tet")
    create_post(author, title="Lush")

    response = client.get("/api/posts/search", params={"q": "lus"})
    assert response.status_code == 200
    assert [p["title"] for p in response.json()] == ["Lush"]

    response = client.get("/api/users/search", params={"q": "four"})
    assert response.status_code == 200
    assert [u["id"] for u in response.json()] == [author.id]
    assert response.json()[0]["display_name"] == "Four Tet"
