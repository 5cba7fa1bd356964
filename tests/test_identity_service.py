from models.user import Profile
from services.identity_service import IdentityService


def test_display_name_falls_back_to_account_name_then_email(test_db, create_user):
    with_profile = create_user(name="account", display_name="Shown")
    name_only = create_user(name="account2")
    email_only = create_user(email="quiet@example.com")
    email_only.name = None
    test_db.commit()
    service = IdentityService(test_db)

    assert service.display_name(with_profile.id) == "Shown"
    assert service.display_name(name_only.id) == "account2"
    assert service.display_name(email_only.id) == "quiet@example.com"
    assert service.display_name(999) == "Anonymous"


def test_search_users_is_case_insensitive_substring(test_db, create_user):
    aphex = create_user(display_name="Aphex Twin")
    create_user(display_name="Boards of Canada")
    service = IdentityService(test_db)

    results = service.search_users("TWIN")

    assert [r.id for r in results] == [aphex.id]
    assert results[0].display_name == "Aphex Twin"


def test_search_users_skips_private_profiles(test_db, create_user):
    public = create_user(display_name="Burial")
    hidden = create_user(display_name="Burial Unknown")
    test_db.query(Profile).filter(Profile.user_id == hidden.id).update({"is_public": False})
    test_db.commit()

    results = IdentityService(test_db).search_users("burial")

    assert [r.id for r in results] == [public.id]


def test_search_users_without_profile_matches_account_name(test_db, create_user):
    nameless = create_user(name="squarepusher")

    results = IdentityService(test_db).search_users("pusher")

    assert [r.id for r in results] == [nameless.id]
    assert results[0].bio is None


def test_search_users_returns_bio_and_caps_results(test_db, create_user):
    for i in range(12):
        create_user(display_name=f"Autechre {i}")
    first = test_db.query(Profile).order_by(Profile.user_id).first()
    first.bio = "Sheffield"
    test_db.commit()
    service = IdentityService(test_db)

    results = service.search_users("autechre")

    assert len(results) == 10
    assert results[0].bio == "Sheffield"
    assert service.search_users("  ") == []
