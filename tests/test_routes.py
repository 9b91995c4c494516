"""
End-to-end tests through the HTTP layer: auth gate, moderation scenario,
comments and downloads.
"""

import io
import zipfile

import pytest

from conftest import PASSWORD, login, register, seed_catalogue
from travel_manager.services import auth as auth_service

PROTECTED_PAGES = [
    "/profile",
    "/travels/new",
    "/travels/comments?id=1&type=travel",
    "/admins",
    "/admins/view?id=1",
    "/api/travels/get_activities?town=1",
]

PROTECTED_POSTS = [
    "/api/travels/create",
    "/api/travels/add_town",
    "/api/travels/add_comment?id=1&type=travel",
    "/api/auth/rename",
    "/api/auth/logout",
    "/api/auth/delete",
    "/api/admins/approve?id=1",
    "/api/admins/delete?id=1",
]


def _create_travel(client, seeded, name="Paris weekend", public=False, activities=None):
    data = {
        "name": name,
        "description": "Two days",
        "town": str(seeded["town"]),
        "activity": [str(a) for a in (activities or seeded["activities"])],
    }
    if public:
        data["is_public"] = "on"
    return client.post("/api/travels/create", data=data, follow_redirects=False)


# ═══════════════════════════════════════════════════════════════
#  Authentication gate
# ═══════════════════════════════════════════════════════════════

@pytest.mark.parametrize("path", PROTECTED_PAGES)
def test_protected_pages_redirect_anonymous(client, path):
    response = client.get(path, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/auth/login"


@pytest.mark.parametrize("path", PROTECTED_POSTS)
def test_protected_posts_redirect_anonymous(client, path):
    response = client.post(path, data={"name": "x", "coordinates": "1, 2"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/auth/login"


def test_public_pages_render_anonymously(client):
    assert client.get("/").status_code == 200
    assert client.get("/travels").status_code == 200
    assert client.get("/auth/login").status_code == 200
    assert client.get("/auth/register").status_code == 200


def test_register_sets_secure_session_cookie(client):
    response = register(client, "alice@example.com", "Alice")
    assert response.status_code == 303
    assert response.headers["location"] == "/"

    cookie = response.headers["set-cookie"].lower()
    assert cookie.startswith("session=")
    assert "httponly" in cookie
    assert "secure" in cookie

    profile = client.get("/profile")
    assert profile.status_code == 200
    assert "Alice" in profile.text


def test_signed_in_user_is_sent_away_from_auth_pages(client):
    register(client, "alice@example.com")
    response = client.get("/auth/login", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/"


def test_duplicate_registration_is_401_with_message(client):
    register(client, "alice@example.com")
    response = register(client, "alice@example.com", password="something else")
    assert response.status_code == 401
    assert "A user with this email already exists" in response.text
    assert "set-cookie" not in response.headers


def test_invalid_email_registration_is_400(client):
    response = register(client, "not-an-email")
    assert response.status_code == 400


def test_bad_login_responses_are_identical(client):
    register(client, "alice@example.com")
    wrong_password = login(client, "alice@example.com", "wrong")
    unknown_email = login(client, "nobody@example.com", PASSWORD)

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.text == unknown_email.text
    assert "Invalid email or password" in wrong_password.text


def test_login_uses_the_app_password_cost(client, settings, monkeypatch):
    register(client, "alice@example.com")
    costs = []
    original = auth_service._pwd_context

    def recording_context(rounds):
        costs.append(rounds)
        return original(rounds)

    monkeypatch.setattr(auth_service, "_pwd_context", recording_context)
    login(client, "nobody@example.com")
    login(client, "alice@example.com", "wrong")
    assert costs == [settings.BCRYPT_ROUNDS, settings.BCRYPT_ROUNDS]


def test_login_then_logout(client):
    register(client, "alice@example.com")
    response = login(client, "alice@example.com")
    assert response.status_code == 303
    token = client.cookies.get("session")
    assert token

    response = client.post("/api/auth/logout", follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/auth"

    # replaying the old token is anonymous again
    client.cookies.clear()
    client.cookies.set("session", token)
    assert client.get("/profile", follow_redirects=False).status_code == 303


def test_delete_account_signs_out(client):
    register(client, "alice@example.com")
    token = client.cookies.get("session")
    response = client.post("/api/auth/delete", follow_redirects=False)
    assert response.status_code == 303

    client.cookies.clear()
    client.cookies.set("session", token)
    assert client.get("/profile", follow_redirects=False).status_code == 303
    assert login(client, "alice@example.com").status_code == 401


def test_rename_account(client):
    register(client, "alice@example.com", "Alice")
    client.post("/api/auth/rename", data={"name": "Alice Liddell"})
    assert "Alice Liddell" in client.get("/profile").text


# ═══════════════════════════════════════════════════════════════
#  Moderation scenarios
# ═══════════════════════════════════════════════════════════════

def test_private_travel_scenario(client):
    register(client, "a@example.com", "A")
    seeded = seed_catalogue(client)

    response = _create_travel(client, seeded, name="Secret plan", activities=seeded["activities"][:1])
    assert response.status_code == 303
    assert response.headers["location"] == "/profile"

    profile = client.get("/profile").text
    assert "Secret plan" in profile
    assert client.get("/travels/view", params={"id": 1}).status_code == 200
    assert "Secret plan" not in client.get("/travels").text
    assert "Secret plan" not in client.get("/admins").text

    register(client, "b@example.com", "B")
    assert client.get("/travels/view", params={"id": 1}).status_code == 404
    assert client.get("/api/download/kml", params={"id": 1}).status_code == 404

    client.cookies.clear()
    assert client.get("/travels/view", params={"id": 1}).status_code == 404


def test_public_travel_scenario(client):
    register(client, "a@example.com", "A")
    seeded = seed_catalogue(client)

    _create_travel(client, seeded, name="Open plan", public=True)
    assert "Open plan" in client.get("/admins").text
    assert "Open plan" not in client.get("/travels").text

    client.cookies.clear()
    response = client.get("/travels/view", params={"id": 1})
    assert response.status_code == 404
    assert response.json() == {"detail": "Travel not found"}

    login(client, "a@example.com")
    response = client.post("/api/admins/approve", params={"id": 1}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/admins"
    # a second click is harmless
    client.post("/api/admins/approve", params={"id": 1})
    assert "Open plan" not in client.get("/admins").text

    client.cookies.clear()
    assert client.get("/travels/view", params={"id": 1}).status_code == 200
    assert "Open plan" in client.get("/travels").text
    assert "Open plan" in client.get("/travels", params={"town": 1}).text


def test_moderation_actions_refuse_get(client):
    register(client, "a@example.com")
    seeded = seed_catalogue(client)
    _create_travel(client, seeded, name="Linked plan", public=True)

    assert client.get("/api/admins/approve", params={"id": 1}).status_code == 405
    assert client.get("/api/admins/delete", params={"id": 1}).status_code == 405
    assert "Linked plan" in client.get("/admins").text
    assert "Linked plan" not in client.get("/travels").text


def test_rejected_travel_never_goes_live(client):
    register(client, "a@example.com")
    seeded = seed_catalogue(client)
    _create_travel(client, seeded, name="Rejected plan", public=True)

    client.post("/api/admins/delete", params={"id": 1})
    client.post("/api/admins/approve", params={"id": 1})

    assert "Rejected plan" not in client.get("/admins").text
    assert "Rejected plan" not in client.get("/travels").text
    assert "Rejected plan" not in client.get("/profile").text


def test_admin_view_of_pending_submission(client):
    register(client, "a@example.com")
    seeded = seed_catalogue(client)
    _create_travel(client, seeded, name="Queued plan", public=True)

    page = client.get("/admins/view", params={"id": 1})
    assert page.status_code == 200
    assert "Louvre" in page.text
    assert client.get("/admins/view", params={"id": 99}).status_code == 404


def test_single_activity_is_kept(client):
    register(client, "a@example.com")
    seeded = seed_catalogue(client)
    client.post(
        "/api/travels/create",
        data={"name": "One stop", "town": "1", "activity": str(seeded["activities"][1])},
    )
    page = client.get("/travels/view", params={"id": 1}).text
    assert "Seine walk" in page
    assert "Louvre" not in page


def test_unknown_activity_is_rejected(client):
    register(client, "a@example.com")
    seeded = seed_catalogue(client)
    response = _create_travel(client, seeded, activities=[1, 404])
    assert response.status_code == 400
    assert "404" in response.json()["detail"]


def test_bad_town_coordinates_are_rejected(client):
    register(client, "a@example.com")
    response = client.post("/api/travels/add_town", data={"name": "Nowhere", "coordinates": "north"})
    assert response.status_code == 400


# ═══════════════════════════════════════════════════════════════
#  Comments
# ═══════════════════════════════════════════════════════════════

def test_travel_and_activity_comments(client):
    register(client, "a@example.com", "Alice")
    seeded = seed_catalogue(client)
    _create_travel(client, seeded, name="Commented plan")

    client.post(
        "/api/travels/add_comment",
        params={"id": 1, "type": "travel"},
        data={"text": "Lovely itinerary", "pros": "Short walks", "cons": "Crowds"},
    )
    client.post(
        "/api/travels/add_comment",
        params={"id": 1, "type": "activity"},
        data={"text": "Go early", "stars": "5"},
    )

    travel_page = client.get("/travels/comments", params={"id": 1, "type": "travel"}).text
    assert "Lovely itinerary" in travel_page
    assert "Alice" in travel_page
    assert "Go early" not in travel_page

    activity_page = client.get("/travels/comments", params={"id": 1, "type": "activity"}).text
    assert "Go early" in activity_page
    assert "5/5" in activity_page


def test_cannot_comment_on_someone_elses_private_travel(client):
    register(client, "a@example.com")
    seeded = seed_catalogue(client)
    _create_travel(client, seeded)

    register(client, "b@example.com")
    response = client.post(
        "/api/travels/add_comment", params={"id": 1, "type": "travel"}, data={"text": "hi"}
    )
    assert response.status_code == 404


def test_comment_rating_out_of_range(client):
    register(client, "a@example.com")
    seed_catalogue(client)
    response = client.post(
        "/api/travels/add_comment", params={"id": 1, "type": "activity"}, data={"text": "x", "stars": "9"}
    )
    assert response.status_code == 400


# ═══════════════════════════════════════════════════════════════
#  Downloads
# ═══════════════════════════════════════════════════════════════

def test_kml_download(client):
    register(client, "a@example.com")
    seeded = seed_catalogue(client)
    _create_travel(client, seeded, name="Paris weekend")

    response = client.get("/api/download/kml", params={"id": 1})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/vnd.google-earth.kml+xml"
    assert response.headers["content-disposition"] == 'attachment; filename="Paris weekend.kml"'
    # Louvre is stored "48.8606, 2.3376"
    assert "2.3376,48.8606" in response.text


def test_kmz_download_with_image(client):
    register(client, "a@example.com")
    seeded = seed_catalogue(client)
    client.post(
        "/api/travels/add_activity",
        data={"name": "Eiffel Tower", "town": "1"},
        files={"image": ("tower.png", b"\x89PNG tower", "image/png")},
    )
    _create_travel(client, seeded, activities=seeded["activities"] + [3])

    response = client.get("/api/download/kmz", params={"id": 1})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/vnd.google-earth.kmz"
    assert response.headers["content-disposition"].endswith('.kmz"')

    archive = zipfile.ZipFile(io.BytesIO(response.content))
    assert sorted(archive.namelist()) == ["activities/3.png", "travel.kml"]
    assert archive.read("activities/3.png") == b"\x89PNG tower"


def test_gpx_download(client):
    register(client, "a@example.com")
    seed_catalogue(client)
    client.cookies.clear()

    response = client.get("/api/download/gpx", params={"id": 1})
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/gpx"
    assert response.headers["content-disposition"] == 'attachment; filename="Louvre.gpx"'
    assert 'lat="48.8606"' in response.text

    assert client.get("/api/download/gpx", params={"id": 99}).status_code == 404
