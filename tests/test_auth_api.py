from datetime import datetime, timedelta, timezone

import jwt

from evapi import http
from conftest import auth_header


def _register(client, username="driver", email="driver@example.com", password="long-enough-pw"):
    return client.post("/api/users", json={"username": username, "email": email, "password": password})


def test_register_returns_token_that_authenticates(client):
    r = _register(client)
    assert r.status_code == 201
    token = r.get_json()["token"]

    r = client.get("/api/reservations", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.get_json()["items"] == []


def test_register_duplicate_email_400(client):
    assert _register(client).status_code == 201

    r = _register(client, username="other", email="DRIVER@example.com")

    assert r.status_code == 400
    assert "email" in r.get_json()["message"]


def test_register_invalid_email_422(client):
    r = _register(client, email="not-an-email")
    assert r.status_code == 422
    assert r.get_json()["code"] == "VALIDATION_ERROR"


def test_login_200_returns_token(client):
    _register(client)
    r = client.post("/api/sessions", json={"email": "driver@example.com", "password": "long-enough-pw"})
    assert r.status_code == 200
    assert isinstance(r.get_json()["token"], str)


def test_login_wrong_password_and_unknown_email_look_the_same(client):
    _register(client)
    wrong = client.post("/api/sessions", json={"email": "driver@example.com", "password": "nope"})
    unknown = client.post("/api/sessions", json={"email": "ghost@example.com", "password": "nope"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.get_json()["message"] == unknown.get_json()["message"]


def test_login_rate_limited_429(app, client):
    app.config["AUTH_RATE_MAX"] = 2
    headers = {"X-Forwarded-For": "203.0.113.9"}
    payload = {"email": "ghost@example.com", "password": "nope"}

    codes = [client.post("/api/sessions", json=payload, headers=headers).status_code for _ in range(3)]

    assert codes == [401, 401, 429]


def test_non_bearer_scheme_401(client):
    r = client.get("/api/reservations", headers={"Authorization": "Basic abc"})
    assert r.status_code == 401
    assert r.get_json()["message"] == "Invalid authentication token"


def test_garbage_token_401(client):
    r = client.get("/api/reservations", headers={"Authorization": "Bearer not.a.jwt"})
    assert r.status_code == 401
    assert r.get_json()["message"].startswith("Invalid authentication token")


def test_expired_token_401(app, client, user):
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "sub": str(user.id),
            "roles": user.roles,
            "aud": app.config["JWT_AUDIENCE"],
            "iss": app.config["JWT_ISSUER"],
            "iat": now - timedelta(hours=2),
            "exp": now - timedelta(hours=1),
        },
        app.config["JWT_SECRET"],
        algorithm="HS256",
    )

    r = client.get("/api/reservations", headers={"Authorization": f"Bearer {token}"})

    assert r.status_code == 401
    assert r.get_json()["message"] == "The token has expired"


def test_user_list_requires_admin(client, user, admin):
    assert client.get("/api/users", headers=auth_header(user)).status_code == 403

    r = client.get("/api/users", headers=auth_header(admin))
    assert r.status_code == 200
    assert {u["id"] for u in r.get_json()["items"]} == {user.id, admin.id}


def test_user_can_read_and_update_self_only(client, make_user):
    me, other = make_user(), make_user()

    assert client.get(f"/api/users/{me.id}", headers=auth_header(me)).status_code == 200
    assert client.get(f"/api/users/{other.id}", headers=auth_header(me)).status_code == 403

    r = client.put(f"/api/users/{me.id}", json={"username": "renamed"}, headers=auth_header(me))
    assert r.status_code == 200
    assert r.get_json()["username"] == "renamed"


def test_admin_deletes_user(client, user, admin):
    r = client.delete(f"/api/users/{user.id}", headers=auth_header(admin))
    assert r.status_code == 204
    assert client.get(f"/api/users/{user.id}", headers=auth_header(admin)).status_code == 404


def test_user_reservations_listing(client, user, make_user, make_station, base_time):
    station = make_station(number_of_spaces=None)
    client.post(
        "/api/reservations",
        json={
            "chargingStation_id": station.id,
            "startReservation": (base_time + timedelta(hours=1)).isoformat() + "Z",
            "endReservation": (base_time + timedelta(hours=2)).isoformat() + "Z",
        },
        headers=auth_header(user),
    )

    r = client.get(f"/api/users/{user.id}/reservations", headers=auth_header(user))
    assert r.status_code == 200
    assert len(r.get_json()["items"]) == 1

    stranger = make_user()
    assert client.get(f"/api/users/{user.id}/reservations", headers=auth_header(stranger)).status_code == 403


def test_user_cannot_delete_self(client, user):
    r = client.delete(f"/api/users/{user.id}", headers=auth_header(user))
    assert r.status_code == 403
    assert client.get(f"/api/users/{user.id}", headers=auth_header(user)).status_code == 200


def test_me_alias_reads_and_updates_signed_in_user(client, user, make_user):
    make_user()

    r = client.get("/api/users/me", headers=auth_header(user))
    assert r.status_code == 200
    assert r.get_json()["id"] == user.id

    r = client.put("/api/users/me", json={"username": "me-renamed"}, headers=auth_header(user))
    assert r.status_code == 200
    assert r.get_json()["id"] == user.id
    assert r.get_json()["username"] == "me-renamed"


def test_me_alias_lists_own_reservations(client, user, make_user, make_station, base_time):
    station = make_station(number_of_spaces=None)
    other = make_user()
    for owner in (user, other):
        client.post(
            "/api/reservations",
            json={
                "chargingStation_id": station.id,
                "startReservation": (base_time + timedelta(hours=1)).isoformat() + "Z",
                "endReservation": (base_time + timedelta(hours=2)).isoformat() + "Z",
            },
            headers=auth_header(owner),
        )

    r = client.get("/api/users/me/reservations", headers=auth_header(user))

    assert r.status_code == 200
    items = r.get_json()["items"]
    assert len(items) == 1
    assert items[0]["user_id"] == user.id


def test_me_alias_requires_authentication(client):
    assert client.get("/api/users/me").status_code == 401


def test_register_rate_limited_429(app, client):
    app.config["AUTH_RATE_MAX"] = 2
    headers = {"X-Forwarded-For": "198.51.100.7"}

    codes = [
        client.post(
            "/api/users",
            json={"username": f"bulk{n}", "email": f"bulk{n}@example.com", "password": "long-enough-pw"},
            headers=headers,
        ).status_code
        for n in range(3)
    ]

    assert codes == [201, 201, 429]


def test_rate_limiter_drops_entries_from_past_windows(app):
    http._rate_state["login:192.0.2.1"] = (5, 0)
    http._rate_state["login:192.0.2.2"] = (3, 1)

    with app.test_request_context():
        assert http.allow("login:192.0.2.3")

    assert set(http._rate_state) == {"login:192.0.2.3"}
