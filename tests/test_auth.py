"""Magic link login, verification, sessions, logout and invitations."""

import pytest

from errors import InvalidOrExpiredToken, StorageError, ValidationError
from services.auth import AuthService, sign_session_id, unsign_session_id


@pytest.fixture
def auth(store, db):
    return AuthService(store, db)


def test_login_response_identical_for_known_and_unknown_email(client, make_user, mailer):
    make_user("known@example.com")

    known = client.post("/api/auth/login", json={"email": "known@example.com"})
    unknown = client.post("/api/auth/login", json={"email": "stranger@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.content == unknown.content
    assert [m["to"] for m in mailer.sent] == ["known@example.com"]


def test_login_hides_delivery_failure(client, make_user, mailer):
    make_user("known@example.com")
    mailer.fail = True

    res = client.post("/api/auth/login", json={"email": "known@example.com"})

    assert res.status_code == 200
    assert res.json()["success"] is True


def test_login_storage_outage_answers_like_unknown_email(client, make_user, mailer, store, monkeypatch):
    make_user("known@example.com")

    def broken(*args, **kwargs):
        raise StorageError()

    monkeypatch.setattr(store, "create_token", broken)

    known = client.post("/api/auth/login", json={"email": "known@example.com"})
    unknown = client.post("/api/auth/login", json={"email": "stranger@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.content == unknown.content
    assert mailer.sent == []


def test_login_requires_email(client):
    res = client.post("/api/auth/login", json={})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


def test_login_token_expires_after_15_minutes(auth, make_user, fake_redis):
    make_user("known@example.com")

    link = auth.request_login("Known@Example.com ", "https://spaces.example.com")

    assert link.startswith("https://spaces.example.com/verify-login?token=")
    token = link.split("token=", 1)[1]
    assert 0 < fake_redis.ttl(f"token:{token}") <= 15 * 60


def test_request_login_for_unknown_email_stores_nothing(auth, fake_redis):
    assert auth.request_login("nobody@example.com", "https://spaces.example.com") is None
    assert list(fake_redis.scan_iter("token:*")) == []


def test_verify_sets_secure_session_cookie(client, make_user, mailer):
    make_user("known@example.com")
    client.post("/api/auth/login", json={"email": "known@example.com"})

    res = client.get("/api/auth/verify", params={"token": mailer.last_token()})

    assert res.status_code == 200
    cookie = res.headers["set-cookie"].lower()
    assert cookie.startswith("session_id=")
    assert "httponly" in cookie
    assert "secure" in cookie
    assert "samesite=lax" in cookie
    assert "path=/" in cookie
    assert "max-age=86400" in cookie


def test_token_is_usable_exactly_once(client, make_user, mailer):
    make_user("known@example.com")
    client.post("/api/auth/login", json={"email": "known@example.com"})
    token = mailer.last_token()

    assert client.get("/api/auth/verify", params={"token": token}).status_code == 200
    second = client.get("/api/auth/verify", params={"token": token})

    assert second.status_code == 400
    assert second.json()["error"]["code"] == "INVALID_OR_EXPIRED_TOKEN"


def test_verify_without_token_is_validation_error(auth):
    with pytest.raises(ValidationError):
        auth.verify(None)


def test_verify_unknown_token_fails(auth):
    with pytest.raises(InvalidOrExpiredToken):
        auth.verify("not-a-real-token")


def test_session_lives_24_hours(auth, make_user, fake_redis):
    make_user("known@example.com")
    link = auth.request_login("known@example.com", "https://spaces.example.com")

    session_id, identity = auth.verify(link.split("token=", 1)[1])

    assert identity.email == "known@example.com"
    assert 0 < fake_redis.ttl(f"session:{session_id}") <= 24 * 60 * 60


def test_me_is_null_when_anonymous(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 200
    assert res.json() == {"user": None}


def test_me_returns_identity_after_login(client, login):
    user = login("fac@example.com", "facilitator")

    res = client.get("/api/auth/me")

    assert res.json()["user"] == {"user_id": user.id, "email": "fac@example.com", "role": "facilitator"}


def test_tampered_cookie_is_anonymous(auth, make_user):
    make_user("known@example.com")
    link = auth.request_login("known@example.com", "https://spaces.example.com")
    session_id, _ = auth.verify(link.split("token=", 1)[1])

    assert auth.resolve_session(sign_session_id(session_id)) is not None
    assert auth.resolve_session(session_id) is None
    assert auth.resolve_session(f"{session_id}.deadbeef") is None
    assert auth.resolve_session(None) is None


def test_unsign_rejects_other_secret():
    signed = sign_session_id("abc", secret="one")
    assert unsign_session_id(signed, secret="one") == "abc"
    assert unsign_session_id(signed, secret="two") is None


def test_logout_deletes_session_and_is_idempotent(client, login, fake_redis):
    login("fac@example.com")
    assert len(list(fake_redis.scan_iter("session:*"))) == 1

    first = client.post("/api/auth/logout")
    second = client.post("/api/auth/logout")

    assert first.status_code == second.status_code == 200
    assert list(fake_redis.scan_iter("session:*")) == []
    assert client.get("/api/auth/me").json() == {"user": None}


def test_invite_creates_user_and_sends_7_day_link(client, admin, mailer, fake_redis):
    res = client.post("/api/admin/users", json={"email": "new@example.com", "role": "facilitator"})

    assert res.status_code == 201
    assert res.json()["user"]["email"] == "new@example.com"
    assert mailer.sent[-1]["to"] == "new@example.com"
    assert "admin@example.com" in mailer.sent[-1]["html"]
    token = mailer.last_token()
    assert 15 * 60 < fake_redis.ttl(f"token:{token}") <= 7 * 24 * 60 * 60


def test_invite_token_logs_the_new_user_in(client, admin, mailer, anonymous_client):
    client.post("/api/admin/users", json={"email": "new@example.com", "role": "admin"})

    res = anonymous_client.get("/api/auth/verify", params={"token": mailer.last_token()})

    assert res.status_code == 200
    assert anonymous_client.get("/api/auth/me").json()["user"]["role"] == "admin"


def test_invite_duplicate_user_conflicts(client, admin):
    res = client.post("/api/admin/users", json={"email": "admin@example.com", "role": "admin"})
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "DUPLICATE_USER"


def test_invite_invalid_role(client, admin):
    res = client.post("/api/admin/users", json={"email": "new@example.com", "role": "attendee"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_ROLE"


def test_invite_requires_email_and_role(client, admin):
    res = client.post("/api/admin/users", json={"email": "new@example.com"})
    assert res.status_code == 400


def test_invite_keeps_user_when_email_fails(client, admin, mailer):
    mailer.fail = True

    res = client.post("/api/admin/users", json={"email": "new@example.com", "role": "facilitator"})

    assert res.status_code == 502
    body = res.json()["error"]
    assert body["code"] == "USER_CREATED_EMAIL_FAILED"
    assert body["details"]["user"]["email"] == "new@example.com"
    emails = [u["email"] for u in client.get("/api/admin/users").json()]
    assert "new@example.com" in emails


def test_invite_removes_user_when_token_cannot_be_stored(client, admin, mailer, store, monkeypatch):
    sent_before = len(mailer.sent)

    def broken(*args, **kwargs):
        raise StorageError()

    monkeypatch.setattr(store, "create_token", broken)

    res = client.post("/api/admin/users", json={"email": "new@example.com", "role": "facilitator"})

    assert res.status_code == 500
    assert res.json()["error"]["code"] == "STORAGE_ERROR"
    assert len(mailer.sent) == sent_before
    emails = [u["email"] for u in client.get("/api/admin/users").json()]
    assert "new@example.com" not in emails
