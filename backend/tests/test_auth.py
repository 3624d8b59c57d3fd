from datetime import timedelta
from urllib.parse import parse_qs, urlparse

import pytest

from jobboard.core.config import settings
from jobboard.core.errors import AuthError, ConflictError, ValidationError
from jobboard.core.security import create_access_token, hash_token, utcnow, verify_password
from jobboard.db.session import SessionLocal
from jobboard.models import LoginLog, User
from jobboard.schemas.user import UserRegister
from jobboard.services import accounts

from conftest import PASSWORD, auth_header, login, make_seeker, make_user


def register_payload(**overrides):
    payload = {
        "username": "ada",
        "email": "a@x.com",
        "password": PASSWORD,
        "confirmPassword": PASSWORD,
        "role": "job_seeker",
    }
    payload.update(overrides)
    return payload


# ============== Registration ==============


def test_register_returns_sanitized_user(client, mailer):
    response = client.post("/api/auth/register", json=register_payload())

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["email"] == "a@x.com"
    assert user["email_verified"] is False
    assert "hashed_password" not in user
    assert "password" not in user
    assert "verification_token_hash" not in user
    assert "a@x.com" in mailer.verification_tokens


def test_register_stores_only_token_digest(db, mailer):
    user = make_user(db, mailer, email="b@x.com", verified=False)
    token = mailer.verification_tokens["b@x.com"]

    assert user.verification_token_hash == hash_token(token)
    assert user.hashed_password != PASSWORD
    assert user.verification_token_expires > utcnow() + timedelta(hours=23)


def test_register_employer_starts_unapproved(client):
    response = client.post(
        "/api/auth/register",
        json=register_payload(username="acme", email="e@x.com", role="employer", companyName="Acme"),
    )

    assert response.status_code == 201
    assert response.json()["user"]["is_approved"] is False
    assert response.json()["user"]["company_name"] == "Acme"


def test_register_validation_errors_are_field_level(client):
    response = client.post(
        "/api/auth/register",
        json=register_payload(email="not-an-email", password="weak", confirmPassword="other"),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation error"
    assert set(body["details"]) >= {"email", "password", "confirm_password"}


def test_register_employer_requires_company_name(client):
    response = client.post("/api/auth/register", json=register_payload(role="employer"))

    assert response.status_code == 400
    assert "company_name" in response.json()["details"]


def test_register_cannot_self_assign_admin(client):
    response = client.post("/api/auth/register", json=register_payload(role="admin"))

    assert response.status_code == 400
    assert "role" in response.json()["details"]


def test_duplicate_email_in_any_case_conflicts(db, mailer, client):
    client.post("/api/auth/register", json=register_payload())

    response = client.post(
        "/api/auth/register",
        json=register_payload(username="other", email="A@X.COM"),
    )

    assert response.status_code == 409
    assert db.query(User).filter(User.email == "a@x.com").count() == 1


def test_duplicate_username_conflicts(db, mailer):
    make_user(db, mailer, username="ada", email="a@x.com")

    with pytest.raises(ConflictError):
        make_user(db, mailer, username="ADA", email="other@x.com")


def test_missing_body_fields_use_validation_shape(client):
    response = client.post("/api/auth/register", json={"email": "a@x.com"})

    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"
    assert "password" in response.json()["details"]


# ============== Login ==============


def test_wrong_password_and_unknown_email_fail_identically(db, mailer, client):
    make_user(db, mailer, email="a@x.com")

    wrong_password = client.post("/api/auth/login", json={"email": "a@x.com", "password": "Wr0ng!pass"})
    unknown_email = client.post("/api/auth/login", json={"email": "nobody@x.com", "password": PASSWORD})

    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["error"] == accounts.INVALID_CREDENTIALS


def test_unverified_user_cannot_login(db, mailer, client):
    make_user(db, mailer, email="a@x.com", verified=False)

    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})

    assert response.status_code == 401
    assert response.json()["error"] == accounts.UNVERIFIED


def test_login_records_login_log_and_last_login(db, mailer, client):
    user = make_user(db, mailer, email="a@x.com")

    response = client.post(
        "/api/auth/login",
        json={"email": "A@x.com", "password": PASSWORD},
        headers={"User-Agent": "pytest-agent"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["token"]
    assert body["user"]["id"] == user.id
    assert "hashed_password" not in body["user"]

    db.expire_all()
    logs = db.query(LoginLog).filter(LoginLog.user_id == user.id).all()
    assert len(logs) == 1
    assert logs[0].user_agent == "pytest-agent"
    assert db.get(User, user.id).last_login is not None


def test_disabled_user_cannot_login(db, mailer, client):
    user = make_user(db, mailer, email="a@x.com")
    user.is_active = False
    db.commit()

    response = client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD})

    assert response.status_code == 401
    assert response.json()["error"] == accounts.DISABLED


# ============== Session tokens ==============


def test_profile_requires_token(client):
    response = client.get("/api/profile")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_profile_rejects_invalid_and_expired_tokens(db, mailer, client):
    user = make_user(db, mailer, email="a@x.com")
    expired = create_access_token(user.id, user.role, expires_delta=timedelta(seconds=-1))

    assert client.get("/api/profile", headers=auth_header("garbage")).status_code == 401
    assert client.get("/api/profile", headers=auth_header(expired)).status_code == 401


def test_token_with_stale_role_is_rejected(db, mailer, client):
    user = make_user(db, mailer, email="a@x.com")
    token = create_access_token(user.id, "admin")

    assert client.get("/api/profile", headers=auth_header(token)).status_code == 401


def test_logout_revokes_token(db, mailer, client):
    make_user(db, mailer, email="a@x.com")
    token = login(client, "a@x.com")

    assert client.get("/api/profile", headers=auth_header(token)).status_code == 200
    assert client.post("/api/auth/logout", headers=auth_header(token)).status_code == 200

    response = client.get("/api/profile", headers=auth_header(token))
    assert response.status_code == 401
    assert response.json()["error"] == "Token has been revoked"


# ============== Email verification ==============


def test_verify_email_redirects_and_is_single_use(db, mailer, client):
    make_user(db, mailer, email="a@x.com", verified=False)
    token = mailer.verification_tokens["a@x.com"]

    first = client.get("/api/auth/verify-email", params={"token": token}, follow_redirects=False)
    assert first.status_code == 302
    assert first.headers["location"] == f"{settings.FRONTEND_URL}/login?verified=true"

    second = client.get("/api/auth/verify-email", params={"token": token}, follow_redirects=False)
    assert second.status_code == 302
    location = urlparse(second.headers["location"])
    assert location.path == "/login"
    assert "error" in parse_qs(location.query)

    assert login(client, "a@x.com")


def test_expired_verification_token_is_rejected(db, mailer):
    user = make_user(db, mailer, email="a@x.com", verified=False)
    token = mailer.verification_tokens["a@x.com"]
    user.verification_token_expires = utcnow() - timedelta(seconds=1)
    db.commit()

    with pytest.raises(AuthError):
        accounts.verify_email(db, token)

    db.refresh(user)
    assert user.email_verified is False


def test_verification_token_consumed_once_across_sessions(db, mailer):
    user_id = make_user(db, mailer, email="a@x.com", verified=False).id
    token = mailer.verification_tokens["a@x.com"]
    first, second = SessionLocal(), SessionLocal()
    try:
        assert first.get(User, user_id).email_verified is False
        assert second.get(User, user_id).email_verified is False

        accounts.verify_email(first, token)
        with pytest.raises(AuthError):
            accounts.verify_email(second, token)
    finally:
        first.close()
        second.close()

    db.expire_all()
    user = db.get(User, user_id)
    assert user.email_verified is True
    assert user.verification_token_hash is None


def test_missing_verification_token_redirects_with_error(client):
    response = client.get("/api/auth/verify-email", follow_redirects=False)

    assert response.status_code == 302
    assert "error=" in response.headers["location"]


def test_resend_verification_replaces_token(db, mailer, client):
    make_user(db, mailer, email="a@x.com", verified=False)
    old_token = mailer.verification_tokens["a@x.com"]

    response = client.post("/api/auth/resend-verification", json={"email": "a@x.com"})
    assert response.status_code == 200

    new_token = mailer.verification_tokens["a@x.com"]
    assert new_token != old_token
    with pytest.raises(AuthError):
        accounts.verify_email(db, old_token)
    accounts.verify_email(db, new_token)


# ============== Password reset ==============


def test_forgot_password_does_not_reveal_accounts(db, mailer, client):
    make_user(db, mailer, email="a@x.com")

    known = client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@x.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert known.json()["resetLink"] is None
    assert "nobody@x.com" not in mailer.reset_tokens


def test_forgot_password_exposes_link_when_enabled(db, mailer, client, monkeypatch):
    make_user(db, mailer, email="a@x.com")
    monkeypatch.setattr(settings, "EXPOSE_RESET_LINK", True)

    response = client.post("/api/auth/forgot-password", json={"email": "a@x.com"})

    token = mailer.reset_tokens["a@x.com"]
    assert response.json()["resetLink"] == f"{settings.FRONTEND_URL}/reset-password?token={token}"


def test_reset_password_flow(db, mailer, client):
    make_user(db, mailer, email="a@x.com")
    client.post("/api/auth/forgot-password", json={"email": "a@x.com"})
    token = mailer.reset_tokens["a@x.com"]

    response = client.post(
        "/api/auth/reset-password",
        json={"token": token, "newPassword": "N3w!password", "confirmPassword": "N3w!password"},
    )
    assert response.status_code == 200

    assert client.post("/api/auth/login", json={"email": "a@x.com", "password": PASSWORD}).status_code == 401
    assert login(client, "a@x.com", "N3w!password")

    # Single use
    again = client.post(
        "/api/auth/reset-password",
        json={"token": token, "newPassword": "An0ther!pass", "confirmPassword": "An0ther!pass"},
    )
    assert again.status_code == 400
    assert again.json() == {"error": "Password reset token is invalid or has expired"}


def test_reset_password_mismatch_is_validation_error(db, mailer):
    make_user(db, mailer, email="a@x.com")
    token = accounts.request_password_reset(db, "a@x.com", mailer)

    with pytest.raises(ValidationError) as exc_info:
        accounts.reset_password(db, token, "N3w!password", "N3w!passwordX")

    assert "confirm_password" in exc_info.value.details


def test_expired_reset_token_is_rejected(db, mailer):
    user = make_user(db, mailer, email="a@x.com")
    token = accounts.request_password_reset(db, "a@x.com", mailer)
    user.reset_token_expires = utcnow() - timedelta(seconds=1)
    db.commit()

    with pytest.raises(AuthError):
        accounts.reset_password(db, token, "N3w!password", "N3w!password")


def test_expired_reset_token_over_http_is_bad_request(db, mailer, client):
    user = make_user(db, mailer, email="a@x.com")
    token = accounts.request_password_reset(db, "a@x.com", mailer)
    user.reset_token_expires = utcnow() - timedelta(seconds=1)
    db.commit()

    response = client.post(
        "/api/auth/reset-password",
        json={"token": token, "newPassword": "N3w!password", "confirmPassword": "N3w!password"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Password reset token is invalid or has expired"}


def test_reset_token_consumed_once_across_sessions(db, mailer):
    user_id = make_user(db, mailer, email="a@x.com").id
    token = accounts.request_password_reset(db, "a@x.com", mailer)
    first, second = SessionLocal(), SessionLocal()
    try:
        assert first.get(User, user_id).reset_token_hash == hash_token(token)
        assert second.get(User, user_id).reset_token_hash == hash_token(token)

        accounts.reset_password(first, token, "N3w!password", "N3w!password")
        with pytest.raises(AuthError):
            accounts.reset_password(second, token, "An0ther!pass", "An0ther!pass")
    finally:
        first.close()
        second.close()

    db.expire_all()
    user = db.get(User, user_id)
    assert user.reset_token_hash is None
    assert verify_password("N3w!password", user.hashed_password)
    assert not verify_password("An0ther!pass", user.hashed_password)


def test_register_then_login_service_level(db, mailer):
    data = UserRegister(
        username="grace",
        email="Grace@X.com",
        password=PASSWORD,
        confirm_password=PASSWORD,
    )
    user, token = accounts.register(db, data, mailer)

    assert user.email == "grace@x.com"
    with pytest.raises(AuthError):
        accounts.login(db, "grace@x.com", PASSWORD)

    accounts.verify_email(db, token)
    logged_in, session_token = accounts.login(db, "grace@x.com", PASSWORD, ip="127.0.0.1")
    assert logged_in.id == user.id
    assert accounts.authenticate_token(db, session_token)[0].id == user.id


# ============== Profile ==============


def test_profile_update_and_password_change(db, mailer, client):
    make_seeker(db, mailer, email="a@x.com")
    token = login(client, "a@x.com")

    response = client.patch(
        "/api/profile",
        json={"legalName": "Ada King", "codingLanguages": ["Python"], "city": "London"},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["legal_name"] == "Ada King"
    assert user["coding_languages"] == ["Python"]
    assert len(user["login_logs"]) == 1

    response = client.post(
        "/api/profile/password",
        json={"currentPassword": PASSWORD, "newPassword": "N3w!password", "confirmPassword": "N3w!password"},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    assert login(client, "a@x.com", "N3w!password")


def test_profile_update_cannot_change_role(db, mailer, client):
    make_seeker(db, mailer, email="a@x.com")
    token = login(client, "a@x.com")

    response = client.patch("/api/profile", json={"role": "admin"}, headers=auth_header(token))

    assert response.status_code == 400
    db.expire_all()
    assert db.query(User).filter(User.email == "a@x.com").one().role == "job_seeker"


def test_self_delete(db, mailer, client):
    make_seeker(db, mailer, email="a@x.com")
    token = login(client, "a@x.com")

    assert client.delete("/api/profile", headers=auth_header(token)).status_code == 200
    assert client.get("/api/profile", headers=auth_header(token)).status_code == 401


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["timestamp"]
