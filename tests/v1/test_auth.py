# tests/v1/test_auth.py
"""Tests for the account actions and their encoded redirects."""

import json
from urllib.parse import parse_qs, urlsplit

from fastapi import status
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.orm import Session

from little_stories.core.security import code_challenge_for
from little_stories.models import User
from little_stories.repositories.user_repo import UserRepository

NEW_USER_ID = "7d1f4c3e-9b0a-4e5f-8a6b-1c2d3e4f5a6b"
VERIFIER_COOKIE = "ls-access-token-code-verifier"


def _redirect(response) -> tuple[str, dict[str, list[str]]]:
    assert response.status_code == status.HTTP_303_SEE_OTHER
    parts = urlsplit(response.headers["location"])
    return parts.path, parse_qs(parts.query)


class TestSignUp:
    """Sign up creates the provider account and the profile row."""

    def test_sign_up_success(self, client: TestClient, db_session: Session, fake_provider) -> None:
        fake_provider.respond("POST", "/auth/v1/signup", json={"id": NEW_USER_ID, "email": "a@b.test"})

        response = client.post(
            "/api/v1/auth/sign-up",
            data={
                "email": "a@b.test",
                "password": "secret123",
                "username": "new_writer",
                "is_author": "on",
            },
            follow_redirects=False,
        )

        path, query = _redirect(response)
        assert response.headers["location"].startswith("http://site.test/sign-up?success=")
        assert path == "/sign-up"
        assert query["success"] == [
            "Thanks for signing up! Please check your email for a verification link."
        ]

        sent = json.loads(fake_provider.last("/auth/v1/signup").content)
        assert sent["data"] == {"username": "new_writer", "is_author": True, "is_reader": False}
        verifier = client.cookies.get(VERIFIER_COOKIE)
        assert verifier
        assert sent["code_challenge"] == code_challenge_for(verifier)
        assert sent["code_challenge_method"] == "s256"

        user = db_session.execute(select(User).where(User.username == "new_writer")).scalar_one()
        assert user.user_id == NEW_USER_ID
        assert user.is_author is True

    def test_missing_fields(self, client: TestClient, fake_provider) -> None:
        response = client.post(
            "/api/v1/auth/sign-up",
            data={"email": "a@b.test", "password": "secret123"},
            follow_redirects=False,
        )
        _, query = _redirect(response)
        assert query["error"] == ["Username, email, and password are required."]
        assert fake_provider.requests == []

    def test_short_password(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/auth/sign-up",
            data={"email": "a@b.test", "password": "123", "username": "writer", "is_reader": "on"},
            follow_redirects=False,
        )
        _, query = _redirect(response)
        assert query["error"] == ["Password must be at least 6 characters long."]

    def test_role_required(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/auth/sign-up",
            data={"email": "a@b.test", "password": "secret123", "username": "writer"},
            follow_redirects=False,
        )
        _, query = _redirect(response)
        assert query["error"] == ["Please select at least one role (Author or Reader)."]

    def test_username_taken(self, client: TestClient, author: User, fake_provider) -> None:
        response = client.post(
            "/api/v1/auth/sign-up",
            data={"email": "a@b.test", "password": "secret123", "username": author.username, "is_reader": "on"},
            follow_redirects=False,
        )
        _, query = _redirect(response)
        assert query["error"] == ["This username is already taken. Please choose another."]
        assert fake_provider.requests == []

    def test_already_registered(self, client: TestClient, fake_provider) -> None:
        fake_provider.respond(
            "POST", "/auth/v1/signup", status_code=422, json={"msg": "User already registered"}
        )
        response = client.post(
            "/api/v1/auth/sign-up",
            data={"email": "a@b.test", "password": "secret123", "username": "writer", "is_reader": "on"},
            follow_redirects=False,
        )
        _, query = _redirect(response)
        assert query["error"] == ["This email address is already registered. Please try signing in."]

    def test_confirmed_address_gets_no_profile(
        self, client: TestClient, db_session: Session, fake_provider
    ) -> None:
        fake_provider.respond(
            "POST",
            "/auth/v1/signup",
            json={"id": NEW_USER_ID, "email": "a@b.test", "identities": []},
        )
        response = client.post(
            "/api/v1/auth/sign-up",
            data={"email": "a@b.test", "password": "secret123", "username": "writer", "is_reader": "on"},
            follow_redirects=False,
        )

        _, query = _redirect(response)
        assert query["error"] == ["This email address is already registered. Please try signing in."]
        assert db_session.execute(select(User).where(User.username == "writer")).first() is None

    def test_profile_insert_failure_reported(
        self, client: TestClient, author: User, fake_provider, mocker
    ) -> None:
        # Another sign-up takes the name between the check and the insert.
        mocker.patch.object(UserRepository, "get_by_username", return_value=None)
        fake_provider.respond("POST", "/auth/v1/signup", json={"id": NEW_USER_ID, "email": "a@b.test"})

        response = client.post(
            "/api/v1/auth/sign-up",
            data={"email": "a@b.test", "password": "secret123", "username": author.username, "is_reader": "on"},
            follow_redirects=False,
        )

        path, query = _redirect(response)
        assert path == "/sign-up"
        assert query["error"] == [
            "Your account was created but your profile could not be saved. Please contact support."
        ]
        assert VERIFIER_COOKIE not in response.headers.get("set-cookie", "")


class TestSignIn:
    """Sign in stores the provider token in the session cookie."""

    def test_sign_in_sets_cookie(self, client: TestClient, fake_provider) -> None:
        fake_provider.respond(
            "POST",
            "/auth/v1/token",
            json={"access_token": "provider-token", "expires_in": 3600, "user": {"id": NEW_USER_ID}},
        )

        response = client.post(
            "/api/v1/auth/sign-in",
            data={"email": "a@b.test", "password": "secret123"},
            follow_redirects=False,
        )

        assert response.status_code == status.HTTP_303_SEE_OTHER
        assert response.headers["location"] == "http://site.test/"
        cookie = response.headers["set-cookie"]
        assert cookie.startswith("ls-access-token=provider-token")
        assert "httponly" in cookie.lower()
        assert fake_provider.last("/auth/v1/token").url.params["grant_type"] == "password"

    def test_bad_credentials(self, client: TestClient, fake_provider) -> None:
        fake_provider.respond(
            "POST",
            "/auth/v1/token",
            status_code=400,
            json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
        )
        response = client.post(
            "/api/v1/auth/sign-in",
            data={"email": "a@b.test", "password": "wrong-pass"},
            follow_redirects=False,
        )
        path, query = _redirect(response)
        assert path == "/sign-in"
        assert query["error"] == ["Incorrect email or password. Please try again."]

    def test_unconfirmed_email(self, client: TestClient, fake_provider) -> None:
        fake_provider.respond("POST", "/auth/v1/token", status_code=400, json={"msg": "Email not confirmed"})
        response = client.post(
            "/api/v1/auth/sign-in",
            data={"email": "a@b.test", "password": "secret123"},
            follow_redirects=False,
        )
        _, query = _redirect(response)
        assert query["error"][0].startswith("Please verify your email address")


class TestPasswordRecovery:
    """Forgot and reset password flows."""

    def test_forgot_password_requires_email(self, client: TestClient) -> None:
        response = client.post("/api/v1/auth/forgot-password", data={}, follow_redirects=False)
        path, query = _redirect(response)
        assert path == "/forgot-password"
        assert query["error"] == ["Email is required"]

    def test_forgot_password_sends_callback_link(self, client: TestClient, fake_provider) -> None:
        response = client.post(
            "/api/v1/auth/forgot-password", data={"email": "a@b.test"}, follow_redirects=False
        )
        _, query = _redirect(response)
        assert query["success"] == [
            "If an account exists for this email, a password reset link has been sent."
        ]
        redirect_to = fake_provider.last("/auth/v1/recover").url.params["redirect_to"]
        assert redirect_to.endswith("/api/v1/auth/callback?next=/reset-password")

    def test_recovery_link_flow_completes(self, client: TestClient, fake_provider) -> None:
        client.post("/api/v1/auth/forgot-password", data={"email": "a@b.test"}, follow_redirects=False)
        verifier = client.cookies.get(VERIFIER_COOKIE)
        recover = json.loads(fake_provider.last("/auth/v1/recover").content)
        assert recover["code_challenge"] == code_challenge_for(verifier)
        assert recover["code_challenge_method"] == "s256"

        fake_provider.respond(
            "POST", "/auth/v1/token", json={"access_token": "recovery-session", "user": {"id": NEW_USER_ID}}
        )
        callback = client.get(
            "/api/v1/auth/callback",
            params={"code": "emailed-code", "next": "/reset-password"},
            follow_redirects=False,
        )
        assert callback.headers["location"] == "http://site.test/reset-password"
        exchange = json.loads(fake_provider.last("/auth/v1/token").content)
        assert exchange == {"auth_code": "emailed-code", "code_verifier": verifier}
        assert client.cookies.get(VERIFIER_COOKIE) is None

        reset = client.post(
            "/api/v1/auth/reset-password",
            data={"password": "secret123", "confirmPassword": "secret123"},
            follow_redirects=False,
        )
        _, query = _redirect(reset)
        assert query["success"] == ["Password updated successfully. Please sign in."]
        assert fake_provider.last("/auth/v1/user").headers["Authorization"] == "Bearer recovery-session"

    def test_forgot_password_provider_failure(self, client: TestClient, fake_provider) -> None:
        fake_provider.respond("POST", "/auth/v1/recover", status_code=500, json={"msg": "smtp down"})
        response = client.post(
            "/api/v1/auth/forgot-password", data={"email": "a@b.test"}, follow_redirects=False
        )
        _, query = _redirect(response)
        assert query["error"] == [
            "Could not send password reset email. Please check the address and try again."
        ]

    def test_reset_password_mismatch(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/auth/reset-password",
            data={"password": "secret123", "confirmPassword": "secret124"},
            follow_redirects=False,
        )
        path, query = _redirect(response)
        assert path == "/reset-password"
        assert query["error"] == ["Passwords do not match"]

    def test_reset_password_success(self, client: TestClient, fake_provider) -> None:
        response = client.post(
            "/api/v1/auth/reset-password",
            data={"password": "secret123", "confirmPassword": "secret123"},
            headers={"Authorization": "Bearer recovery-token"},
            follow_redirects=False,
        )
        path, query = _redirect(response)
        assert path == "/sign-in"
        assert query["success"] == ["Password updated successfully. Please sign in."]
        sent = fake_provider.last("/auth/v1/user")
        assert sent.method == "PUT"
        assert sent.headers["Authorization"] == "Bearer recovery-token"

    def test_reset_password_without_session(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/auth/reset-password",
            data={"password": "secret123", "confirmPassword": "secret123"},
            follow_redirects=False,
        )
        _, query = _redirect(response)
        assert query["error"] == ["Your reset link has expired. Please request a new one."]


class TestSignOutAndCallback:
    """Sign out and the email-link callback."""

    def test_sign_out_clears_cookie(self, client: TestClient, fake_provider) -> None:
        client.cookies.set("ls-access-token", "provider-token")
        response = client.post("/api/v1/auth/sign-out", follow_redirects=False)

        assert response.status_code == status.HTTP_303_SEE_OTHER
        assert response.headers["location"] == "http://site.test/"
        assert 'ls-access-token=""' in response.headers["set-cookie"]
        assert fake_provider.last("/auth/v1/logout").headers["Authorization"] == "Bearer provider-token"

    def test_sign_out_survives_provider_failure(self, client: TestClient, fake_provider) -> None:
        fake_provider.respond("POST", "/auth/v1/logout", status_code=500, json={"msg": "boom"})
        client.cookies.set("ls-access-token", "provider-token")
        response = client.post("/api/v1/auth/sign-out", follow_redirects=False)
        assert response.status_code == status.HTTP_303_SEE_OTHER

    def test_callback_without_code(self, client: TestClient) -> None:
        response = client.get("/api/v1/auth/callback", follow_redirects=False)
        assert response.headers["location"] == "http://site.test/sign-in?error=invalid_callback"

    def test_callback_exchange_failure(self, client: TestClient, fake_provider) -> None:
        fake_provider.respond("POST", "/auth/v1/token", status_code=400, json={"msg": "bad code"})
        client.cookies.set(VERIFIER_COOKIE, "stale-verifier")
        response = client.get("/api/v1/auth/callback", params={"code": "abc"}, follow_redirects=False)
        assert response.headers["location"] == "http://site.test/sign-in?error=auth_callback_failed"
        assert json.loads(fake_provider.last("/auth/v1/token").content)["code_verifier"] == "stale-verifier"
        assert f'{VERIFIER_COOKIE}=""' in response.headers["set-cookie"]

    def test_callback_follows_next(self, client: TestClient, fake_provider) -> None:
        fake_provider.respond("POST", "/auth/v1/token", json={"access_token": "fresh", "user": {"id": NEW_USER_ID}})
        response = client.get(
            "/api/v1/auth/callback",
            params={"code": "abc", "next": "/reset-password"},
            follow_redirects=False,
        )
        assert response.headers["location"] == "http://site.test/reset-password"
        assert "ls-access-token=fresh" in response.headers["set-cookie"]
        assert fake_provider.last("/auth/v1/token").url.params["grant_type"] == "pkce"

    def test_callback_rejects_offsite_next(self, client: TestClient, fake_provider) -> None:
        fake_provider.respond("POST", "/auth/v1/token", json={"access_token": "fresh", "user": {"id": NEW_USER_ID}})
        response = client.get(
            "/api/v1/auth/callback",
            params={"code": "abc", "next": "//evil.test"},
            follow_redirects=False,
        )
        assert response.headers["location"] == "http://site.test/"
