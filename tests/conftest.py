# tests/conftest.py
from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-key-for-little-stories")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SITE_URL", "http://site.test")

from little_stories.core.security import generate_claim_token
from little_stories.core.settings import settings
from little_stories.db.session import Base
from little_stories.db.session import get_db as app_get_session
from little_stories.main import app as fastapi_app
from little_stories.models import Story, User
from little_stories.services.auth_provider import (
    AuthProviderClient,
    AuthProviderConfig,
    get_auth_provider,
)

TEST_DB_URL = "sqlite://"

LOREM = (
    "Once upon a time a small lighthouse kept watch over a quiet bay, "
    "and every night it told the boats a different story."
)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # Services commit for real; every test starts from empty tables instead.
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSession()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


class FakeAuthProvider:
    """Records requests to the hosted auth API and replays canned responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.responses: dict[tuple[str, str], httpx.Response] = {}

    def respond(self, method: str, path: str, status_code: int = 200, json: Any = None) -> None:
        self.responses[(method, path)] = httpx.Response(status_code, json=json if json is not None else {})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(200, json={})
        return response

    def last(self, path: str) -> httpx.Request:
        matching = [r for r in self.requests if r.url.path == path]
        assert matching, f"no request sent to {path}"
        return matching[-1]


@pytest.fixture()
def fake_provider() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture()
def provider_client(fake_provider: FakeAuthProvider) -> AuthProviderClient:
    config = AuthProviderConfig(
        base_url="http://auth.test",
        anon_key="anon-key",
        timeout_seconds=5.0,
    )
    return AuthProviderClient(config, transport=httpx.MockTransport(fake_provider.handler))


@pytest.fixture(autouse=True)
def override_auth_provider(app: FastAPI, provider_client: AuthProviderClient) -> Iterator[None]:
    app.dependency_overrides[get_auth_provider] = lambda: provider_client
    try:
        yield
    finally:
        app.dependency_overrides.pop(get_auth_provider, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def mint_token(user_id: str, *, email: str | None = None, expires_in: int = 3600) -> str:
    """Sign an access token the way the auth provider does."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.jwt_algorithm)


def bearer(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {mint_token(user.user_id)}"}


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    def _make_user(
        username: str,
        *,
        is_author: bool = True,
        is_reader: bool = True,
        bio: str | None = None,
    ) -> User:
        user = User(
            user_id=str(uuid.uuid4()),
            username=username,
            is_author=is_author,
            is_reader=is_reader,
            bio=bio,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def author(make_user: Callable[..., User]) -> User:
    return make_user("quill_writer", bio="Writes at dawn.")


@pytest.fixture()
def other_author(make_user: Callable[..., User]) -> User:
    return make_user("ink_spiller")


@pytest.fixture()
def reader(make_user: Callable[..., User]) -> User:
    return make_user("page_turner", is_author=False)


@pytest.fixture()
def author_headers(author: User) -> dict[str, str]:
    return bearer(author)


@pytest.fixture()
def other_author_headers(other_author: User) -> dict[str, str]:
    return bearer(other_author)


@pytest.fixture()
def reader_headers(reader: User) -> dict[str, str]:
    return bearer(reader)


@pytest.fixture()
def make_story(db_session: Session) -> Callable[..., Story]:
    def _make_story(
        owner: User | None,
        *,
        title: str = "The Lighthouse",
        content: str = LOREM,
        genre: list[str] | None = None,
        is_public: bool = True,
        created_at: datetime | None = None,
    ) -> Story:
        story = Story(
            user_id=owner.user_id if owner else None,
            title=title,
            content=content,
            genre=genre or ["Fantasy"],
            is_public=is_public,
            claim_token=None if owner else generate_claim_token(),
        )
        if created_at is not None:
            story.created_at = created_at
            story.updated_at = created_at
        db_session.add(story)
        db_session.commit()
        return story

    return _make_story


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    """Build Authorization headers for any user."""
    return bearer


@pytest.fixture()
def token_for() -> Callable[..., str]:
    """Mint raw access tokens, e.g. for session cookies."""
    return mint_token


@pytest.fixture()
def story_text() -> str:
    """Story body comfortably above the minimum length."""
    return LOREM
