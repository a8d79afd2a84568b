# tests/conftest.py
import os
import sys
import asyncio
import json
from datetime import datetime, timezone
from http.cookies import SimpleCookie
from urllib.parse import urlencode

import pytest

sys.path.append(os.path.abspath("."))

from notifier.application import create_app
from notifier.core import Settings
from notifier.database import Database
from notifier.tokens import TokenService

TEST_SECRET = "test-signing-secret"


class FrozenClock:
    """Controllable clock for the token service."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


@pytest.fixture()
def settings():
    return Settings(
        JWT_SECRET=TEST_SECRET,
        DATABASE_URL="sqlite://",
        ENVIRONMENT="test",
        LOG_LEVEL="WARNING",
    )


# DB (SQLite in-memory for tests), fresh per test
@pytest.fixture()
def database():
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture()
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock():
    return FrozenClock(datetime.now(timezone.utc))


@pytest.fixture()
def tokens(clock):
    return TokenService(TEST_SECRET, clock=clock)


@pytest.fixture()
def app(settings, database, tokens):
    return create_app(settings=settings, database=database, tokens=tokens)


# One event loop for the WHOLE pytest session
@pytest.fixture(scope="session")
def session_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


# Simple ASGI response/client
class SimpleResponse:
    def __init__(
        self, status_code: int, body: bytes, headers: list[tuple[bytes, bytes]]
    ):
        self.status_code = status_code
        self._body = body
        self.raw_headers = [(k.decode(), v.decode()) for k, v in headers]
        self.headers = {k: v for k, v in self.raw_headers}

    @property
    def content(self) -> bytes:
        return self._body

    @property
    def set_cookies(self) -> list[str]:
        return [v for k, v in self.raw_headers if k.lower() == "set-cookie"]

    def json(self):
        return json.loads(self._body.decode())


class SimpleClient:
    """
    Important:
    - uses ONE shared session loop (passed from fixture)
    - does NOT call asyncio.run()
    - does NOT close the loop
    - keeps cookies set by responses, like a browser would
    """

    def __init__(self, app, loop):
        self.app = app
        self.loop = loop
        self.cookies: dict[str, str] = {}

    def close(self):
        # do not close the loop here (session fixture closes it)
        pass

    def _store_cookies(self, response: SimpleResponse):
        for header in response.set_cookies:
            jar = SimpleCookie()
            jar.load(header)
            for name, morsel in jar.items():
                if morsel["max-age"] == "0" or morsel.value in ("", '""'):
                    self.cookies.pop(name, None)
                else:
                    self.cookies[name] = morsel.value

    def request(
        self,
        method: str,
        path: str,
        json_body=None,
        data=None,
        headers=None,
        params=None,
    ):
        headers = dict(headers or {})
        body_bytes = b""

        if json_body is not None:
            body_bytes = json.dumps(json_body).encode()
            headers.setdefault("content-type", "application/json")

        elif data is not None:
            if isinstance(data, dict):
                body_bytes = urlencode(data, doseq=True).encode()
            elif isinstance(data, bytes):
                body_bytes = data
            else:
                body_bytes = str(data).encode()
            headers.setdefault("content-type", "application/x-www-form-urlencoded")

        if self.cookies and "cookie" not in {k.lower() for k in headers}:
            headers["cookie"] = "; ".join(f"{k}={v}" for k, v in self.cookies.items())

        raw_headers = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": method.upper(),
            "scheme": "http",
            "path": path,
            "root_path": "",
            "headers": raw_headers,
            "query_string": urlencode(params or {}, doseq=True).encode(),
            "client": ("testclient", 5000),
            "server": ("testserver", 80),
        }

        async def receive():
            nonlocal body_bytes
            chunk, body_bytes = body_bytes, b""
            return {"type": "http.request", "body": chunk, "more_body": False}

        response_body = bytearray()
        response_status = 500
        response_headers: list[tuple[bytes, bytes]] = []

        async def send(message):
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = message.get("headers", [])
            elif message["type"] == "http.response.body":
                response_body.extend(message.get("body", b""))

        # ensure the loop is the current one
        asyncio.set_event_loop(self.loop)
        self.loop.run_until_complete(self.app(scope, receive, send))
        response = SimpleResponse(
            response_status, bytes(response_body), response_headers
        )
        self._store_cookies(response)
        return response

    def get(self, path: str, headers=None, params=None):
        return self.request("GET", path, headers=headers, params=params)

    def post(self, path: str, json=None, data=None, headers=None, params=None):
        return self.request(
            "POST", path, json_body=json, data=data, headers=headers, params=params
        )

    def put(self, path: str, json=None, data=None, headers=None):
        return self.request("PUT", path, json_body=json, data=data, headers=headers)

    def delete(self, path: str, headers=None):
        return self.request("DELETE", path, headers=headers)


@pytest.fixture()
def client(app, session_loop):
    c = SimpleClient(app, loop=session_loop)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture()
def make_client(app, session_loop):
    """Factory for extra clients with their own cookie jars."""

    def factory():
        return SimpleClient(app, loop=session_loop)

    return factory

