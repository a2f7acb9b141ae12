"""
pytest configuration and fixtures.
"""

import socket
import time
from typing import Dict, Generator, Optional

import jwt
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from grocerme.app import create_app
from grocerme.collaborators import InMemoryUserStore
from grocerme.config import AppConfig
from grocerme.http.request import HTTPRequest
from grocerme.middleware.auth import AuthGate
from grocerme.security.tokens import TokenService
from grocerme.server import GrocerServer


TEST_SECRET = "test-secret-that-is-at-least-32-bytes-long"


def _make_request(
    method: str = "GET",
    path: str = "/",
    headers: Optional[Dict[str, str]] = None,
    body: bytes = b"",
) -> HTTPRequest:
    """Build an HTTPRequest directly, header names lowercased like the parser does."""
    return HTTPRequest(
        method=method,
        path=path,
        headers={k.lower(): v for k, v in (headers or {}).items()},
        body=body,
        client_address=("127.0.0.1", 54321),
    )


def _mint(payload: dict, secret: str = TEST_SECRET, algorithm: str = "HS256", **kwargs) -> str:
    """Sign an arbitrary payload with PyJWT, bypassing TokenService checks."""
    return jwt.encode(payload, secret, algorithm=algorithm, **kwargs)


class FakeHasher:
    """Reversible PasswordHasher for tests. Never use outside tests."""

    def hash(self, password: str) -> str:
        return "hashed:" + password

    def verify(self, password: str, password_hash: str) -> bool:
        return password_hash == "hashed:" + password


@pytest.fixture
def secret() -> str:
    return TEST_SECRET


@pytest.fixture
def config(secret: str) -> AppConfig:
    """Default test configuration."""
    return AppConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        max_workers=4,
        timeout=5.0,
        keep_alive_timeout=1.0,
        log_level="WARNING",
        jwt_secret=secret,
    )


@pytest.fixture
def tokens(secret: str) -> TokenService:
    return TokenService(secret)


@pytest.fixture
def gate(tokens: TokenService) -> AuthGate:
    return AuthGate(tokens)


@pytest.fixture
def store() -> InMemoryUserStore:
    return InMemoryUserStore()


@pytest.fixture
def hasher() -> FakeHasher:
    return FakeHasher()


@pytest.fixture
def valid_payload() -> dict:
    now = int(time.time())
    return {"user_id": "user-123", "iat": now, "exp": now + 3600}


@pytest.fixture
def live_server(config: AppConfig, store, hasher) -> Generator[GrocerServer, None, None]:
    """The full application served on a free port in a background thread."""
    server = GrocerServer(config, create_app(config, store=store, hasher=hasher))
    thread = server.start_in_background()

    yield server

    server.shutdown()
    thread.join(timeout=5.0)


def _send_raw(address, data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes on a fresh connection and read until the server closes it."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def make_request():
    """Factory: make_request(method, path, headers=None, body=b"")."""
    return _make_request


@pytest.fixture
def mint():
    """Factory: mint(payload, secret=TEST_SECRET, algorithm="HS256", **jwt_kwargs)."""
    return _mint


@pytest.fixture
def send_raw():
    """Factory: send_raw(address, data) -> all bytes until the server closes."""
    return _send_raw
