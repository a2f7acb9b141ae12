"""
=============================================================================
EXTERNAL COLLABORATORS
=============================================================================

The dispatch layer talks to two things it does not implement itself:

    ┌──────────────────┐        ┌──────────────────────────────────────┐
    │  session         │───────►│ UserStore        find_by_email       │
    │  handlers        │        │                  find_by_id          │
    │  (/signup,       │        │                  insert              │
    │   /signin, /me)  │        ├──────────────────────────────────────┤
    │                  │───────►│ PasswordHasher   hash                │
    │                  │        │                  verify              │
    └──────────────────┘        └──────────────────────────────────────┘

Both are typing.Protocol classes: anything with the right methods fits,
no inheritance needed. A document-database store and a bcrypt/argon2
hasher are supplied by the embedding program. InMemoryUserStore is
provided for local runs and tests.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol
import threading
import uuid

from .errors import DuplicateEmail


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """
    A stored user. password_hash never leaves the server; use to_public()
    for anything sent to a client.
    """

    id: str
    email: str
    password_hash: str
    username: str = ""
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "created_at": self.created_at,
        }


class UserStore(Protocol):
    """Persistence for users."""

    def find_by_email(self, email: str) -> Optional[User]:
        ...

    def find_by_id(self, user_id: str) -> Optional[User]:
        ...

    def insert(self, user: User) -> None:
        """Store a new user. Raises DuplicateEmail if the email is taken."""
        ...


class PasswordHasher(Protocol):
    """One-way password hashing."""

    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, password_hash: str) -> bool:
        ...


def new_user_id() -> str:
    """24 hex characters, the same shape as a document-database object id."""
    return uuid.uuid4().hex[:24]


class InMemoryUserStore:
    """
    Thread-safe dict-backed UserStore.

    Handlers run on worker threads, so every access takes the lock.
    Contents vanish when the process exits.
    """

    def __init__(self):
        self._by_id: Dict[str, User] = {}
        self._id_by_email: Dict[str, str] = {}
        self._lock = threading.Lock()

    def find_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            user_id = self._id_by_email.get(email)
            return self._by_id.get(user_id) if user_id else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        with self._lock:
            return self._by_id.get(user_id)

    def insert(self, user: User) -> None:
        with self._lock:
            if user.email in self._id_by_email:
                raise DuplicateEmail(f"Email already exists: {user.email}")
            self._by_id[user.id] = user
            self._id_by_email[user.email] = user.id

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)
