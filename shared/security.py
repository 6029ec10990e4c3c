"""HTTP Basic authentication shared by the config server and the config client.

Two fixed in-memory accounts:
- `config-user` with role USER (read configuration)
- `admin` with roles ADMIN and USER

Passwords default to `config-pass` / `admin-pass` and can be overridden with
`CONFIG_USER_PASSWORD` / `CONFIG_ADMIN_PASSWORD`. Only bcrypt hashes are kept.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

import bcrypt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from starlette import status

logger = logging.getLogger(__name__)

ROLE_USER = "USER"
ROLE_ADMIN = "ADMIN"

BCRYPT_ROUNDS = 10

http_basic = HTTPBasic(auto_error=False)


@dataclass(frozen=True)
class User:
    username: str
    password_hash: bytes
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles


def hash_password(password: str) -> bytes:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))


class InMemoryUserStore:
    def __init__(self, users: list[User]) -> None:
        self._users = {user.username: user for user in users}
        # Compared against for unknown usernames so both paths cost one bcrypt check.
        self._dummy_hash = hash_password("unknown-user")

    def authenticate(self, username: str, password: str) -> Optional[User]:
        user = self._users.get(username)
        password_hash = user.password_hash if user is not None else self._dummy_hash
        try:
            matches = bcrypt.checkpw(password.encode("utf-8"), password_hash)
        except ValueError:
            logger.warning("Malformed password hash for user %s", username)
            return None
        if user is None or not matches:
            return None
        return user


@lru_cache(maxsize=1)
def get_user_store() -> InMemoryUserStore:
    """FastAPI dependency provider for the fixed account store."""

    return InMemoryUserStore(
        [
            User(
                username="config-user",
                password_hash=hash_password(os.getenv("CONFIG_USER_PASSWORD") or "config-pass"),
                roles=frozenset({ROLE_USER}),
            ),
            User(
                username="admin",
                password_hash=hash_password(os.getenv("CONFIG_ADMIN_PASSWORD") or "admin-pass"),
                roles=frozenset({ROLE_ADMIN, ROLE_USER}),
            ),
        ]
    )


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required",
        headers={"WWW-Authenticate": "Basic"},
    )


def get_current_user(
    credentials: Optional[HTTPBasicCredentials] = Depends(http_basic),
    store: InMemoryUserStore = Depends(get_user_store),
) -> User:
    if credentials is None:
        raise _unauthorized()

    user = store.authenticate(credentials.username, credentials.password)
    if user is None:
        logger.warning("Rejected credentials for user %s", credentials.username)
        raise _unauthorized()
    return user


def require_role(role: str) -> Callable[..., User]:
    """Build a dependency that authenticates the caller and checks `role`."""

    def _dependency(user: User = Depends(get_current_user)) -> User:
        if not user.has_role(role):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user

    return _dependency
