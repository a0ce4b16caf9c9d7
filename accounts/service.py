"""
Purpose: Sign-up / sign-in with a role check on top of an external identity provider.
What it does:

- register: create credentials with the identity provider, then the users row
- login: authenticate, then compare the stored role with the role the user
  picked on the login screen; on mismatch sign out again and raise
  RoleMismatchError
- logout, get_user

The identity provider (credentials) and the user directory (profile rows)
are collaborators behind small protocols. In-memory versions live here for
tests and scripts; the Django ones live in backend/users/.
"""

from __future__ import annotations

import hashlib
import logging
import os
import uuid
from typing import Dict, Optional, Protocol, Tuple

from orders.errors import AuthenticationError, NotFoundError, RoleMismatchError, ValidationError

from .models import User, UserRole

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    def sign_up(self, email: str, password: str) -> str:
        """Returns the new uid."""

    def sign_in(self, email: str, password: str) -> str:
        """Returns the uid; raises AuthenticationError."""

    def sign_out(self) -> None:
        ...


class UserDirectory(Protocol):
    def save(self, user: User) -> User:
        ...

    def get(self, user_id: str) -> Optional[User]:
        ...


class InMemoryIdentityProvider:
    """Identity provider for tests and scripts; not a production credential store."""

    def __init__(self) -> None:
        # email -> (uid, salt, pbkdf2 hash)
        self._accounts: Dict[str, Tuple[str, bytes, bytes]] = {}
        self.current_uid: Optional[str] = None

    @staticmethod
    def _hash(password: str, salt: bytes) -> bytes:
        return hashlib.pbkdf2_hmac("sha256", password.encode(), salt, 100_000)

    def sign_up(self, email: str, password: str) -> str:
        if email in self._accounts:
            raise ValidationError("email_taken", f"An account already exists for {email}")
        uid = str(uuid.uuid4())
        salt = os.urandom(16)
        self._accounts[email] = (uid, salt, self._hash(password, salt))
        self.current_uid = uid
        return uid

    def sign_in(self, email: str, password: str) -> str:
        account = self._accounts.get(email)
        if account is None or self._hash(password, account[1]) != account[2]:
            raise AuthenticationError("Invalid email or password")
        self.current_uid = account[0]
        return account[0]

    def sign_out(self) -> None:
        self.current_uid = None


class InMemoryUserDirectory:
    def __init__(self) -> None:
        self._users: Dict[str, User] = {}

    def save(self, user: User) -> User:
        self._users[user.id] = user
        return user

    def get(self, user_id: str) -> Optional[User]:
        return self._users.get(user_id)


def _role(value) -> UserRole:
    try:
        return UserRole(value)
    except ValueError:
        raise ValidationError("role_invalid", f"Unknown role {value!r}; choose vendor or supplier")


class AccountService:
    def __init__(self, identity: IdentityProvider, directory: UserDirectory):
        self.identity = identity
        self.directory = directory

    def register(self, email: str, password: str, role, name: str) -> User:
        role = _role(role)
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("email_required", "Email is required")
        if not (name or "").strip():
            raise ValidationError("name_required", "Name is required")
        if len(password or "") < 6:
            raise ValidationError("password_length", "Password must be at least 6 characters")

        uid = self.identity.sign_up(email, password)
        user = self.directory.save(User.new(uid, email, role, name))
        logger.info("Registered %s %s", role.value, uid)
        return user

    def login(self, email: str, password: str, role) -> User:
        """
        Sign in as `role`. A user registered under the other role is signed
        out again before RoleMismatchError is raised.
        """
        requested = _role(role)
        uid = self.identity.sign_in((email or "").strip().lower(), password)

        user = self.directory.get(uid)
        if user is None:
            self.identity.sign_out()
            raise NotFoundError("User", uid)
        if user.role != requested:
            self.identity.sign_out()
            raise RoleMismatchError(user.role.value, requested.value)
        return user

    def logout(self) -> None:
        self.identity.sign_out()

    def get_user(self, user_id: str) -> User:
        user = self.directory.get(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user
