from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_email, require_max_length, require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConstraintViolationError,
    NotFoundError,
    ValidationError,
)
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: str
    email: str
    role: Role


def _session_user(user: User) -> SessionUser:
    return SessionUser(user_id=user.user_id, name=user.name, email=user.email, role=user.role)


class AuthService:
    """Use cases: register and authenticate (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def register(self, *, name: str, email: str, password: str) -> SessionUser:
        name = require_max_length(require_non_empty(name, "Name"), "Name", 100)
        email = require_email(email)
        require_min_length(password, "Password", 6)
        require_max_length(password, "Password", 255)

        if self._users.get_by_email(email):
            raise ValidationError("Email is already registered")

        try:
            user_id = self._users.create_user(
                name=name,
                email=email,
                password_hash=generate_password_hash(password),
                role=Role.USER,
            )
        except ConstraintViolationError as exc:
            if not exc.is_duplicate_key:
                raise
            # Lost a race with a concurrent registration for the same email.
            raise ValidationError("Email is already registered")

        logger.info("Registered user %s", user_id)
        return SessionUser(user_id=user_id, name=name, email=email, role=Role.USER)

    def authenticate(self, email: str, password: str) -> SessionUser:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return _session_user(user)


class UserService:
    """Use cases: read and edit one's own profile, read a connected user's profile."""

    def __init__(self, users: UserRepository, *, is_connected: Callable[[int, int], bool]):
        self._users = users
        self._is_connected = is_connected

    def get_profile(self, user_id: int) -> User:
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def update_profile(self, user_id: int, *, name: str) -> User:
        name = require_max_length(require_non_empty(name, "Name"), "Name", 100)
        self.get_profile(user_id)
        self._users.update_name(int(user_id), name=name)
        return self.get_profile(user_id)

    def get_connected_profile(self, user_id: int, target_id: int) -> User:
        """Profile of someone the user is connected with, in either direction."""

        if int(target_id) == int(user_id):
            raise ValidationError("Use /api/user/profile for own profile")
        target = self.get_profile(target_id)
        if not self._is_connected(int(user_id), int(target_id)):
            raise AuthorizationError("You can only view profiles of your team members")
        return target
