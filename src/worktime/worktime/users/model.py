from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: plain data object, no database access code here.
    """

    user_id: int
    name: str
    email: str
    password_hash: str
    role: Role
    sharing_code: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PublicProfile:
    """What one user may learn about another: identity only."""

    user_id: int
    name: str
    email: str

    @classmethod
    def of(cls, user: User) -> "PublicProfile":
        return cls(user_id=user.user_id, name=user.name, email=user.email)

    def to_dict(self) -> dict:
        return {"id": self.user_id, "name": self.name, "email": self.email}
