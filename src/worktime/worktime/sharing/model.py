from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..users.model import PublicProfile


@dataclass(frozen=True)
class CodeAssignment:
    """One user's code, either as read from storage or as planned by a rotation pass."""

    user_id: int
    code: str


@dataclass(frozen=True)
class Connection:
    """Directed permission: ``viewer_id`` can see ``owner_id``'s time entries."""

    connection_id: int
    owner_id: int
    viewer_id: int
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class TeamRow:
    """Read-model for the team page: the other party of a connection plus their tracked time."""

    connection: Connection
    member: PublicProfile
    total_minutes: int


@dataclass(frozen=True)
class RotationResult:
    rotated: int
    started_at: datetime
    finished_at: datetime
