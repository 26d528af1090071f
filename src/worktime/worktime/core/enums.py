from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    ADMIN = "admin"
    USER = "user"


class SchedulerState(str, Enum):
    """Lifecycle state of the code rotation scheduler."""

    STOPPED = "stopped"
    RUNNING = "running"
