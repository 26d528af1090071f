from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class TimeEntry:
    """Domain entity: one clock-in/clock-out session."""

    entry_id: int
    user_id: int
    clock_in: datetime
    clock_out: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.clock_out is None

    def to_dict(self) -> dict:
        return {
            "id": self.entry_id,
            "clockIn": self.clock_in.isoformat(),
            "clockOut": self.clock_out.isoformat() if self.clock_out else None,
            "duration": self.duration_minutes,
            "note": self.note,
        }


@dataclass(frozen=True)
class EntryPage:
    entries: List[TimeEntry]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0

    @property
    def total_minutes(self) -> int:
        return sum(e.duration_minutes or 0 for e in self.entries if not e.is_open)

    @property
    def completed_sessions(self) -> int:
        return sum(1 for e in self.entries if not e.is_open)

    def to_dict(self) -> dict:
        return {
            "timeEntries": [e.to_dict() for e in self.entries],
            "pagination": {"page": self.page, "limit": self.limit, "total": self.total, "pages": self.pages},
            "summary": {
                "totalMinutes": self.total_minutes,
                "completedSessions": self.completed_sessions,
                "totalSessions": len(self.entries),
            },
        }
