from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, time, timedelta
from typing import Callable, Optional

from ..common.datetime_utils import minutes_between, now_local
from ..common.validators import require_int_in_range
from ..core.constants import (
    CLOCK_SKEW_TOLERANCE_SECONDS,
    DEFAULT_ENTRIES_DAYS,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    MAX_SESSION_HOURS,
)
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from .model import EntryPage, TimeEntry
from .repository import TimeEntryRepository

logger = logging.getLogger(__name__)


class TimeEntryService:
    def __init__(
        self,
        entries: TimeEntryRepository,
        *,
        can_view: Callable[..., bool],
        clock: Callable[[], datetime] = now_local,
    ):
        self._entries = entries
        self._can_view = can_view
        self._clock = clock

    def current(self, user_id: int) -> Optional[TimeEntry]:
        return self._entries.get_open_for_user(int(user_id))

    def clock_in(self, user_id: int, *, note: Optional[str] = None) -> TimeEntry:
        if self._entries.get_open_for_user(int(user_id)):
            raise ValidationError("You are already clocked in")

        now = self._clock()
        note = (note or "").strip()[:255] or None
        entry_id = self._entries.create_clock_in(user_id=int(user_id), clock_in=now, note=note)
        return TimeEntry(entry_id=entry_id, user_id=int(user_id), clock_in=now, note=note)

    def clock_out(self, user_id: int) -> TimeEntry:
        entry = self._entries.get_open_for_user(int(user_id))
        if not entry:
            raise ValidationError("You are not clocked in")

        now = self._clock()
        duration = minutes_between(entry.clock_in, now)
        if not self._entries.close_entry(entry_id=entry.entry_id, clock_out=now, duration_minutes=duration):
            raise ValidationError("You are not clocked in")

        logger.info("User %s clocked out after %d minutes", user_id, duration)
        return TimeEntry(
            entry_id=entry.entry_id,
            user_id=entry.user_id,
            clock_in=entry.clock_in,
            clock_out=now,
            duration_minutes=duration,
            note=entry.note,
        )

    def _own_entry(self, user_id: int, entry_id: int) -> TimeEntry:
        entry = self._entries.get_by_id(int(entry_id))
        if not entry:
            raise NotFoundError("Time entry not found")
        if entry.user_id != int(user_id):
            raise AuthorizationError("This time entry belongs to another user")
        return entry

    def update_clock_out(self, user_id: int, entry_id: int, *, clock_out: datetime) -> TimeEntry:
        """Set or correct the clock-out of one of the user's own entries."""

        entry = self._own_entry(user_id, entry_id)
        if clock_out <= entry.clock_in:
            raise ValidationError("Clock out time must be after clock in time")
        if clock_out - entry.clock_in > timedelta(hours=MAX_SESSION_HOURS):
            raise ValidationError(f"Work session cannot be longer than {MAX_SESSION_HOURS} hours")
        if clock_out > self._clock() + timedelta(seconds=CLOCK_SKEW_TOLERANCE_SECONDS):
            raise ValidationError("Clock out time cannot be in the future")

        duration = minutes_between(entry.clock_in, clock_out)
        self._entries.set_clock_out(entry_id=entry.entry_id, clock_out=clock_out, duration_minutes=duration)
        logger.info("User %s set clock-out of entry %s (%d minutes)", user_id, entry.entry_id, duration)
        return replace(entry, clock_out=clock_out, duration_minutes=duration)

    def delete_entry(self, user_id: int, entry_id: int) -> None:
        entry = self._own_entry(user_id, entry_id)
        if not self._entries.delete(entry.entry_id):
            raise NotFoundError("Time entry not found")
        logger.info("User %s deleted entry %s", user_id, entry.entry_id)

    def list_entries(
        self,
        user_id: int,
        *,
        days=DEFAULT_ENTRIES_DAYS,
        page=1,
        limit=DEFAULT_PAGE_SIZE,
    ) -> EntryPage:
        days = require_int_in_range(days, "days", minimum=1, maximum=366)
        page = require_int_in_range(page, "page", minimum=1, maximum=100_000)
        limit = require_int_in_range(limit, "limit", minimum=1, maximum=MAX_PAGE_SIZE)

        since = datetime.combine((self._clock() - timedelta(days=days)).date(), time.min)
        rows = self._entries.list_for_user(int(user_id), since=since, offset=(page - 1) * limit, limit=limit)
        total = self._entries.count_for_user(int(user_id), since=since)
        return EntryPage(entries=list(rows), page=page, limit=limit, total=total)

    def list_entries_for_viewer(self, *, viewer_id: int, owner_id: int, **kwargs) -> EntryPage:
        if not self._can_view(viewer_id=int(viewer_id), owner_id=int(owner_id)):
            raise AuthorizationError("You are not connected with this person")
        return self.list_entries(int(owner_id), **kwargs)
