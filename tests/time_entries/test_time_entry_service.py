from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from src.worktime.worktime.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from src.worktime.worktime.sharing.service import SharingCodeService
from src.worktime.worktime.time_entries.service import TimeEntryService
from tests.fakes import InMemorySharing, InMemoryTimeEntries, InMemoryUsers


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def _setup(now=datetime(2026, 3, 10, 8, 0, 0)):
    users = InMemoryUsers()
    entries = InMemoryTimeEntries()
    sharing = InMemorySharing(users, entries)
    sharing_service = SharingCodeService(users, sharing)
    clock = FakeClock(now)
    svc = TimeEntryService(entries, can_view=sharing_service.can_view, clock=clock)
    return users, entries, sharing_service, clock, svc


def test_clock_in_then_out_records_duration():
    users, entries, _, clock, svc = _setup()
    alice = users.add("Alice")

    opened = svc.clock_in(alice.user_id, note="  Site visit ")
    assert opened.is_open
    assert opened.note == "Site visit"
    assert svc.current(alice.user_id).entry_id == opened.entry_id

    clock.advance(hours=7, minutes=45, seconds=30)
    closed = svc.clock_out(alice.user_id)

    assert closed.duration_minutes == 465
    assert closed.clock_out == datetime(2026, 3, 10, 15, 45, 30)
    assert svc.current(alice.user_id) is None
    assert entries.entries[opened.entry_id].duration_minutes == 465


def test_cannot_clock_in_twice():
    users, _, _, _, svc = _setup()
    alice = users.add("Alice")
    svc.clock_in(alice.user_id)

    with pytest.raises(ValidationError):
        svc.clock_in(alice.user_id)


def test_cannot_clock_out_without_open_entry():
    users, _, _, _, svc = _setup()
    alice = users.add("Alice")

    with pytest.raises(ValidationError):
        svc.clock_out(alice.user_id)


def test_list_entries_paginates_and_summarizes():
    users, entries, _, clock, svc = _setup()
    alice = users.add("Alice")
    for day in range(1, 6):
        start = datetime(2026, 3, day, 9, 0)
        entries.add_closed(alice.user_id, start, start + timedelta(hours=2))
    entries.add_closed(alice.user_id, datetime(2025, 12, 1, 9, 0), datetime(2025, 12, 1, 17, 0))

    page = svc.list_entries(alice.user_id, days=30, page=1, limit=2)

    assert page.total == 5
    assert page.pages == 3
    assert [e.clock_in.day for e in page.entries] == [5, 4]
    data = page.to_dict()
    assert data["summary"] == {"totalMinutes": 240, "completedSessions": 2, "totalSessions": 2}
    assert data["pagination"] == {"page": 1, "limit": 2, "total": 5, "pages": 3}


@pytest.mark.parametrize("kwargs", [{"days": 0}, {"page": "x"}, {"limit": 1000}])
def test_list_entries_rejects_bad_paging(kwargs):
    users, _, _, _, svc = _setup()
    alice = users.add("Alice")

    with pytest.raises(ValidationError):
        svc.list_entries(alice.user_id, **kwargs)


def test_viewer_sees_owner_entries_only_when_connected():
    users, entries, sharing_service, _, svc = _setup()
    alice = users.add("Alice", sharing_code="AAAAAA")
    bob = users.add("Bob")
    entries.add_closed(alice.user_id, datetime(2026, 3, 9, 9, 0), datetime(2026, 3, 9, 10, 0))

    with pytest.raises(AuthorizationError):
        svc.list_entries_for_viewer(viewer_id=bob.user_id, owner_id=alice.user_id)

    sharing_service.redeem("AAAAAA", bob.user_id)
    page = svc.list_entries_for_viewer(viewer_id=bob.user_id, owner_id=alice.user_id)
    assert page.total == 1

    # The connection is one-way: the owner cannot read the viewer's time.
    with pytest.raises(AuthorizationError):
        svc.list_entries_for_viewer(viewer_id=alice.user_id, owner_id=bob.user_id)


def test_update_clock_out_recomputes_duration():
    users, entries, _, clock, svc = _setup()
    alice = users.add("Alice")
    opened = svc.clock_in(alice.user_id)
    clock.advance(hours=9)

    updated = svc.update_clock_out(alice.user_id, opened.entry_id, clock_out=datetime(2026, 3, 10, 16, 30))

    assert updated.duration_minutes == 510
    assert entries.entries[opened.entry_id].clock_out == datetime(2026, 3, 10, 16, 30)
    assert svc.current(alice.user_id) is None


def test_update_clock_out_corrects_a_closed_entry():
    users, entries, _, _, svc = _setup()
    alice = users.add("Alice")
    entry = entries.add_closed(alice.user_id, datetime(2026, 3, 9, 9, 0), datetime(2026, 3, 9, 17, 0))

    updated = svc.update_clock_out(alice.user_id, entry.entry_id, clock_out=datetime(2026, 3, 9, 12, 15))

    assert updated.duration_minutes == 195


@pytest.mark.parametrize(
    "clock_out",
    [
        datetime(2026, 3, 9, 9, 0),  # equal to clock-in
        datetime(2026, 3, 9, 8, 0),  # before clock-in
        datetime(2026, 3, 10, 9, 1),  # longer than 24 hours
    ],
)
def test_update_clock_out_rejects_invalid_times(clock_out):
    users, entries, _, _, svc = _setup(now=datetime(2026, 3, 12, 8, 0))
    alice = users.add("Alice")
    entry = entries.add_closed(alice.user_id, datetime(2026, 3, 9, 9, 0), datetime(2026, 3, 9, 10, 0))

    with pytest.raises(ValidationError):
        svc.update_clock_out(alice.user_id, entry.entry_id, clock_out=clock_out)
    assert entries.entries[entry.entry_id].duration_minutes == 60


def test_update_clock_out_rejects_future_time():
    users, _, _, clock, svc = _setup()
    alice = users.add("Alice")
    opened = svc.clock_in(alice.user_id)

    with pytest.raises(ValidationError):
        svc.update_clock_out(alice.user_id, opened.entry_id, clock_out=clock.now + timedelta(minutes=5))


def test_edit_and_delete_check_ownership():
    users, entries, _, _, svc = _setup()
    alice = users.add("Alice")
    bob = users.add("Bob")
    entry = entries.add_closed(alice.user_id, datetime(2026, 3, 9, 9, 0), datetime(2026, 3, 9, 10, 0))

    with pytest.raises(AuthorizationError):
        svc.update_clock_out(bob.user_id, entry.entry_id, clock_out=datetime(2026, 3, 9, 11, 0))
    with pytest.raises(AuthorizationError):
        svc.delete_entry(bob.user_id, entry.entry_id)
    with pytest.raises(NotFoundError):
        svc.delete_entry(alice.user_id, 999)
    with pytest.raises(NotFoundError):
        svc.update_clock_out(alice.user_id, 999, clock_out=datetime(2026, 3, 9, 11, 0))

    assert entry.entry_id in entries.entries


def test_delete_entry_removes_it():
    users, entries, _, _, svc = _setup()
    alice = users.add("Alice")
    entry = entries.add_closed(alice.user_id, datetime(2026, 3, 9, 9, 0), datetime(2026, 3, 9, 10, 0))

    svc.delete_entry(alice.user_id, entry.entry_id)

    assert entry.entry_id not in entries.entries
    assert svc.list_entries(alice.user_id).total == 0
