from __future__ import annotations

import threading
from datetime import datetime

import pytest

from src.worktime.worktime.core.exceptions import (
    AlreadyConnectedError,
    CodeNotFoundError,
    ConstraintViolationError,
    GenerationExhaustedError,
    NotFoundError,
    SelfConnectionError,
    StorageUnavailableError,
    ValidationError,
)
from src.worktime.worktime.sharing.rotation import CodeRotator
from src.worktime.worktime.sharing.service import SharingCodeService
from tests.fakes import InMemorySharing, InMemoryTimeEntries, InMemoryUsers, sequence_generator


def _setup(generate=None, **kwargs):
    users = InMemoryUsers()
    sharing = InMemorySharing(users)
    svc_kwargs = dict(kwargs)
    if generate is not None:
        svc_kwargs["generate"] = generate
    return users, sharing, SharingCodeService(users, sharing, **svc_kwargs)


# ---------------------------------------------------------------------------
# get-or-create
# ---------------------------------------------------------------------------

def test_issues_code_to_user_without_one():
    users, _, svc = _setup(generate=sequence_generator("K3F9P2"))
    alice = users.add("Alice")

    assert svc.get_or_create_code(alice.user_id) == "K3F9P2"
    assert users.code_of(alice.user_id) == "K3F9P2"


def test_get_or_create_is_idempotent_between_rotations():
    users, _, svc = _setup()
    alice = users.add("Alice")

    first = svc.get_or_create_code(alice.user_id)
    assert svc.get_or_create_code(alice.user_id) == first
    assert svc.get_or_create_code(alice.user_id) == first


def test_existing_code_is_returned_unchanged():
    users, sharing, svc = _setup(generate=sequence_generator())
    alice = users.add("Alice", sharing_code="AB12CD")

    assert svc.get_or_create_code(alice.user_id) == "AB12CD"
    assert sharing.lookups == 0


def test_issuance_skips_codes_held_by_other_users():
    users, _, svc = _setup(generate=sequence_generator("AAAAAA", "BBBBBB", "CCCCCC"))
    users.add("Bob", sharing_code="AAAAAA")
    users.add("Carol", sharing_code="BBBBBB")
    alice = users.add("Alice")

    assert svc.get_or_create_code(alice.user_id) == "CCCCCC"


def test_issuance_retries_when_unique_index_rejects_write():
    users, sharing, svc = _setup(generate=sequence_generator("AAAAAA", "BBBBBB"))
    alice = users.add("Alice")
    calls = []

    original = sharing.set_code_if_absent

    def flaky_set(user_id, code):
        calls.append(code)
        if code == "AAAAAA":
            raise ConstraintViolationError("Duplicate entry 'AAAAAA'", errno=1062)
        return original(user_id, code)

    sharing.set_code_if_absent = flaky_set

    assert svc.get_or_create_code(alice.user_id) == "BBBBBB"
    assert calls == ["AAAAAA", "BBBBBB"]


def test_issuance_reports_code_set_by_a_concurrent_writer():
    users, sharing, svc = _setup(generate=sequence_generator("AAAAAA"))
    alice = users.add("Alice")

    def lose_race(user_id, code):
        users.set_code(user_id, "ZZ9999")
        return False

    sharing.set_code_if_absent = lose_race

    assert svc.get_or_create_code(alice.user_id) == "ZZ9999"


def test_issuance_gives_up_after_attempt_budget():
    users, _, svc = _setup(generate=lambda: "AAAAAA", max_attempts=50)
    users.add("Bob", sharing_code="AAAAAA")
    alice = users.add("Alice")

    with pytest.raises(GenerationExhaustedError):
        svc.get_or_create_code(alice.user_id)
    assert users.code_of(alice.user_id) is None


def test_issuance_for_unknown_user_fails():
    _, _, svc = _setup()
    with pytest.raises(NotFoundError):
        svc.get_or_create_code(999)


def test_concurrent_callers_see_one_code():
    users, _, svc = _setup()
    alice = users.add("Alice")
    results = []
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        results.append(svc.get_or_create_code(alice.user_id))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    assert len(results) == 8
    assert set(results) == {users.code_of(alice.user_id)}


# ---------------------------------------------------------------------------
# redeem
# ---------------------------------------------------------------------------

def test_redeem_is_case_insensitive_and_creates_connection():
    users, sharing, svc = _setup(generate=sequence_generator("K3F9P2"))
    alice = users.add("Alice")
    bob = users.add("Bob")

    assert svc.get_or_create_code(alice.user_id) == "K3F9P2"
    owner = svc.redeem("k3f9p2", bob.user_id)

    assert owner.user_id == alice.user_id
    assert owner.to_dict() == {"id": alice.user_id, "name": "Alice", "email": "alice@example.com"}
    assert len(sharing.connections) == 1
    assert sharing.connections[0].owner_id == alice.user_id
    assert sharing.connections[0].viewer_id == bob.user_id


def test_redeeming_again_fails_with_already_connected():
    users, sharing, svc = _setup(generate=sequence_generator("K3F9P2"))
    alice = users.add("Alice")
    bob = users.add("Bob")
    svc.get_or_create_code(alice.user_id)
    svc.redeem("k3f9p2", bob.user_id)

    with pytest.raises(AlreadyConnectedError):
        svc.redeem("K3F9P2", bob.user_id)
    assert len(sharing.connections) == 1


def test_existing_connection_in_reverse_direction_blocks_redeem():
    users, sharing, svc = _setup()
    alice = users.add("Alice", sharing_code="AAAAAA")
    bob = users.add("Bob", sharing_code="BBBBBB")
    sharing.create_connection(owner_id=bob.user_id, viewer_id=alice.user_id)

    with pytest.raises(AlreadyConnectedError):
        svc.redeem("AAAAAA", bob.user_id)
    assert len(sharing.connections) == 1


def test_redeem_surfaces_foreign_key_failure_as_storage_error():
    users, sharing, svc = _setup()
    users.add("Alice", sharing_code="AAAAAA")
    bob = users.add("Bob")

    def owner_deleted(*, owner_id, viewer_id):
        raise ConstraintViolationError("Cannot add or update a child row: a foreign key constraint fails", errno=1452)

    sharing.create_connection = owner_deleted

    with pytest.raises(StorageUnavailableError) as excinfo:
        svc.redeem("AAAAAA", bob.user_id)
    assert not isinstance(excinfo.value, AlreadyConnectedError)
    assert sharing.connections == []


def test_issuance_does_not_retry_non_duplicate_constraint_failures():
    users, sharing, svc = _setup(generate=sequence_generator("AAAAAA", "BBBBBB"))
    alice = users.add("Alice")

    def user_deleted(user_id, code):
        raise ConstraintViolationError("foreign key constraint fails", errno=1452)

    sharing.set_code_if_absent = user_deleted

    with pytest.raises(ConstraintViolationError):
        svc.get_or_create_code(alice.user_id)


def test_redeeming_own_code_fails():
    users, sharing, svc = _setup()
    alice = users.add("Alice", sharing_code="AAAAAA")

    with pytest.raises(SelfConnectionError):
        svc.redeem("aaaaaa", alice.user_id)
    assert sharing.connections == []


def test_unknown_code_fails_with_code_not_found():
    users, _, svc = _setup()
    bob = users.add("Bob")

    with pytest.raises(CodeNotFoundError):
        svc.redeem("QWERTY", bob.user_id)


@pytest.mark.parametrize("code", ["", "ABC", "ABCDEFG", "AB CD1", "ab-cd1"])
def test_malformed_code_is_a_validation_error(code):
    users, _, svc = _setup()
    bob = users.add("Bob")

    with pytest.raises(ValidationError):
        svc.redeem(code, bob.user_id)


def test_code_issued_before_rotation_no_longer_resolves():
    users, sharing, svc = _setup()
    alice = users.add("Alice")
    bob = users.add("Bob")
    old_code = svc.get_or_create_code(alice.user_id)

    CodeRotator(sharing).rotate_all()

    assert users.code_of(alice.user_id) != old_code
    with pytest.raises(CodeNotFoundError):
        svc.redeem(old_code, bob.user_id)
    assert svc.redeem(users.code_of(alice.user_id), bob.user_id).user_id == alice.user_id


def test_concurrent_redeem_losing_on_unique_pair_reports_already_connected():
    users, sharing, svc = _setup()
    alice = users.add("Alice", sharing_code="AAAAAA")
    bob = users.add("Bob")

    original = sharing.create_connection

    def racing_create(*, owner_id, viewer_id):
        original(owner_id=owner_id, viewer_id=viewer_id)
        return original(owner_id=owner_id, viewer_id=viewer_id)

    sharing.create_connection = racing_create

    with pytest.raises(AlreadyConnectedError):
        svc.redeem("AAAAAA", bob.user_id)
    assert len(sharing.connections) == 1


# ---------------------------------------------------------------------------
# team / visibility
# ---------------------------------------------------------------------------

def test_can_view_follows_connection_direction():
    users, sharing, svc = _setup()
    alice = users.add("Alice", sharing_code="AAAAAA")
    bob = users.add("Bob")
    svc.redeem("AAAAAA", bob.user_id)

    assert svc.can_view(viewer_id=bob.user_id, owner_id=alice.user_id)
    assert not svc.can_view(viewer_id=alice.user_id, owner_id=bob.user_id)
    assert svc.can_view(viewer_id=alice.user_id, owner_id=alice.user_id)


def test_list_team_splits_workers_and_viewers():
    users = InMemoryUsers()
    entries = InMemoryTimeEntries()
    sharing = InMemorySharing(users, entries)
    svc = SharingCodeService(users, sharing)
    alice = users.add("Alice", sharing_code="AAAAAA")
    bob = users.add("Bob", sharing_code="BBBBBB")
    carol = users.add("Carol")

    entries.add_closed(alice.user_id, datetime(2026, 3, 2, 8, 0), datetime(2026, 3, 2, 16, 30))
    svc.redeem("AAAAAA", bob.user_id)
    svc.redeem("BBBBBB", carol.user_id)

    team = svc.list_team(bob.user_id)
    assert [r.member.name for r in team.workers] == ["Alice"]
    assert team.workers[0].total_minutes == 510
    assert [r.member.name for r in team.viewers] == ["Carol"]
