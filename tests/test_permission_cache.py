from __future__ import annotations

import uuid

from trade_journal.permission_cache import CachedAccount, MentorPermissionCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _account(name: str) -> CachedAccount:
    return CachedAccount(id=uuid.uuid4(), name=name, currency="USD")


def test_get_miss_then_hit() -> None:
    cache = MentorPermissionCache(ttl_seconds=60)
    mentor, mentee = uuid.uuid4(), uuid.uuid4()
    assert cache.get(mentor, mentee) is None

    accounts = [_account("Main")]
    cache.set(mentor, mentee, accounts)
    assert cache.get(mentor, mentee) == accounts
    assert cache.get(mentor, uuid.uuid4()) is None


def test_get_without_mentee_flattens() -> None:
    cache = MentorPermissionCache()
    mentor = uuid.uuid4()
    cache.set(mentor, uuid.uuid4(), [_account("A")])
    cache.set(mentor, uuid.uuid4(), [_account("B"), _account("C")])
    assert [a.name for a in cache.get(mentor) or []] == ["A", "B", "C"]


def test_entries_expire() -> None:
    clock = FakeClock()
    cache = MentorPermissionCache(ttl_seconds=300, clock=clock)
    mentor, mentee = uuid.uuid4(), uuid.uuid4()
    cache.set(mentor, mentee, [_account("Main")])

    clock.now = 300.0
    assert cache.get(mentor, mentee) is not None
    clock.now = 300.5
    assert cache.get(mentor, mentee) is None
    assert cache.stats()["total_mentors"] == 0


def test_adding_mentee_does_not_extend_ttl() -> None:
    clock = FakeClock()
    cache = MentorPermissionCache(ttl_seconds=10, clock=clock)
    mentor = uuid.uuid4()
    cache.set(mentor, uuid.uuid4(), [])
    clock.now = 8.0
    cache.set(mentor, uuid.uuid4(), [])
    clock.now = 11.0
    assert cache.get(mentor) is None


def test_invalidate_and_stats() -> None:
    cache = MentorPermissionCache()
    m1, m2 = uuid.uuid4(), uuid.uuid4()
    cache.set(m1, uuid.uuid4(), [_account("A"), _account("B")])
    cache.set(m2, uuid.uuid4(), [_account("C")])
    assert cache.stats() == {"total_mentors": 2, "total_mentees": 2, "total_accounts": 3}

    cache.invalidate(m1)
    assert cache.get(m1) is None
    assert cache.stats()["total_mentors"] == 1

    cache.invalidate_all()
    assert cache.stats() == {"total_mentors": 0, "total_mentees": 0, "total_accounts": 0}
