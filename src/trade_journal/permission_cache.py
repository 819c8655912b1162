"""
trade_journal.permission_cache

In-process TTL cache of the accounts each mentor may see.

Responsibilities:
- Cache mentee -> permitted accounts per mentor, with a per-mentor expiry.
- Evict expired entries lazily on read.
- Support targeted and global invalidation plus debug stats.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from trade_journal.observability.logging import get_logger, short_id

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CachedAccount:
    id: uuid.UUID
    name: str
    currency: str


@dataclass(slots=True)
class _Entry:
    expires_at: float
    mentees: dict[uuid.UUID, list[CachedAccount]] = field(default_factory=dict)


class MentorPermissionCache:
    """
    Per-process cache keyed by mentor id.

    The TTL starts when a mentor's entry is created; caching another mentee into an
    existing entry does not extend it.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[uuid.UUID, _Entry] = {}

    def _live_entry(self, mentor_id: uuid.UUID) -> _Entry | None:
        entry = self._entries.get(mentor_id)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[mentor_id]
            log.debug("permission_cache_expired", mentor=short_id(mentor_id))
            return None
        return entry

    def get(
        self, mentor_id: uuid.UUID, mentee_id: uuid.UUID | None = None
    ) -> list[CachedAccount] | None:
        entry = self._live_entry(mentor_id)
        if entry is None:
            log.debug("permission_cache_miss", mentor=short_id(mentor_id))
            return None

        if mentee_id is not None:
            accounts = entry.mentees.get(mentee_id)
            if accounts is None:
                log.debug("permission_cache_miss", mentor=short_id(mentor_id), mentee=short_id(mentee_id))
                return None
            log.debug("permission_cache_hit", mentee=short_id(mentee_id), accounts=len(accounts))
            return list(accounts)

        flat = [a for accounts in entry.mentees.values() for a in accounts]
        log.debug("permission_cache_hit", mentor=short_id(mentor_id), accounts=len(flat))
        return flat

    def set(self, mentor_id: uuid.UUID, mentee_id: uuid.UUID, accounts: list[CachedAccount]) -> None:
        entry = self._live_entry(mentor_id)
        if entry is None:
            entry = _Entry(expires_at=self._clock() + self._ttl)
            self._entries[mentor_id] = entry
        entry.mentees[mentee_id] = list(accounts)
        log.debug(
            "permission_cache_set",
            mentee=short_id(mentee_id),
            accounts=len(accounts),
            ttl_seconds=self._ttl,
        )

    def invalidate(self, mentor_id: uuid.UUID) -> None:
        if self._entries.pop(mentor_id, None) is not None:
            log.info("permission_cache_invalidated", mentor=short_id(mentor_id))

    def invalidate_all(self) -> None:
        size = len(self._entries)
        self._entries.clear()
        log.info("permission_cache_cleared", entries=size)

    def stats(self) -> dict[str, int]:
        return {
            "total_mentors": len(self._entries),
            "total_mentees": sum(len(e.mentees) for e in self._entries.values()),
            "total_accounts": sum(
                len(accounts) for e in self._entries.values() for accounts in e.mentees.values()
            ),
        }
