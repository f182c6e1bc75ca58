from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from classplanner.services.time_interval import TimeInterval


@dataclass(frozen=True)
class SessionTimeSpec:
    """Flat view of a session used by the overlap checks and the stacker.

    ``owner_ids`` are the students whose calendars the session occupies; a
    group class carries several.
    """

    id: str
    owner_ids: frozenset[str]
    weekday: int
    starts_at: str
    ends_at: str

    def __post_init__(self) -> None:
        if not isinstance(self.owner_ids, frozenset):
            object.__setattr__(self, "owner_ids", frozenset(self.owner_ids))

    def interval(self) -> TimeInterval:
        return TimeInterval.from_strings(self.weekday, self.starts_at, self.ends_at)

    def shares_owner_with(self, other: "SessionTimeSpec") -> bool:
        return not self.owner_ids.isdisjoint(other.owner_ids)


def sessions_conflict(a: SessionTimeSpec, b: SessionTimeSpec) -> bool:
    if a.weekday != b.weekday or not a.shares_owner_with(b):
        return False
    return a.interval().overlaps(b.interval())


def _iter_conflicts(candidate: SessionTimeSpec, existing: Iterable[SessionTimeSpec]) -> Iterator[str]:
    # Parse the candidate first so a malformed candidate always fails loudly.
    candidate_interval = candidate.interval()
    if not candidate.owner_ids:
        return
    for other in existing:
        if other.id == candidate.id or other.weekday != candidate.weekday:
            continue
        if not candidate.shares_owner_with(other):
            continue
        if candidate_interval.overlaps(other.interval()):
            yield other.id


def has_conflict(candidate: SessionTimeSpec, existing: Iterable[SessionTimeSpec]) -> bool:
    """True when ``candidate`` overlaps any session sharing one of its students.

    Stops at the first conflict. A session is never compared with itself, so
    an edited session can be checked against a snapshot that still holds its
    old version. An empty owner set never conflicts.
    """
    return next(_iter_conflicts(candidate, existing), None) is not None


def find_conflicts(candidate: SessionTimeSpec, existing: Iterable[SessionTimeSpec]) -> list[str]:
    """Ids of every session in ``existing`` that conflicts with ``candidate``, in input order."""
    return list(_iter_conflicts(candidate, existing))
