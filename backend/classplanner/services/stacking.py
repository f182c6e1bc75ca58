from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field

from classplanner.core.exceptions import InvalidIntervalError, InvalidTimeFormatError
from classplanner.services.conflict_service import SessionTimeSpec
from classplanner.services.time_interval import TimeInterval

logger = logging.getLogger(__name__)

BucketKey = tuple[int, str | None]

_SINGLE_ROW: BucketKey = (0, None)


@dataclass(frozen=True)
class StackingWarning:
    session_id: str
    reason: str


@dataclass
class StackingResult:
    # session id -> 0-based track, shared by every row the session is in.
    positions: dict[str, int] = field(default_factory=dict)
    # (weekday, student id) -> {session id: track}.
    buckets: dict[BucketKey, dict[str, int]] = field(default_factory=dict)
    # (weekday, student id) -> number of tracks the row needs.
    depths: dict[BucketKey, int] = field(default_factory=dict)
    warnings: list[StackingWarning] = field(default_factory=list)

    def depth_for(self, weekday: int, owner_id: str | None) -> int:
        return self.depths.get((weekday, owner_id), 0)


def _place_jointly(
    items: Iterable[tuple[str, TimeInterval, tuple[BucketKey, ...]]],
) -> tuple[dict[str, int], dict[BucketKey, list[int]]]:
    """Greedy interval partitioning shared across rows.

    Items are placed in start order (ties by id). Each one goes to the lowest
    numbered track that is free at its start time in every row it belongs to,
    so a group class never lands on a track another of its rows is using.
    Returns the track per item and, per row, the end minute of the last block
    on each track.
    """
    ordered = sorted(items, key=lambda item: (item[1].start_minutes, item[0]))
    row_ends: dict[BucketKey, list[int]] = defaultdict(list)
    assignment: dict[str, int] = {}

    for session_id, interval, keys in ordered:
        track = 0
        while any(
            track < len(row_ends[key]) and row_ends[key][track] > interval.start_minutes for key in keys
        ):
            track += 1
        for key in keys:
            ends = row_ends[key]
            ends.extend([0] * (track + 1 - len(ends)))
            ends[track] = interval.end_minutes
        assignment[session_id] = track

    return assignment, row_ends


def partition_tracks(items: Iterable[tuple[str, TimeInterval]]) -> tuple[dict[str, int], int]:
    """Partition one row. The number of tracks equals the maximum number of
    items running at the same moment."""
    assignment, row_ends = _place_jointly((session_id, interval, (_SINGLE_ROW,)) for session_id, interval in items)
    return assignment, len(row_ends[_SINGLE_ROW])


def stack_sessions(sessions: Iterable[SessionTimeSpec]) -> StackingResult:
    """Assign display tracks per (weekday, student) row.

    A group class sits on the same track in each of its students' rows, and
    that track is free in all of them. Sessions whose times cannot be parsed
    are left out and reported in ``warnings``; the rest of the layout is
    still produced.
    """
    result = StackingResult()
    days: dict[int, list[tuple[str, TimeInterval, tuple[BucketKey, ...]]]] = defaultdict(list)
    seen: set[str] = set()

    for spec in sessions:
        if spec.id in seen:
            result.warnings.append(StackingWarning(session_id=spec.id, reason="duplicate session id"))
            logger.warning("Skipping duplicate session %s in stacking input", spec.id)
            continue
        seen.add(spec.id)
        try:
            interval = spec.interval()
        except (InvalidTimeFormatError, InvalidIntervalError) as exc:
            result.warnings.append(StackingWarning(session_id=spec.id, reason=exc.message))
            logger.warning("Excluding session %s from layout: %s", spec.id, exc.message)
            continue
        keys = tuple((interval.weekday, owner_id) for owner_id in sorted(spec.owner_ids) or [None])
        days[interval.weekday].append((spec.id, interval, keys))

    for weekday in sorted(days):
        assignment, row_ends = _place_jointly(days[weekday])
        result.positions.update(assignment)
        members: dict[BucketKey, dict[str, int]] = defaultdict(dict)
        for session_id, _, keys in days[weekday]:
            for key in keys:
                members[key][session_id] = assignment[session_id]
        for key in sorted(members, key=lambda item: item[1] or ""):
            result.buckets[key] = dict(sorted(members[key].items(), key=lambda item: (item[1], item[0])))
            result.depths[key] = len(row_ends[key])

    logger.debug("Stacked %d session(s) into %d row(s)", len(result.positions), len(result.buckets))
    return result


def assign_stack_positions(sessions: Iterable[SessionTimeSpec]) -> dict[str, int]:
    return stack_sessions(sessions).positions
