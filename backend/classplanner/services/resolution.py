from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from classplanner.services.conflict_service import SessionTimeSpec, find_conflicts
from classplanner.services.stacking import stack_sessions

logger = logging.getLogger(__name__)


class ConflictPolicy(str, Enum):
    reject = "reject"
    stack = "stack"


@dataclass(frozen=True)
class Resolution:
    policy: ConflictPolicy
    accepted: bool
    conflicting_session_ids: tuple[str, ...] = ()
    # 0-based track of the candidate; only set under the stack policy.
    stack_position: int | None = None

    @property
    def has_conflict(self) -> bool:
        return bool(self.conflicting_session_ids)


def resolve(
    candidate: SessionTimeSpec,
    existing: Iterable[SessionTimeSpec],
    policy: ConflictPolicy = ConflictPolicy.reject,
) -> Resolution:
    existing = list(existing)
    conflicts = tuple(find_conflicts(candidate, existing))

    if policy is ConflictPolicy.reject:
        if conflicts:
            logger.debug("Candidate %s rejected, overlaps %s", candidate.id, ", ".join(conflicts))
        return Resolution(policy=policy, accepted=not conflicts, conflicting_session_ids=conflicts)

    others = [spec for spec in existing if spec.id != candidate.id]
    layout = stack_sessions([*others, candidate])
    return Resolution(
        policy=policy,
        accepted=True,
        conflicting_session_ids=conflicts,
        stack_position=layout.positions.get(candidate.id, 0),
    )
