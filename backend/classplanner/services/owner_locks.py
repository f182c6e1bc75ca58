from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from threading import Lock


class OwnerLockRegistry:
    """Process-local locks keyed by student id.

    Writers hold the locks of every student a session touches while they read
    the existing sessions, run the conflict check and write. Locks are taken
    in sorted id order so two writers can never wait on each other. A lock
    lives only while some writer holds or waits for it.
    """

    def __init__(self) -> None:
        self._locks: dict[str, Lock] = {}
        self._users: dict[str, int] = {}
        self._guard = Lock()

    def _checkout(self, owner_id: str) -> Lock:
        with self._guard:
            lock = self._locks.get(owner_id)
            if lock is None:
                lock = Lock()
                self._locks[owner_id] = lock
            self._users[owner_id] = self._users.get(owner_id, 0) + 1
            return lock

    def _checkin(self, owner_id: str) -> None:
        with self._guard:
            remaining = self._users.get(owner_id, 0) - 1
            if remaining > 0:
                self._users[owner_id] = remaining
            else:
                self._users.pop(owner_id, None)
                self._locks.pop(owner_id, None)

    @contextmanager
    def hold(self, owner_ids: Iterable[str]) -> Iterator[None]:
        acquired: list[tuple[str, Lock]] = []
        try:
            for owner_id in sorted(set(owner_ids)):
                lock = self._checkout(owner_id)
                try:
                    lock.acquire()
                except BaseException:
                    self._checkin(owner_id)
                    raise
                acquired.append((owner_id, lock))
            yield
        finally:
            for owner_id, lock in reversed(acquired):
                lock.release()
                self._checkin(owner_id)

    def is_locked(self, owner_id: str) -> bool:
        with self._guard:
            lock = self._locks.get(owner_id)
        return lock is not None and lock.locked()

    def clear(self) -> None:
        """Forget idle locks. Test helper; refuses while any lock is in use."""
        with self._guard:
            if self._users:
                raise RuntimeError(f"Owner locks still in use: {', '.join(sorted(self._users))}")
            self._locks.clear()


_registry = OwnerLockRegistry()


def owner_locks(owner_ids: Iterable[str]):
    return _registry.hold(owner_ids)


def clear_owner_locks() -> None:
    _registry.clear()
