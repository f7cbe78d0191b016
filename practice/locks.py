from __future__ import annotations

"""practice.locks

Process-local serialization point for writes to one practice session.

- One ``threading.RLock`` per session id, created on first use. Reentrant, so
  a service call that composes another one on the same session does not
  deadlock.
- The registry holds locks weakly: an entry lives only while some caller
  holds or waits on it, so ended and deleted sessions leave nothing behind.
- Process-local only: several uvicorn workers do not share these locks. The
  ``version`` column on ``practice_sessions`` is what catches cross-process
  races (see practice.repo.update_session).
- Lock order: ``session_write_lock`` -> ``repo.transaction()``. Never acquire
  a session lock inside an open transaction.
"""

import logging
from contextlib import contextmanager
from threading import Lock, RLock
from typing import Iterator, Optional
from weakref import WeakValueDictionary

from errors import SESSION_LOCK_TIMEOUT, ConflictError

logger = logging.getLogger(__name__)

_REGISTRY_LOCK = Lock()
_SESSION_LOCKS: "WeakValueDictionary[str, RLock]" = WeakValueDictionary()


def _lock_for(session_id: str) -> RLock:
    with _REGISTRY_LOCK:
        lock = _SESSION_LOCKS.get(session_id)
        if lock is None:
            lock = RLock()
            _SESSION_LOCKS[session_id] = lock
        return lock


@contextmanager
def session_write_lock(
    session_id: str,
    *,
    reason: str = "",
    timeout_s: Optional[float] = None,
) -> Iterator[None]:
    """Serialize read-modify-write sections on one session.

    Args:
        session_id: practice session identity.
        reason: debug/log label.
        timeout_s: seconds to wait; None waits forever, negative means non-blocking.

    Raises:
        ConflictError: SESSION_LOCK_TIMEOUT when the lock was not acquired in time.
        ValueError: timeout_s is not a number.
    """
    lock = _lock_for(str(session_id))
    if timeout_s is None:
        acquired = lock.acquire()
    else:
        try:
            timeout = float(timeout_s)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"timeout_s must be a float seconds value, got: {timeout_s!r}") from exc
        if timeout > 0:
            acquired = lock.acquire(timeout=timeout)
        else:
            acquired = lock.acquire(blocking=False)

    if not acquired:
        logger.warning("SESSION_LOCK_TIMEOUT session=%s reason=%s timeout_s=%s", session_id, reason, timeout_s)
        raise ConflictError(
            SESSION_LOCK_TIMEOUT,
            "Practice session is busy, retry later",
            {"kind": "practice_session", "id": str(session_id), "timeout_s": timeout_s},
        )

    try:
        yield
    finally:
        lock.release()


__all__ = [
    "session_write_lock",
]
