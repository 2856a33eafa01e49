"""
Write serialization for admin mutations.

Every mutating admin operation (key rotation as well as admin-user and
enclave-id updates) runs under one process-wide write lock, so at most one
mutation is in flight and id allocation always sees the latest committed
key set. Read-only operations never take the lock.
"""
import asyncio
import logging
import threading
from typing import Any, Callable, Optional, TypeVar
from concurrent.futures import Future, ThreadPoolExecutor

from ..conf import KEYS_LOGGER
from .config import KeyServiceConfig

logger = logging.getLogger(KEYS_LOGGER)

T = TypeVar("T")


class WriteLock:
    """Re-entrant process-wide lock for admin mutations.

    Re-entrant so that a caller already holding the lock (e.g. a site
    creation flow adding the first key of a site) can call into the key
    service, which acquires it again.
    """

    def __init__(self):
        self._lock = threading.RLock()

    def __enter__(self) -> "WriteLock":
        self._lock.acquire()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._lock.release()

    def acquire(self, blocking: bool = True, timeout: float = -1) -> bool:
        return self._lock.acquire(blocking, timeout)

    def release(self) -> None:
        self._lock.release()


_default_lock: Optional[WriteLock] = None
_default_lock_guard = threading.Lock()


def default_write_lock() -> WriteLock:
    """Return the write lock shared by every service of this process."""
    global _default_lock
    with _default_lock_guard:
        if _default_lock is None:
            _default_lock = WriteLock()
        return _default_lock


class AdminWorkerPool:
    """Bounded pool of worker threads running mutations under the write lock.

    Use ``submit()`` from threaded code and ``await run()`` from asyncio
    request handlers; either way the callable executes on a worker thread
    while holding ``write_lock``.
    """

    def __init__(self, write_lock: WriteLock, max_workers: int = 4):
        if max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {max_workers}")
        self._max_workers = max_workers
        self._write_lock = write_lock
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="navigator-keys",
        )

    @classmethod
    def from_config(
        cls, config: KeyServiceConfig, write_lock: Optional[WriteLock] = None
    ) -> "AdminWorkerPool":
        """Pool sized by ``config.worker_pool_size``, on the shared lock by default."""
        return cls(write_lock or default_write_lock(), max_workers=config.worker_pool_size)

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def _locked(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        with self._write_lock:
            return fn(*args, **kwargs)

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> "Future[T]":
        """Schedule ``fn`` on a worker thread; errors surface on the Future."""
        return self._executor.submit(self._locked, fn, *args, **kwargs)

    async def run(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn`` on a worker thread and await its result."""
        return await asyncio.wrap_future(self.submit(fn, *args, **kwargs))

    def shutdown(self, wait: bool = True) -> None:
        logger.debug("Shutting down admin worker pool")
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "AdminWorkerPool":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown()
