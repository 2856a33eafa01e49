"""Tests for write serialization of admin mutations."""
import asyncio
import threading
import time

import pytest

from navigator_keys.rotation import AdminWorkerPool, WriteLock, default_write_lock

from conftest import old_key


class TestWriteLock:
    """Tests for WriteLock."""

    def test_reentrant(self):
        lock = WriteLock()
        with lock:
            with lock:
                pass
        assert lock.acquire(blocking=False)
        lock.release()

    def test_excludes_other_threads(self):
        lock = WriteLock()
        acquired = []
        with lock:
            worker = threading.Thread(
                target=lambda: acquired.append(lock.acquire(blocking=False))
            )
            worker.start()
            worker.join()
        assert acquired == [False]

    def test_default_lock_is_shared(self):
        assert default_write_lock() is default_write_lock()


class TestAdminWorkerPool:
    """Tests for AdminWorkerPool."""

    def test_submit_returns_result(self):
        with AdminWorkerPool(WriteLock(), max_workers=2) as pool:
            assert pool.submit(lambda a, b: a + b, 2, 3).result(timeout=5) == 5

    def test_errors_surface_on_future(self):
        def fail():
            raise RuntimeError("boom")

        with AdminWorkerPool(WriteLock()) as pool:
            with pytest.raises(RuntimeError):
                pool.submit(fail).result(timeout=5)

    def test_mutations_never_overlap(self):
        """Test submitted operations run one at a time."""
        active = []
        overlaps = []

        def mutate():
            active.append(1)
            if len(active) > 1:
                overlaps.append(len(active))
            time.sleep(0.01)
            active.pop()

        with AdminWorkerPool(WriteLock(), max_workers=4) as pool:
            futures = [pool.submit(mutate) for _ in range(8)]
            for future in futures:
                future.result(timeout=5)
        assert overlaps == []

    def test_async_run(self):
        with AdminWorkerPool(WriteLock()) as pool:
            assert asyncio.run(pool.run(lambda: 42)) == 42

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            AdminWorkerPool(WriteLock(), max_workers=0)

    def test_concurrent_rotations_allocate_unique_ids(self, make_service):
        """Test rotations running on workers never hand out the same id."""
        service, _ = make_service(old_key(1, 5), old_key(2, 6))
        with AdminWorkerPool(service.write_lock, max_workers=4) as pool:
            futures = [
                pool.submit(service.rotate_all_site_keys, 0, True)
                for _ in range(6)
            ]
            ids = [k.id for f in futures for k in f.result(timeout=5).rotated_keys]
        assert sorted(ids) == list(range(3, 15))

    def test_sized_from_config(self, config):
        sized = config.model_copy(update={"worker_pool_size": 2})
        lock = WriteLock()
        with AdminWorkerPool.from_config(sized, lock) as pool:
            assert pool.max_workers == 2
            with lock:
                future = pool.submit(lambda: 42)
                assert not future.done()
            assert future.result(timeout=5) == 42

    def test_from_config_defaults_to_shared_lock(self, config):
        with AdminWorkerPool.from_config(config) as pool:
            assert pool.max_workers == config.worker_pool_size
            with default_write_lock():
                future = pool.submit(lambda: 42)
                assert not future.done()
            assert future.result(timeout=5) == 42

    def test_service_worker_pool(self, make_service):
        """Test the service pool serializes on the service's write lock."""
        service, _ = make_service(old_key(1, 5))
        with service.worker_pool() as pool:
            assert pool.max_workers == 4
            result = pool.submit(service.rotate_site_key, 5, 0, True).result(timeout=5)
        assert [k.id for k in result.rotated_keys] == [2]
