"""
Unit tests for the fixed-size thread pool.
"""

import threading
import time

import pytest

from fileserver.core.thread_pool import ThreadPool


@pytest.fixture
def pool():
    pool = ThreadPool(workers=2)
    pool.start()
    yield pool
    pool.shutdown(wait=False)


def wait_for(predicate, timeout: float = 5.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestThreadPool:

    def test_runs_submitted_tasks(self, pool: ThreadPool):
        results = []
        lock = threading.Lock()

        def task(n):
            with lock:
                results.append(n)

        for n in range(20):
            assert pool.submit(task, args=(n,))

        assert wait_for(lambda: len(results) == 20)
        assert sorted(results) == list(range(20))

    def test_kwargs(self, pool: ThreadPool):
        done = threading.Event()
        seen = {}

        def task(a, b=None):
            seen.update(a=a, b=b)
            done.set()

        pool.submit(task, args=(1,), kwargs={"b": 2})

        assert done.wait(5.0)
        assert seen == {"a": 1, "b": 2}

    def test_fixed_worker_count(self):
        pool = ThreadPool(workers=3)
        pool.start()
        try:
            assert pool.stats["workers"]["total"] == 3
        finally:
            pool.shutdown()

    def test_worker_survives_task_exception(self, pool: ThreadPool):
        done = threading.Event()

        def boom():
            raise RuntimeError("task failed")

        for _ in range(4):
            pool.submit(boom)
        pool.submit(done.set)

        assert done.wait(5.0)
        assert wait_for(lambda: pool.stats["tasks"]["failed"] == 4)
        assert pool.stats["workers"]["total"] == 2

    def test_unbounded_queue_accepts_everything(self):
        pool = ThreadPool(workers=1, queue_size=0)
        pool.start()
        release = threading.Event()
        try:
            pool.submit(release.wait, args=(5.0,))
            accepted = [pool.submit(lambda: None) for _ in range(500)]
            assert all(accepted)
        finally:
            release.set()
            pool.shutdown()

    def test_bounded_queue_rejects_when_full(self):
        pool = ThreadPool(workers=1, queue_size=2)
        pool.start()
        started = threading.Event()
        release = threading.Event()

        def blocker():
            started.set()
            release.wait(5.0)

        try:
            pool.submit(blocker)
            assert started.wait(5.0)

            assert pool.submit(lambda: None)
            assert pool.submit(lambda: None)
            assert pool.submit(lambda: None) is False
            assert pool.pending == 2
        finally:
            release.set()
            pool.shutdown()

    def test_concurrency_is_capped_at_worker_count(self):
        pool = ThreadPool(workers=3)
        pool.start()
        lock = threading.Lock()
        running = [0]
        peak = [0]
        finished = threading.Semaphore(0)

        def task():
            with lock:
                running[0] += 1
                peak[0] = max(peak[0], running[0])
            time.sleep(0.05)
            with lock:
                running[0] -= 1
            finished.release()

        try:
            for _ in range(12):
                pool.submit(task)
            for _ in range(12):
                assert finished.acquire(timeout=5.0)
        finally:
            pool.shutdown()

        assert peak[0] == 3

    def test_submit_before_start(self):
        with pytest.raises(RuntimeError):
            ThreadPool(workers=1).submit(lambda: None)

    def test_submit_after_shutdown(self):
        pool = ThreadPool(workers=1)
        pool.start()
        pool.shutdown()

        with pytest.raises(RuntimeError):
            pool.submit(lambda: None)

    def test_shutdown_waits_for_queued_tasks(self):
        pool = ThreadPool(workers=1)
        pool.start()
        results = []

        for n in range(5):
            pool.submit(lambda n=n: (time.sleep(0.01), results.append(n)))
        pool.shutdown(wait=True)

        assert results == [0, 1, 2, 3, 4]

    def test_shutdown_stops_workers(self):
        pool = ThreadPool(workers=2)
        pool.start()
        workers = list(pool._workers)

        pool.shutdown()

        assert all(not w.is_alive() for w in workers)
        assert not pool.is_running

    @pytest.mark.parametrize("kwargs", [{"workers": 0}, {"queue_size": -1}])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            ThreadPool(**kwargs)
