"""
=============================================================================
THREAD POOL
=============================================================================

A fixed set of worker threads fed by one task queue. The accept loop
submits one task per connection; a worker runs it from parsing to close.

    ┌──────────────┐   submit()   ┌───────────────────┐
    │ Accept loop  │─────────────►│  queue.Queue      │
    └──────────────┘              │  [conn][conn]...  │
                                  └────────┬──────────┘
                          ┌────────────────┼────────────────┐
                          ▼                ▼                ▼
                     ┌─────────┐      ┌─────────┐      ┌─────────┐
                     │Worker-0 │      │Worker-1 │ ...  │Worker-9 │
                     └─────────┘      └─────────┘      └─────────┘

=============================================================================
QUEUE POLICY
=============================================================================

queue_size=0 (default): the queue is unbounded. When every worker is busy,
new connections wait for a free worker, however many arrive. This keeps the
server from ever refusing work, at the cost of unbounded memory under a
flood of slow clients.

queue_size=N: at most N connections wait. submit() returns False once the
queue is full, and the server answers that connection with 503.

The pool never grows or shrinks: all workers start in start() and run until
shutdown().

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any, List
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 10


class WorkerState(Enum):
    """Worker thread states, for stats."""
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """
    A deferred function call.

    Attributes:
        func: The function to execute.
        args: Positional arguments.
        kwargs: Keyword arguments.
        submitted_at: When the task was queued, for wait-time logging.
    """

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)


class Worker(threading.Thread):
    """
    Pulls tasks off the shared queue until it receives the None poison pill.

    A task that raises is logged and counted; the worker carries on with
    the next task.
    """

    def __init__(self, task_queue: queue.Queue, worker_id: int, idle_timeout: float = 1.0):
        # Daemon so a stalled client never keeps the process alive
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.time()
        waited = start_time - task.submitted_at

        try:
            task.func(*task.args, **task.kwargs)
            elapsed = time.time() - start_time
            logger.debug(
                f"Worker {self.worker_id} completed task in {elapsed:.3f}s "
                f"(queued {waited:.3f}s)"
            )
            self.tasks_completed += 1
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        """Ask the worker to stop after its current task."""
        self._shutdown.set()


class ThreadPool:
    """
    Fixed-size thread pool.

    Args:
        workers: Number of worker threads, all started by start().
        queue_size: Maximum number of waiting tasks, 0 for unbounded.
        idle_timeout: How often an idle worker re-checks for shutdown.

    Usage:
        pool = ThreadPool(workers=10)
        pool.start()
        if not pool.submit(handle, args=(conn,)):
            reject(conn)
        pool.shutdown()
    """

    def __init__(
        self,
        workers: int = DEFAULT_WORKERS,
        queue_size: int = 0,
        idle_timeout: float = 1.0,
    ):
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        if queue_size < 0:
            raise ValueError(f"queue_size must be >= 0, got {queue_size}")

        self.num_workers = workers
        self.max_queue_size = queue_size
        self.idle_timeout = idle_timeout

        # maxsize=0 makes queue.Queue unbounded
        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)

        self._workers: List[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    @property
    def is_running(self) -> bool:
        return self._started and not self._shutdown

    def start(self):
        """Start every worker thread."""
        with self._lock:
            if self._started:
                return

            bound = self.max_queue_size or "unbounded"
            logger.info(f"Starting thread pool with {self.num_workers} workers (queue: {bound})")

            for worker_id in range(self.num_workers):
                worker = Worker(self._task_queue, worker_id, self.idle_timeout)
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(self, func: Callable[..., Any], args: tuple = (), kwargs: Optional[dict] = None) -> bool:
        """
        Queue a task without blocking.

        Returns:
            True if queued, False if the bounded queue is full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        try:
            self._task_queue.put(task, block=False)
        except queue.Full:
            logger.warning(f"Task queue full ({self.max_queue_size} waiting)")
            return False
        return True

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Let queued tasks finish before stopping the workers.
            timeout: Upper bound on the wait for queued tasks, in seconds.
                None waits as long as it takes.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = None if timeout is None else time.time() + timeout
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Shutdown timeout, abandoning queued tasks")
                    break
                time.sleep(0.05)

        for worker in self._workers:
            worker.shutdown()
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                pass  # Workers still see their shutdown flag

        for worker in self._workers:
            worker.join(timeout=2.0)

        stopped = sum(1 for w in self._workers if not w.is_alive())
        logger.info(f"Thread pool shutdown complete ({stopped}/{len(self._workers)} workers stopped)")

        self._workers.clear()
        self._started = False

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def pending(self) -> int:
        """Tasks waiting for a worker."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counts."""
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self.pending,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
