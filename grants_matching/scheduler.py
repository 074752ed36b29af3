"""Periodic background jobs with an injectable clock"""
import logging
import threading
import time
from typing import Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class PeriodicTask:
    """
    A job re-armed only after its previous run has completed.

    A run never overlaps another run of the same task; different tasks are
    independent of each other.
    """

    def __init__(self, name: str, interval: float, func: Callable[[], object], clock: Clock):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.name = name
        self.interval = interval
        self.func = func
        self.clock = clock
        self.next_run_at = clock() + interval
        self.runs = 0
        self._running = threading.Lock()

    def is_due(self, now: float) -> bool:
        return now >= self.next_run_at

    def run(self) -> bool:
        """
        Run the job once unless it is already running.

        Returns:
            False if another run of this task was in progress
        """
        if not self._running.acquire(blocking=False):
            return False
        try:
            self.func()
        except Exception as e:
            logger.exception(f"Periodic task {self.name} failed: {e}")
        finally:
            self.runs += 1
            self.next_run_at = self.clock() + self.interval
            self._running.release()
        return True


class Scheduler:
    """Owns the periodic tasks, either driven manually or by one thread per task"""

    def __init__(self, clock: Clock = time.monotonic):
        self.clock = clock
        self.tasks: Dict[str, PeriodicTask] = {}
        self._stop = threading.Event()
        self._threads: List[threading.Thread] = []

    def add(self, name: str, interval: float, func: Callable[[], object]) -> PeriodicTask:
        if name in self.tasks:
            raise ValueError(f"Task {name} already scheduled")
        task = PeriodicTask(name, interval, func, self.clock)
        self.tasks[name] = task
        return task

    def run_pending(self) -> List[str]:
        """Run every due task once, returning the names of the tasks that ran"""
        ran = []
        for task in self.tasks.values():
            if task.is_due(self.clock()) and task.run():
                ran.append(task.name)
        return ran

    def _loop(self, task: PeriodicTask) -> None:
        while not self._stop.wait(max(task.next_run_at - self.clock(), 0)):
            task.run()

    @property
    def running(self) -> bool:
        return bool(self._threads)

    def start(self) -> None:
        if self._threads:
            return
        self._stop.clear()
        for task in self.tasks.values():
            thread = threading.Thread(target=self._loop, args=(task,), name=f"scheduler-{task.name}", daemon=True)
            thread.start()
            self._threads.append(thread)
        logger.info(f"Scheduler started with tasks: {', '.join(self.tasks)}")

    def shutdown(self, timeout: Optional[float] = None) -> None:
        """Stop the task threads, waiting for runs in progress to finish"""
        self._stop.set()
        for thread in self._threads:
            thread.join(timeout)
        self._threads = []
        logger.info("Scheduler stopped")
