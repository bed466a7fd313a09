"""
Bounded worker pools for the publish pipeline's collaborator calls.

A call that overruns its timeout keeps its worker until it returns, since a
running thread cannot be cancelled. Each collaborator therefore gets its own
pool, and a pool whose workers are all occupied refuses new calls instead of
queueing them behind the stuck ones.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError

logger = logging.getLogger(__name__)


class StageBusyError(RuntimeError):
    """Every worker of a stage is still occupied by earlier calls."""


class StagePool:
    """Runs one collaborator's calls with a timeout and a hard concurrency cap."""

    def __init__(self, name: str, max_workers: int):
        self.name = name
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=f"publish-{name}")
        self._slots = threading.BoundedSemaphore(max_workers)

    def call(self, timeout: float, func, *args):
        """
        Run `func(*args)` on a free worker and wait at most `timeout` seconds.

        Raises:
            StageBusyError: no worker is free
            TimeoutError: the call did not finish in time (its worker stays busy until it does)
        """
        if not self._slots.acquire(blocking=False):
            raise StageBusyError(f"All {self.max_workers} {self.name} workers are busy")

        try:
            future = self._executor.submit(self._run, func, *args)
        except RuntimeError:
            self._slots.release()
            raise

        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning(f"{self.name} call still running after {timeout}s; worker held until it returns")
            raise TimeoutError(f"{self.name} timed out after {timeout}s")

    def _run(self, func, *args):
        try:
            return func(*args)
        finally:
            self._slots.release()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False)
