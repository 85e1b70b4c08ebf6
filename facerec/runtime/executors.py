"""Execution contexts used to keep pipeline state on a single owner thread.

Frame analysis and still captures run on background threads, but every
callback that touches overlay or capture state is posted to one "main"
executor. Each executor here implements ``execute(fn, *args)``.
"""

from __future__ import annotations

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional, Protocol

from facerec.logging.logger import get_logger


class Executor(Protocol):
    def execute(self, fn: Callable[..., Any], *args: Any) -> None:
        ...


class InlineExecutor:
    """Runs callables immediately on the calling thread."""

    def execute(self, fn: Callable[..., Any], *args: Any) -> None:
        fn(*args)


class SerialExecutor:
    """Queue drained by whichever thread calls ``run_pending``/``run_until``."""

    def __init__(self) -> None:
        self._queue: "queue.Queue[tuple[Callable[..., Any], tuple[Any, ...]]]" = queue.Queue()

    def execute(self, fn: Callable[..., Any], *args: Any) -> None:
        self._queue.put((fn, args))

    def run_pending(self) -> int:
        ran = 0
        while True:
            try:
                fn, args = self._queue.get_nowait()
            except queue.Empty:
                return ran
            fn(*args)
            ran += 1

    def run_until(self, done: Callable[[], bool], poll_interval: float = 0.05) -> None:
        while not done():
            try:
                fn, args = self._queue.get(timeout=poll_interval)
            except queue.Empty:
                continue
            fn(*args)
        self.run_pending()


class PoolExecutor:
    """Fire-and-forget wrapper over a thread pool."""

    def __init__(self, max_workers: int, thread_name_prefix: str = "facerec") -> None:
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=thread_name_prefix)

    def execute(self, fn: Callable[..., Any], *args: Any) -> None:
        future = self._pool.submit(fn, *args)
        future.add_done_callback(_log_unhandled)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)


def _log_unhandled(future) -> None:
    exc = future.exception()
    if exc is not None:
        get_logger().error("background task failed: %s", exc, exc_info=exc)


class ThreadOwner:
    """Pins an object to the first thread that writes it."""

    def __init__(self, label: str) -> None:
        self._label = label
        self._owner: Optional[int] = None

    def check(self) -> None:
        current = threading.get_ident()
        if self._owner is None:
            self._owner = current
            return
        if self._owner != current:
            raise RuntimeError(f"{self._label} accessed off its owning thread")

    def release(self) -> None:
        self._owner = None
