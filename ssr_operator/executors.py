from __future__ import annotations

from concurrent.futures import Executor, Future, ThreadPoolExecutor
import logging
import os
import threading
from typing import Any, Callable

from ssr_operator import config

logger = logging.getLogger(__name__)

_default_executor: ThreadPoolExecutor | None = None
_default_lock = threading.Lock()


class SynchronousExecutor(Executor):
    """Runs each submission inline and hands back an already-completed future."""

    def __init__(self) -> None:
        self._shutdown = False

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        if self._shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        future: Future = Future()
        future.set_running_or_notify_cancel()
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        self._shutdown = True


def _pool_size() -> int:
    configured = config.get_optional_value("operator.worker.pool.size")
    if configured:
        return int(configured)
    return os.cpu_count() or 1


def default_executor() -> ThreadPoolExecutor:
    """Return the process-wide worker pool, creating it on first use."""
    global _default_executor
    with _default_lock:
        if _default_executor is None:
            workers = _pool_size()
            _default_executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ssr-worker")
            logger.info("Started shared request worker pool with %s workers", workers)
        return _default_executor


def shutdown_default_executor(*, wait: bool = True) -> None:
    global _default_executor
    with _default_lock:
        if _default_executor is None:
            return
        _default_executor.shutdown(wait=wait)
        _default_executor = None
        logger.info("Shut down shared request worker pool")
