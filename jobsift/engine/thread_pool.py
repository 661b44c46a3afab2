"""Thread pool abstraction sized to the scrape platform's capacity."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Dict


class ThreadPoolManager:
    """Hand out named, fixed-size executors and shut them down together."""

    def __init__(self, default_workers: int = 7) -> None:
        self.default_workers = default_workers
        self._executors: Dict[str, ThreadPoolExecutor] = {}
        self._lock = Lock()

    def get(self, name: str = "default", max_workers: int | None = None) -> ThreadPoolExecutor:
        with self._lock:
            if name not in self._executors:
                workers = max_workers or self.default_workers
                self._executors[name] = ThreadPoolExecutor(
                    max_workers=workers, thread_name_prefix=f"jobsift-{name}"
                )
            return self._executors[name]

    def release(self, name: str) -> None:
        with self._lock:
            executor = self._executors.pop(name, None)
        if executor is not None:
            executor.shutdown(wait=True)

    def shutdown(self) -> None:
        with self._lock:
            for executor in self._executors.values():
                executor.shutdown(wait=False)
            self._executors.clear()


__all__ = ["ThreadPoolManager"]
