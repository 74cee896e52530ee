"""Bounded-concurrency dispatch for rate-limited external calls."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class ThrottleConfig:
    limit: int = 1
    delay_seconds: float = 0.0

    @classmethod
    def from_config(cls, cfg: dict) -> "ThrottleConfig":
        return cls(
            limit=max(int(cfg.get("limit", 1)), 1),
            delay_seconds=max(float(cfg.get("delay_seconds", 0.0)), 0.0),
        )


class DispatchThrottle:
    """At most ``limit`` calls in flight, each followed by a fixed delay.

    A slot is held for the duration of the call plus ``delay_seconds``, so
    the next call waiting on that slot is not issued until the delay has
    elapsed.
    """

    def __init__(self, config: ThrottleConfig, sleep: Callable[[float], None] = time.sleep) -> None:
        self.config = config
        self.slots = threading.BoundedSemaphore(config.limit)
        self.sleep = sleep
        self.lock = threading.Lock()
        self.in_flight = 0
        self.peak_in_flight = 0
        self.dispatched = 0

    @contextmanager
    def slot(self) -> Iterator[None]:
        self.slots.acquire()
        with self.lock:
            self.in_flight += 1
            self.dispatched += 1
            self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            yield
        finally:
            try:
                if self.config.delay_seconds:
                    self.sleep(self.config.delay_seconds)
            finally:
                with self.lock:
                    self.in_flight -= 1
                self.slots.release()


def map_in_order(items: Iterable[T], fn: Callable[[T], R], *, workers: int = 1) -> list[R]:
    """Apply ``fn`` to every item and return results in input order.

    Results are written into their input slot rather than appended on
    completion. The first exception stops rows that have not started yet
    and is re-raised once in-flight rows have finished.
    """
    materialised = list(items)
    results: list[R | None] = [None] * len(materialised)
    stop = threading.Event()
    errors: list[tuple[int, Exception]] = []
    errors_lock = threading.Lock()

    def _run(index: int, item: T) -> None:
        if stop.is_set():
            return
        try:
            results[index] = fn(item)
        except Exception as exc:
            stop.set()
            with errors_lock:
                errors.append((index, exc))

    if workers <= 1:
        for index, item in enumerate(materialised):
            _run(index, item)
            if stop.is_set():
                break
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            for index, item in enumerate(materialised):
                pool.submit(_run, index, item)

    if errors:
        # Report the failure of the earliest row.
        _index, first = min(errors, key=lambda pair: pair[0])
        raise first
    return results  # type: ignore[return-value]
