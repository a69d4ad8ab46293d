"""Console logging and debug helpers for Scene Compass.

Warnings and errors always reach the console. Debug lines, counters and
timings only record while debug mode is enabled from the add-on preferences.
"""

from __future__ import annotations

import time
from collections import defaultdict
from contextlib import contextmanager
from typing import DefaultDict, Iterator


PREFIX = "[SceneCompass]"

_enabled = False
_counters: DefaultDict[str, int] = defaultdict(int)
_timing_total_ms: DefaultDict[str, float] = defaultdict(float)
_timing_count: DefaultDict[str, int] = defaultdict(int)


def set_enabled(value: bool) -> None:
    global _enabled
    _enabled = bool(value)


def enabled() -> bool:
    return _enabled


def info(message: str) -> None:
    print(f"{PREFIX} {message}")


def warn(message: str) -> None:
    print(f"{PREFIX} Warning: {message}")


def error(message: str) -> None:
    print(f"{PREFIX} Error: {message}")


def log(message: str) -> None:
    if not enabled():
        return
    print(f"{PREFIX}[Debug] {message}")


def inc(name: str, amount: int = 1) -> None:
    if not enabled():
        return
    _counters[name] += amount


@contextmanager
def timed(name: str) -> Iterator[None]:
    if not enabled():
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        dt_ms = (time.perf_counter() - start) * 1000.0
        _timing_total_ms[name] += dt_ms
        _timing_count[name] += 1


def reset_stats() -> None:
    _counters.clear()
    _timing_total_ms.clear()
    _timing_count.clear()


def dump_stats(force: bool = False) -> None:
    if not force and not enabled():
        return

    print(f"\n{PREFIX}[Debug] ===== Stats =====")

    if _counters:
        print(f"{PREFIX}[Debug] Counters:")
        for k in sorted(_counters.keys()):
            print(f"  - {k}: {_counters[k]}")

    if _timing_count:
        print(f"{PREFIX}[Debug] Timings (avg ms, calls):")
        for k in sorted(_timing_count.keys()):
            calls = _timing_count[k]
            total = _timing_total_ms[k]
            avg = (total / calls) if calls else 0.0
            print(f"  - {k}: {avg:.3f} ms avg ({calls} calls)")

    if not _counters and not _timing_count:
        print(f"{PREFIX}[Debug] (no data yet)")
