"""Publish/subscribe bus for log records.

Subscriber exceptions never reach the publishing logger.
"""

from __future__ import annotations

import contextlib
import sys
import traceback
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class LogRecord:
    level_name: str
    plain: str
    logger_name: str


LogCallback = Callable[[LogRecord], None]


class LogBus:
    def __init__(self) -> None:
        self._subs_by_level: dict[str, list[LogCallback]] = {}
        self._subs_all: list[LogCallback] = []

    def subscribe(self, level_name: str, cb: LogCallback) -> None:
        self._subs_by_level.setdefault(level_name, []).append(cb)

    def unsubscribe(self, level_name: str, cb: LogCallback) -> None:
        subs = self._subs_by_level.get(level_name)
        if not subs or cb not in subs:
            return
        subs.remove(cb)
        if not subs:
            self._subs_by_level.pop(level_name, None)

    def subscribe_all(self, cb: LogCallback) -> None:
        self._subs_all.append(cb)

    def unsubscribe_all(self, cb: LogCallback) -> None:
        if cb in self._subs_all:
            self._subs_all.remove(cb)

    def publish(self, record: LogRecord) -> None:
        targets = list(self._subs_all) + list(self._subs_by_level.get(record.level_name, []))
        for cb in targets:
            try:
                cb(record)
            except Exception:
                # Never route through the logger here, it would recurse.
                msg = "LogBus subscriber raised; suppressed.\n" + traceback.format_exc()
                with contextlib.suppress(Exception):
                    sys.stderr.write(msg)

    def clear(self) -> None:
        self._subs_by_level.clear()
        self._subs_all.clear()


_LOG_BUS: LogBus | None = None


def get_log_bus() -> LogBus:
    global _LOG_BUS
    if _LOG_BUS is None:
        _LOG_BUS = LogBus()
    return _LOG_BUS
