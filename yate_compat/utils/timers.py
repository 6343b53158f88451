"""
Timers no estilo setTimeout/setInterval sobre o event loop asyncio.

Delays em milissegundos; valores abaixo de 1ms viram 1ms. Callbacks que
retornam coroutine são agendados como task.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

MIN_DELAY_MS = 1


def _delay_seconds(delay_ms: Any) -> float:
    try:
        delay = float(delay_ms)
    except (TypeError, ValueError):
        delay = 0.0
    return max(delay, MIN_DELAY_MS) / 1000.0


def _run(callback: Callable, args: tuple) -> None:
    try:
        result = callback(*args)
    except Exception as e:
        logger.error(f"Timer callback error: {e}")
        return
    if asyncio.iscoroutine(result):
        asyncio.ensure_future(result)


class IntervalHandle:
    """Handle de um timer repetitivo."""

    def __init__(self, loop: asyncio.AbstractEventLoop, delay: float, callback: Callable, args: tuple):
        self._loop = loop
        self._delay = delay
        self._callback = callback
        self._args = args
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False
        self._schedule()

    def _schedule(self) -> None:
        self._handle = self._loop.call_later(self._delay, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._schedule()
        _run(self._callback, self._args)

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()

    def cancelled(self) -> bool:
        return self._cancelled


def set_timeout(callback: Callable, delay_ms: Any = 0, *args: Any) -> asyncio.TimerHandle:
    loop = asyncio.get_running_loop()
    return loop.call_later(_delay_seconds(delay_ms), _run, callback, args)


def set_interval(callback: Callable, delay_ms: Any = 0, *args: Any) -> IntervalHandle:
    return IntervalHandle(asyncio.get_running_loop(), _delay_seconds(delay_ms), callback, args)


def clear_timeout(handle: Any) -> None:
    if handle is not None:
        handle.cancel()


clear_interval = clear_timeout
