"""Trailing-window debounce for high-frequency widget events.

Render ticks and pointer movement arrive far faster than the extractors
need. A Debouncer collapses a burst into one call made after ``window_ms``
of silence, with the arguments of the last event in the burst.
"""

import asyncio
import inspect
from pathlib import Path
from typing import Any, Callable, Optional, Tuple
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger
from src.core.tasks import TaskRunner

logger = get_logger("debounce")


class Debouncer:
    """Schedules a re-evaluation after a fixed trailing window."""

    def __init__(
        self,
        window_ms: int,
        callback: Callable[..., Any],
        runner: TaskRunner,
        name: str = "debounce",
    ):
        if window_ms < 0:
            raise ValueError("window_ms must be >= 0")
        self.window_ms = window_ms
        self.name = name
        self._callback = callback
        self._runner = runner
        self._handle: Optional[asyncio.TimerHandle] = None
        self._args: Tuple[Any, ...] = ()
        self.fired = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self, *args: Any) -> None:
        """Restart the window, remembering the latest arguments."""
        self._args = args
        if self._handle is not None:
            self._handle.cancel()
        self._handle = self._runner.loop.call_later(self.window_ms / 1000.0, self._fire)

    def flush(self) -> None:
        """Fire a pending call now."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._fire()

    def cancel(self) -> None:
        """Drop a pending call."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._args = ()

    def _fire(self) -> None:
        self._handle = None
        args, self._args = self._args, ()
        self.fired += 1
        try:
            result = self._callback(*args)
        except Exception as e:
            logger.error(f"{self.name} callback failed: {e}", exc_info=True)
            return
        if inspect.isawaitable(result):
            self._runner.spawn(result, label=self.name)
