"""Coalesce bursts of calls into a bounded number of invocations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class Debouncer[T]:
    """Trailing-edge debounce of an async function taking one argument.

    Each call stores its argument and restarts a `wait` second quiet timer.
    The timer is never pushed past `max_wait` seconds after the first call of
    the current burst. When it fires, the burst ends and the function is
    invoked once with the latest argument.

    Calls must come from the event loop thread.
    """

    func: Callable[[T], Awaitable[None]]
    wait: float = 5
    max_wait: float = 15

    _pending: tuple[T] | None = field(default=None, init=False, repr=False)
    _burst_started_at: float | None = field(default=None, init=False, repr=False)
    _timer: asyncio.TimerHandle | None = field(default=None, init=False, repr=False)
    _in_flight: set[asyncio.Task[None]] = field(
        default_factory=set, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.max_wait < self.wait:
            raise ValueError("max_wait must not be shorter than wait")

    def __call__(self, arg: T) -> None:
        loop = asyncio.get_running_loop()
        now = loop.time()
        if self._burst_started_at is None:
            self._burst_started_at = now
        self._pending = (arg,)

        elapsed = now - self._burst_started_at
        delay = max(0.0, min(self.wait, self.max_wait - elapsed))
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(delay, self._fire)

    @property
    def pending(self) -> bool:
        """Whether a call is waiting for the timer to fire."""
        return self._pending is not None

    def _fire(self) -> None:
        pending = self._pending
        self._reset()
        if pending is None:
            return

        task = asyncio.get_running_loop().create_task(self._invoke(*pending))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _invoke(self, arg: T) -> None:
        try:
            await self.func(arg)
        except Exception as e:
            # Nothing awaits this task
            log.warning("Debounced call to %s failed: %s", self.func, e, exc_info=e)

    def _reset(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending = None
        self._burst_started_at = None

    def cancel(self) -> None:
        """Drop the pending call and stop any invocation still running."""
        self._reset()
        for task in self._in_flight:
            task.cancel()
