import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


def format_clock(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


class TimerController:
    """Per-question countdown.

    ``tick()`` is the only thing that moves time. A paused or stopped timer
    ignores ticks, so a pause landing on the expiring tick only delays expiry
    until the next counted tick.
    """

    def __init__(self, on_expire: Callable[[], None] | None = None):
        self.on_expire = on_expire
        self.limit = 0
        self.remaining = 0
        self.running = False
        self.paused = False
        self._expired = False

    @staticmethod
    def _validate_limit(limit: int) -> int:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValueError(f"Time limit must be a positive integer, got {limit!r}")
        return limit

    def start(self, limit: int):
        self.reset(limit)
        self.paused = False

    def reset(self, limit: int):
        self.limit = self._validate_limit(limit)
        self.remaining = limit
        self.running = True
        self._expired = False

    def stop(self):
        self.running = False

    def pause(self):
        self.paused = True

    def resume(self):
        self.paused = False

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def elapsed(self) -> int:
        return self.limit - self.remaining

    @property
    def urgency(self) -> str:
        if not self.limit:
            return "calm"
        fraction = self.remaining / self.limit
        if fraction > 0.5:
            return "calm"
        if fraction > 0.25:
            return "warning"
        return "critical"

    def format_clock(self) -> str:
        return format_clock(self.remaining)

    def tick(self) -> int:
        if not self.running or self.paused or self._expired:
            return self.remaining

        self.remaining = max(0, self.remaining - 1)
        if self.remaining == 0:
            self._expired = True
            self.running = False
            if self.on_expire is not None:
                self.on_expire()
        return self.remaining


class TickSchedule:
    """Cancellable periodic task that awaits ``callback`` every ``interval`` seconds."""

    def __init__(self, callback: Callable[[], Awaitable[None]], interval: float = 1.0):
        self.callback = callback
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.active:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self):
        task = self._task
        if task is None:
            return
        self._task = None
        # Cancelled from inside the callback: the loop notices it is no longer
        # the owned task and exits once the callback returns.
        if task is not asyncio.current_task():
            task.cancel()

    async def _run(self):
        me = asyncio.current_task()
        try:
            while self._task is me:
                await asyncio.sleep(self.interval)
                if self._task is not me:
                    break
                await self.callback()
        except Exception:
            logger.exception("Tick callback failed; stopping schedule")
            if self._task is me:
                self._task = None
