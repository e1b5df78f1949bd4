"""Cancellable debounced calls on the running asyncio loop."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class DebouncedCall:
    """Run a coroutine after a quiet period, restarting the wait on each arm.

    Arming while a call is still waiting cancels the waiting call and starts
    a new one; only the last arm in a burst fires. Once the callback has
    started it is not cancelled by a later arm, so its result must be
    checked for staleness by the caller.

    Example:
        refresh = DebouncedCall(0.5, name="input-quote")
        refresh.arm(lambda: fetch_quote(amount))
    """

    def __init__(self, delay: float, name: str = "debounced"):
        self.delay = delay
        self.name = name
        self._waiting: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def armed(self) -> bool:
        """True while a call is waiting out its quiet period."""
        return self._waiting is not None and not self._waiting.done()

    @property
    def pending(self) -> bool:
        """True while any armed or fired call has not finished."""
        return any(not task.done() for task in self._tasks)

    def arm(self, factory: Callable[[], Awaitable[None]]) -> None:
        """Schedule ``factory()`` after the quiet period, replacing any waiting call."""
        self.cancel()
        task = asyncio.get_running_loop().create_task(self._run(factory))
        self._waiting = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def cancel(self) -> None:
        """Cancel a call that has not fired yet."""
        if self.armed:
            self._waiting.cancel()
            logger.debug(f"{self.name}: cancelled pending call")
        self._waiting = None

    async def _run(self, factory: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self.delay)
        if self._waiting is asyncio.current_task():
            self._waiting = None
        await factory()

    async def wait(self) -> None:
        """Wait until every armed or in-flight call has finished."""
        while self.pending:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
