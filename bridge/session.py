"""
Per-connection control loop.

A reader task moves inbound frames into a bounded queue that discards the
oldest frame when full, so the worker always acts on recent telemetry. The
worker answers each frame, pacing replies to the actuation period.
"""

import asyncio
import enum
import logging
import time
from typing import Awaitable, Callable, Optional

from bridge.protocol import MANUAL_RESPONSE, ManualMessage, Telemetry, format_actuation, parse_message

logger = logging.getLogger("mpc_bridge.session")

_CLOSED = object()


class SessionState(enum.Enum):
    AWAITING_MESSAGE = "awaiting_message"
    DISPATCHING = "dispatching"
    CLOSED = "closed"


def pacing_delay(elapsed: float, period: float) -> float:
    """Seconds to wait before replying so replies are not sent faster than period."""
    remaining = period - elapsed
    return remaining if remaining > 0 else 0.0


class DropOldestQueue:
    """asyncio queue with a fixed capacity that evicts the oldest item on overflow."""

    def __init__(self, maxsize: int):
        if maxsize < 1:
            raise ValueError(f"maxsize must be at least 1, got {maxsize}")
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def put_nowait(self, item) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            logger.debug("Inbound queue full; dropped oldest message (%d so far)", self.dropped)
        self._queue.put_nowait(item)

    async def get(self):
        return await self._queue.get()


class SessionHandler:
    """
    Real-time loop for one simulator connection.

    Args:
        controller: Object with compute_control(telemetry) -> ControlResult
        receive: Coroutine returning the next text frame, or None once closed
        send: Coroutine sending one text frame
        actuation_period: Reply cadence (seconds)
        queue_size: Inbound queue capacity
        slow_cycle_margin: Overrun past the period (seconds) before a cycle is logged as slow
        sleep: Coroutine used for pacing waits
        clock: Time source in seconds
    """

    def __init__(self, controller,
                 receive: Callable[[], Awaitable[Optional[str]]],
                 send: Callable[[str], Awaitable[None]],
                 actuation_period: float = 0.1,
                 queue_size: int = 10,
                 slow_cycle_margin: float = 0.05,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.controller = controller
        self.receive = receive
        self.send = send
        self.actuation_period = actuation_period
        self.queue_size = queue_size
        self.slow_cycle_margin = slow_cycle_margin
        self.sleep = sleep
        self.clock = clock
        self.state = SessionState.AWAITING_MESSAGE
        self.cycles = 0

    async def run(self) -> None:
        """Serve the connection until the channel closes."""
        queue = DropOldestQueue(self.queue_size)
        reader = asyncio.create_task(self._read(queue))
        try:
            while True:
                self.state = SessionState.AWAITING_MESSAGE
                msg = await queue.get()
                if msg is _CLOSED:
                    break
                self.state = SessionState.DISPATCHING
                await self.dispatch(msg)
        finally:
            self.state = SessionState.CLOSED
            reader.cancel()
            await asyncio.gather(reader, return_exceptions=True)

    async def _read(self, queue: DropOldestQueue) -> None:
        while True:
            msg = await self.receive()
            if msg is None:
                queue.put_nowait(_CLOSED)
                return
            queue.put_nowait(msg)

    async def dispatch(self, msg: str) -> None:
        """Answer a single inbound frame."""
        parsed = parse_message(msg)
        if parsed is None:
            logger.debug("Dropped unparseable message: %.80s", msg)
            return
        if isinstance(parsed, Telemetry):
            await self.handle_telemetry(parsed)
        elif isinstance(parsed, ManualMessage):
            await self.sleep(self.actuation_period)
            await self.send(MANUAL_RESPONSE)

    async def handle_telemetry(self, telemetry: Telemetry) -> None:
        start = self.clock()
        try:
            result = await asyncio.to_thread(self.controller.compute_control, telemetry)
        except Exception:
            logger.exception("Control cycle failed; no command sent")
            return
        response = format_actuation(result)
        elapsed = self.clock() - start
        self.cycles += 1

        if elapsed > self.actuation_period + self.slow_cycle_margin:
            logger.warning(
                "[SLOW] control cycle duration=%.3fs period=%.3fs",
                elapsed,
                self.actuation_period,
            )
        elif elapsed > self.actuation_period:
            logger.debug("Control cycle overran period by %.3fs", elapsed - self.actuation_period)
        remaining = pacing_delay(elapsed, self.actuation_period)
        if remaining > 0:
            await self.sleep(remaining)
        await self.send(response)
