"""
Outbound snapshot delivery.

The simulation produces one SimulationSnapshot per tick and must never wait on
whoever reads them. This module provides the boundary:

- SnapshotSink: async interface for a snapshot consumer (file, socket bridge, test probe)
- InMemorySnapshotSink: keeps snapshots in a list (tests, notebooks)
- JsonLinesSnapshotSink: appends one JSON document per line to a file
- QueueBroadcaster: fans snapshots out to any number of subscribers, each with its
  own bounded queue; slow subscribers lose their oldest snapshots, not the simulation's time
- SnapshotChannel: the hand-off between the tick loop and the sinks. ``offer`` never
  blocks; a background task drains the queue into the sinks and detaches any sink
  that raises.

Usage pattern:
    channel = SnapshotChannel([InMemorySnapshotSink()], maxsize=100)
    await channel.start()
    channel.offer(snapshot)   # from the tick loop, never blocks
    await channel.close()     # drain and close sinks
"""

import asyncio
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Deque, List, Optional, Sequence

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from .logging_utils import log_error
from .schemas import SimulationSnapshot


class SnapshotSink(ABC):
    """Abstract consumer of simulation snapshots.

    All methods are async so sinks can do I/O without blocking the event loop.
    A sink that raises from ``publish`` is detached by the SnapshotChannel; the
    simulation itself carries on.
    """

    async def initialize(self) -> None:
        """Prepare the sink (open files, connections). Called once before the first snapshot."""
        return None

    @abstractmethod
    async def publish(self, snapshot: SimulationSnapshot) -> None:
        """Deliver one snapshot."""
        pass

    async def close(self) -> None:
        """Release resources. Called once after the last snapshot."""
        return None


class InMemorySnapshotSink(SnapshotSink):
    """Keeps published snapshots in memory, optionally only the most recent N."""

    def __init__(self, max_snapshots: Optional[int] = None):
        self.snapshots: Deque[SimulationSnapshot] = deque(maxlen=max_snapshots)
        self.closed = False

    async def publish(self, snapshot: SimulationSnapshot) -> None:
        self.snapshots.append(snapshot)

    async def close(self) -> None:
        self.closed = True

    @property
    def latest(self) -> Optional[SimulationSnapshot]:
        return self.snapshots[-1] if self.snapshots else None


class JsonLinesSnapshotSink(SnapshotSink):
    """Writes each snapshot as one line of JSON.

    The file is truncated on ``initialize``. File I/O runs in a worker thread
    (asyncio.to_thread) so disk latency stays off the event loop. A failed append
    is retried up to ``max_attempts`` times before the error is raised.
    """

    def __init__(self, path: Path | str, max_attempts: int = 3):
        self.path = Path(path)
        self.max_attempts = max_attempts

    async def initialize(self) -> None:
        await asyncio.to_thread(self.path.parent.mkdir, parents=True, exist_ok=True)
        await asyncio.to_thread(self.path.write_text, "", "utf-8")

    async def publish(self, snapshot: SimulationSnapshot) -> None:
        line = snapshot.model_dump_json()
        # Only OSError is retried; anything else reaches the channel straight away.
        async for attempt in AsyncRetrying(
            retry=retry_if_exception_type(OSError),
            stop=stop_after_attempt(self.max_attempts),
            reraise=True,
        ):
            with attempt:
                await asyncio.to_thread(self._append, line)

    def _append(self, line: str) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")


class SnapshotSubscription:
    """One reader's bounded view of a QueueBroadcaster.

    Iterate with ``async for`` until the broadcaster closes or the reader
    unsubscribes.
    """

    def __init__(self, maxsize: int):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0
        self.closed = False

    def offer(self, item: SimulationSnapshot) -> None:
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(item)

    async def get(self) -> Optional[SimulationSnapshot]:
        """Next snapshot, or None once the subscription is closed and drained."""
        if self.closed and self._queue.empty():
            return None
        return await self._queue.get()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Wake a reader blocked on an empty queue; a non-empty queue drains first.
        if not self._queue.full():
            self._queue.put_nowait(None)

    def __aiter__(self) -> "SnapshotSubscription":
        return self

    async def __anext__(self) -> SimulationSnapshot:
        item = await self.get()
        if item is None:
            raise StopAsyncIteration
        return item


class QueueBroadcaster(SnapshotSink):
    """Fan-out sink: every subscriber receives every snapshot it has room for."""

    def __init__(self, maxsize: int = 100):
        self.maxsize = maxsize
        self._subscribers: List[SnapshotSubscription] = []

    def subscribe(self, maxsize: Optional[int] = None) -> SnapshotSubscription:
        """Attach a reader. ``maxsize`` overrides the broadcaster default; 0 means unbounded."""
        subscription = SnapshotSubscription(maxsize if maxsize is not None else self.maxsize)
        self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: SnapshotSubscription) -> None:
        """Disconnect a reader. Safe to call twice."""
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)
        subscription.close()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, snapshot: SimulationSnapshot) -> None:
        for subscription in list(self._subscribers):
            subscription.offer(snapshot)

    async def close(self) -> None:
        for subscription in list(self._subscribers):
            self.unsubscribe(subscription)


_CLOSED = object()


class SnapshotChannel:
    """Bounded, non-blocking hand-off from the tick loop to the sinks."""

    def __init__(self, sinks: Sequence[SnapshotSink] = (), maxsize: int = 100):
        self.sinks: List[SnapshotSink] = list(sinks)
        self.maxsize = maxsize
        self.dropped = 0
        self._queue: Optional[asyncio.Queue] = None
        self._dispatcher: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Initialize sinks and start the dispatcher task."""
        for sink in self.sinks:
            await sink.initialize()
        self._queue = asyncio.Queue(maxsize=self.maxsize)
        self._dispatcher = asyncio.create_task(self._dispatch())

    def offer(self, snapshot: SimulationSnapshot) -> bool:
        """Queue a snapshot without waiting.

        Returns:
            False if the queue was full and its oldest snapshot had to be dropped.
        """
        if self._queue is None:
            raise RuntimeError("SnapshotChannel.start() must be awaited before offering snapshots")
        kept_all = True
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            kept_all = False
        self._queue.put_nowait(snapshot)
        return kept_all

    async def close(self) -> None:
        """Deliver everything still queued, then close the sinks."""
        if self._queue is not None and self._dispatcher is not None:
            # Waiting here is fine: the tick loop is already done.
            await self._queue.put(_CLOSED)
            await self._dispatcher
            self._dispatcher = None
        for sink in self.sinks:
            try:
                await sink.close()
            except Exception as exc:
                log_error(f"[Broadcast] Failed to close {type(sink).__name__}: {exc}")

    async def _dispatch(self) -> None:
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            for sink in list(self.sinks):
                try:
                    await sink.publish(item)
                except Exception as exc:
                    # A broken reader must not affect the simulation: drop the sink.
                    log_error(f"[Broadcast] Detaching {type(sink).__name__} after error: {exc}")
                    self.sinks.remove(sink)
