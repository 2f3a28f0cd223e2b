import asyncio
import concurrent.futures
import json
import logging
import threading
from typing import Any, Awaitable, Callable, List, Optional

from starlette.websockets import WebSocketDisconnect, WebSocketState

from . import config

logger = logging.getLogger(__name__)


def _is_open(subscriber: Any) -> bool:
    return (
        getattr(subscriber, "client_state", None) == WebSocketState.CONNECTED
        and getattr(subscriber, "application_state", None) == WebSocketState.CONNECTED
    )


class BroadcastHub:
    """
    Live websocket subscribers and the fan-out of typed events to them.

    Membership is guarded by a lock and every pass iterates over a snapshot,
    so connects and disconnects may happen while a broadcast is running.
    Subscribers only receive events emitted while they are connected.
    """

    def __init__(self, send_timeout: Optional[float] = None):
        self._subscribers: set = set()
        self._lock = threading.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._send_timeout = send_timeout
        # strong refs to passes scheduled from the loop itself
        self._tasks: set = set()

    def init(self, loop: Optional[asyncio.AbstractEventLoop]):
        self._loop = loop

    def join(self, subscriber) -> None:
        with self._lock:
            self._subscribers.add(subscriber)
            count = len(self._subscribers)
        logger.info("Client connected to WebSocket (%d live)", count)

    def leave(self, subscriber) -> None:
        with self._lock:
            if subscriber not in self._subscribers:
                return
            self._subscribers.discard(subscriber)
            count = len(self._subscribers)
        logger.info("Client disconnected from WebSocket (%d live)", count)

    def snapshot(self) -> List[Any]:
        with self._lock:
            return list(self._subscribers)

    @property
    def count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    async def for_each_open(self, fn: Callable[[Any], Awaitable[None]]) -> int:
        """Apply `fn` to every open subscriber; returns how many were visited."""
        visited = 0
        for subscriber in self.snapshot():
            if not _is_open(subscriber):
                continue
            await fn(subscriber)
            visited += 1
        return visited

    async def broadcast(self, event_type: str, payload: Any) -> int:
        """Send {type, data} to every open subscriber; returns deliveries."""
        message = json.dumps({"type": event_type, "data": payload})
        delivered = 0

        async def send(subscriber):
            nonlocal delivered
            try:
                await subscriber.send_text(message)
                delivered += 1
            except (WebSocketDisconnect, RuntimeError) as e:
                # peer went away between the state check and the send
                logger.debug("Dropping subscriber during %s: %s", event_type, e)
                self.leave(subscriber)

        await self.for_each_open(send)
        logger.debug("Broadcast %s to %d subscribers", event_type, delivered)
        return delivered

    def publish(self, event_type: str, payload: Any) -> None:
        """
        Broadcast from synchronous code.

        Called on a worker thread, the pass runs on the hub's loop and the
        caller waits for it (bounded by send_timeout) so events leave in the
        order they were published. Called on the loop itself, the pass is
        scheduled as a task.
        """
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.warning("Broadcast hub not bound to a running loop, dropping %s", event_type)
            return

        try:
            current_loop = asyncio.get_running_loop()
        except RuntimeError:
            current_loop = None

        if current_loop is loop:
            task = loop.create_task(self.broadcast(event_type, payload))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
            return

        future = asyncio.run_coroutine_threadsafe(self.broadcast(event_type, payload), loop)
        try:
            future.result(timeout=self._send_timeout)
        except concurrent.futures.TimeoutError:
            future.cancel()
            logger.warning("Broadcast of %s timed out after %ss", event_type, self._send_timeout)


# Global instance
hub = BroadcastHub(send_timeout=config.BROADCAST_TIMEOUT_SEC)


def get_hub() -> BroadcastHub:
    """FastAPI dependency returning the process-wide hub."""
    return hub
