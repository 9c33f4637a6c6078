"""
This file sets up the WebSocket transport that talks to the rosbridge server on the robot
Basically, it owns the socket and reports its lifecycle back to the session as events
"""

import asyncio
import logging
import threading
from typing import Callable, Optional

import websockets
from websockets.exceptions import ConnectionClosedError, InvalidURI, WebSocketException
from websockets.uri import parse_uri

from config import SOCKET_OPEN_TIMEOUT_S
from .models import (
    SocketClosed,
    SocketError,
    SocketEvent,
    SocketMessage,
    SocketOpened,
)

logger = logging.getLogger(__name__)

EventCallback = Callable[["WebSocketConnection", SocketEvent], None]


class BridgeLoop:
    """
    Dedicated background thread running the asyncio event loop for bridge sockets.

    Every socket created on the same BridgeLoop delivers its events on this
    one thread, so events never overlap.
    """

    def __init__(self, name: str = "rosbridge-loop"):
        self.name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """The running event loop, started on first use."""
        with self._lock:
            if self._loop is None or self._loop.is_closed():
                self._start()
            return self._loop

    def _start(self) -> None:
        loop = asyncio.new_event_loop()
        ready = threading.Event()

        def run() -> None:
            asyncio.set_event_loop(loop)
            loop.call_soon(ready.set)
            try:
                loop.run_forever()
            finally:
                loop.close()

        self._loop = loop
        self._thread = threading.Thread(target=run, name=self.name, daemon=True)
        self._thread.start()
        ready.wait()

    def stop(self) -> None:
        with self._lock:
            if self._loop is None:
                return
            self._loop.call_soon_threadsafe(self._loop.stop)
            if self._thread is not None:
                self._thread.join(timeout=5)
            self._loop = None
            self._thread = None


class WebSocketConnection:
    """
    One WebSocket connection to a rosbridge endpoint.

    The connection is created idle; open() starts it on the bridge loop.
    Outbound text frames go through a FIFO outbox drained by a single
    writer task, so send() never blocks the caller.
    """

    def __init__(
        self,
        endpoint: str,
        on_event: EventCallback,
        bridge_loop: BridgeLoop,
        open_timeout: float = SOCKET_OPEN_TIMEOUT_S
    ):
        """
        Args:
            endpoint: ws:// or wss:// URI of the rosbridge server
            on_event: Called as on_event(connection, event) on the loop thread
            bridge_loop: Loop the connection runs on
            open_timeout: Seconds allowed for the opening handshake

        Raises:
            ValueError: If the endpoint is not a valid WebSocket URI
        """
        try:
            parse_uri(endpoint)
        except InvalidURI as e:
            raise ValueError(f"invalid rosbridge URL {endpoint!r}: {e}") from e

        self.endpoint = endpoint
        self.open_timeout = open_timeout
        self._on_event = on_event
        self._bridge_loop = bridge_loop
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._outbox: "asyncio.Queue[str]" = asyncio.Queue()
        self._websocket = None
        self._closing = False

    def open(self) -> None:
        self._loop = self._bridge_loop.loop
        asyncio.run_coroutine_threadsafe(self._run(), self._loop)

    def send(self, text: str) -> None:
        if self._loop is None:
            logger.warning("Dropping frame for %s: connection was never opened", self.endpoint)
            return
        self._loop.call_soon_threadsafe(self._outbox.put_nowait, text)

    def close(self) -> None:
        if self._loop is None:
            return
        self._loop.call_soon_threadsafe(self._request_close)

    def _request_close(self) -> None:
        self._closing = True
        if self._websocket is not None:
            asyncio.ensure_future(self._websocket.close())

    def _deliver(self, event: SocketEvent) -> None:
        try:
            self._on_event(self, event)
        except Exception:
            logger.exception("Error while handling %s from %s", type(event).__name__, self.endpoint)

    async def _run(self) -> None:
        try:
            websocket = await websockets.connect(self.endpoint, open_timeout=self.open_timeout)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            logger.warning("Could not connect to %s: %s", self.endpoint, e)
            self._deliver(SocketError(str(e) or type(e).__name__))
            self._deliver(SocketClosed())
            return

        self._websocket = websocket
        if self._closing:
            # close() was requested while the handshake was in flight
            await websocket.close()
            self._deliver(SocketClosed(websocket.close_code, websocket.close_reason or ""))
            return

        self._deliver(SocketOpened())
        writer = asyncio.create_task(self._drain_outbox(websocket))
        try:
            async for message in websocket:
                self._deliver(SocketMessage(message))
        except ConnectionClosedError as e:
            self._deliver(SocketError(str(e)))
        finally:
            writer.cancel()
            self._deliver(SocketClosed(websocket.close_code, websocket.close_reason or ""))

    async def _drain_outbox(self, websocket) -> None:
        while True:
            text = await self._outbox.get()
            try:
                await websocket.send(text)
            except WebSocketException as e:
                logger.warning("Dropping frame for %s: %s", self.endpoint, e)
                return


_default_loop = BridgeLoop()


def connection_factory(
    bridge_loop: Optional[BridgeLoop] = None,
    open_timeout: float = SOCKET_OPEN_TIMEOUT_S
) -> Callable[[str, EventCallback], WebSocketConnection]:
    """
    Socket factory for BridgeSession backed by WebSocketConnection.

    Args:
        bridge_loop: Loop to run sockets on (a process-wide one by default)
        open_timeout: Seconds allowed for the opening handshake
    """
    loop = bridge_loop or _default_loop

    def create(endpoint: str, on_event: EventCallback) -> WebSocketConnection:
        return WebSocketConnection(endpoint, on_event, loop, open_timeout=open_timeout)

    return create
