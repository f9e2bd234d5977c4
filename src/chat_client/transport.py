"""
WebSocket Transport

This module owns the duplex connection to the chat server. It sends and
receives one JSON value per text frame and enforces a read deadline that
the server's keepalive pings push forward.

Architecture:
    - Built on the websockets asyncio client
    - The connection class reports inbound pings so the deadline can be
      refreshed; pongs are answered by the library
    - Supports dependency injection of the connect function (for testing)

Concurrency:
    One task writes (serialized by a lock), one task reads. Either may
    close the transport; close is idempotent.
"""

import asyncio
import json
import logging
from typing import Any, Callable, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.frames import Frame, Opcode

from .errors import DialFailedError, ProtocolError, TransportError, UserAbort

logger = logging.getLogger(__name__)

# Seconds a read may wait before the server must have pinged
PONG_WAIT = 30.0

# Seconds to wait for the peer to answer a close frame before dropping
CLOSE_TIMEOUT = 1.0


class PingAwareConnection(ClientConnection):
    """Client connection that invokes ``on_ping`` for each inbound ping."""

    on_ping: Optional[Callable[[], None]] = None

    def process_event(self, event) -> None:
        super().process_event(event)
        if (
            isinstance(event, Frame)
            and event.opcode is Opcode.PING
            and self.on_ping is not None
        ):
            self.on_ping()


class Transport:
    """
    JSON-over-WebSocket connection with a read deadline.

    Attributes:
        url: WebSocket URL of the server
        read_timeout: Seconds added to the deadline on refresh or ping
    """

    def __init__(self, websocket, url: str, read_timeout: float = PONG_WAIT):
        self.url = url
        self.read_timeout = read_timeout
        self._websocket = websocket
        self._send_lock = asyncio.Lock()
        self._deadline: Optional[float] = None
        self._closed = False

        # Route keepalive pings to the deadline
        websocket.on_ping = self._on_ping

    @classmethod
    async def dial(
        cls,
        url: str,
        auth_token: str,
        read_timeout: float = PONG_WAIT,
        connect_factory: Optional[Callable] = None,
        close_timeout: float = CLOSE_TIMEOUT,
    ) -> "Transport":
        """
        Open a connection to the chat server.

        Args:
            url: WebSocket URL of the server
            auth_token: Value of the Authorization header, sent verbatim
            read_timeout: Read deadline window in seconds
            connect_factory: Optional replacement for ``websockets`` connect
            close_timeout: Seconds a close waits for the peer before the
                connection is dropped

        Returns:
            Connected Transport

        Raises:
            DialFailedError: If the handshake or the TCP connection fails
        """
        connect_factory = connect_factory or connect
        logger.info("Connecting to server: %s", url)
        try:
            websocket = await connect_factory(
                url,
                additional_headers={"Authorization": auth_token},
                ping_interval=None,
                close_timeout=close_timeout,
                create_connection=PingAwareConnection,
            )
        except (WebSocketException, OSError, asyncio.TimeoutError) as e:
            logger.error("Failed to connect to %s: %s", url, e)
            raise DialFailedError(f"Could not connect to {url}: {e}")

        logger.info("Connected to %s", url)
        return cls(websocket, url, read_timeout)

    @property
    def closed(self) -> bool:
        """True once the transport has been closed by either side."""
        return self._closed

    def _on_ping(self) -> None:
        logger.debug("Ping received, extending read deadline")
        self.set_read_deadline()

    def set_read_deadline(self, timeout: Optional[float] = None) -> None:
        """Set the read deadline to now plus ``timeout`` seconds."""
        if timeout is None:
            timeout = self.read_timeout
        self._deadline = asyncio.get_running_loop().time() + timeout

    async def send_json(self, value: Any) -> None:
        """
        Send one JSON value as a single text frame.

        Raises:
            ProtocolError: If the value is not JSON serializable
            TransportError: If the connection is closed or the write fails
        """
        try:
            frame = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Cannot encode frame: {e}")

        if self._closed:
            raise TransportError("Connection is closed")

        async with self._send_lock:
            try:
                await self._websocket.send(frame)
            except (ConnectionClosed, OSError) as e:
                logger.warning("Send failed: %s", e)
                await self.close()
                raise TransportError(f"Send failed: {e}")
        logger.debug("Sent frame: %s", frame)

    async def recv_json(self) -> Any:
        """
        Receive one frame and decode it.

        Waits until a frame arrives or the read deadline passes. Pings that
        arrive during the wait extend the deadline.

        Raises:
            ProtocolError: If the frame is not valid JSON
            TransportError: On deadline expiry, close or I/O failure
        """
        if self._closed:
            raise TransportError("Connection is closed")

        loop = asyncio.get_running_loop()
        receive = asyncio.ensure_future(self._websocket.recv())
        try:
            while not receive.done():
                if self._deadline is None:
                    await asyncio.wait({receive})
                    break
                remaining = self._deadline - loop.time()
                if remaining <= 0:
                    receive.cancel()
                    logger.warning("No ping from server within read deadline")
                    await self.close()
                    raise TransportError("Read deadline exceeded")
                await asyncio.wait({receive}, timeout=remaining)
        finally:
            if not receive.done():
                receive.cancel()

        try:
            message = receive.result()
        except (ConnectionClosed, OSError) as e:
            logger.warning("Receive failed: %s", e)
            await self.close()
            raise TransportError(f"Receive failed: {e}")

        logger.debug("Received frame: %s", message)
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        try:
            return json.loads(message)
        except json.JSONDecodeError as e:
            raise ProtocolError(f"Malformed frame: {e}")

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._websocket.close()
        except (ConnectionClosed, OSError) as e:
            logger.debug("Error while closing connection: %s", e)
        logger.info("Disconnected from %s", self.url)


async def _dial_until_cancelled(cancel, *args) -> Transport:
    if cancel is None:
        return await Transport.dial(*args)

    dial = asyncio.ensure_future(Transport.dial(*args))
    cancel_wait = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait(
            {dial, cancel_wait}, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        cancel_wait.cancel()
        if not dial.done():
            dial.cancel()

    if dial.done() and not dial.cancelled():
        return dial.result()
    logger.info("Connection attempt cancelled")
    raise UserAbort("Cancelled while connecting")


async def dial_with_retry(
    url: str,
    auth_token: str,
    read_timeout: float = PONG_WAIT,
    retries: int = 0,
    delay: float = 5.0,
    cancel: Optional[asyncio.Event] = None,
    connect_factory: Optional[Callable] = None,
) -> Transport:
    """
    Dial with a bounded retry policy.

    Args:
        retries: Extra attempts after the first failure (0 fails fast)
        delay: Seconds to wait between attempts
        cancel: Event that aborts a pending attempt or the wait between
            attempts

    Raises:
        DialFailedError: When every attempt failed
        UserAbort: If ``cancel`` fires while connecting or waiting to retry
    """
    attempt = 0
    while True:
        try:
            return await _dial_until_cancelled(
                cancel, url, auth_token, read_timeout, connect_factory
            )
        except DialFailedError:
            if attempt >= retries:
                raise
            attempt += 1
            logger.info(
                "Retrying connection in %.1fs (attempt %d of %d)",
                delay,
                attempt,
                retries,
            )
            if cancel is None:
                await asyncio.sleep(delay)
                continue
            try:
                await asyncio.wait_for(cancel.wait(), timeout=delay)
            except asyncio.TimeoutError:
                continue
            raise UserAbort("Cancelled while waiting to reconnect")
