"""
Chat Session Controller

Interactive state machine driving one connected session:

    MENU -> CREATE_CHAT -> MENU
    MENU -> ENTER_CHAT -> SEND_LOOP -> MENU
    any  -> SHUTDOWN

Architecture:
    - The controller task reads prompts and is the only writer on the
      connection
    - A single receiver task, started on first entry to a chat, is the only
      reader once running; it prints broadcasts for the active chat and
      routes chat-created replies back to the controller
    - Every wait races the cancellation event set by SIGINT/SIGTERM

Usage:
    controller = SessionController(adapter, cancel, ConsoleReader())
    await controller.run()
"""

import asyncio
import enum
import logging
import threading
from typing import Callable, Optional

from .errors import ProtocolError, TransportError, UserAbort
from .prompts import (
    CHAT_CREATED,
    CHAT_ID_PROMPT,
    CHOICE_CREATE_CHAT,
    CHOICE_ENTER_CHAT,
    CHOICE_EXIT,
    CHOICE_RETURN,
    EXITING,
    INVALID_CHOICE,
    MENU_PROMPT,
    MESSAGE_PROMPT,
    PEER_PROMPT,
    format_message,
)
from .protocol import ProtocolAdapter
from .schemas import (
    ChatCreated,
    Delivery,
    MessageBroadcast,
    NewChatRequest,
    NewMessageRequest,
    new_id,
)
from .transport import PONG_WAIT

logger = logging.getLogger(__name__)


class SessionState(enum.Enum):
    """States of the session controller."""

    MENU = "menu"
    CREATE_CHAT = "create_chat"
    ENTER_CHAT = "enter_chat"
    SEND_LOOP = "send_loop"
    SHUTDOWN = "shutdown"


class ActiveChat:
    """
    The chat whose messages are displayed.

    Written by the controller and read by the receiver. An empty ID means
    no chat is active and nothing is displayed.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._chat_id = ""

    def get(self) -> str:
        with self._lock:
            return self._chat_id

    def set(self, chat_id: str) -> None:
        with self._lock:
            self._chat_id = chat_id

    def clear(self) -> None:
        self.set("")

    def matches(self, chat_id: str) -> bool:
        """True if ``chat_id`` is the active, non-empty chat."""
        current = self.get()
        return bool(current) and current == chat_id


class SessionController:
    """
    Menu-driven chat session over one connection.

    Attributes:
        adapter: Protocol adapter for the connection
        cancel: Event that ends the session when set
        reader: Object with ``async read_line(prompt, cancel) -> str``
        output: Function used to print lines for the user
        user_id: ID of the local user for this connection
        active_chat: Cell holding the active chat ID
        state: Current state
    """

    def __init__(
        self,
        adapter: ProtocolAdapter,
        cancel: asyncio.Event,
        reader,
        output: Callable[[str], None] = print,
        user_id: Optional[str] = None,
        reply_timeout: float = PONG_WAIT,
    ):
        self.adapter = adapter
        self.cancel = cancel
        self.reader = reader
        self.output = output
        self.user_id = user_id or new_id()
        self.reply_timeout = reply_timeout
        self.active_chat = ActiveChat()
        self.state = SessionState.MENU

        self._receiver: Optional[asyncio.Task] = None
        self._replies: Optional[asyncio.Queue] = None

        self._handlers = {
            SessionState.MENU: self._menu,
            SessionState.CREATE_CHAT: self._create_chat,
            SessionState.ENTER_CHAT: self._enter_chat,
            SessionState.SEND_LOOP: self._send_loop,
        }

    @property
    def receiver(self) -> Optional[asyncio.Task]:
        """The receiver task, or None before the first chat is entered."""
        return self._receiver

    async def run(self) -> None:
        """Drive the state machine until SHUTDOWN, then release the connection."""
        logger.info("Session started for user %s", self.user_id)
        try:
            while self.state is not SessionState.SHUTDOWN:
                if self.cancel.is_set() or self.adapter.closed:
                    self.state = SessionState.SHUTDOWN
                    break
                handler = self._handlers[self.state]
                try:
                    self.state = await handler()
                except UserAbort:
                    logger.info("Session cancelled")
                    self.state = SessionState.SHUTDOWN
                except TransportError as e:
                    logger.error("Connection lost: %s", e)
                    self.state = SessionState.SHUTDOWN
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Close the connection and stop the receiver. Idempotent."""
        self.state = SessionState.SHUTDOWN
        self.active_chat.clear()
        await self.adapter.close()
        if self._receiver is not None and not self._receiver.done():
            self._receiver.cancel()
            try:
                await self._receiver
            except asyncio.CancelledError:
                pass
        logger.info("Session closed")

    async def _prompt(self, prompt: str) -> str:
        return await self.reader.read_line(prompt, self.cancel)

    async def _menu(self) -> SessionState:
        choice = (await self._prompt(MENU_PROMPT)).strip()
        if not choice:
            return SessionState.SHUTDOWN
        if choice == CHOICE_CREATE_CHAT:
            return SessionState.CREATE_CHAT
        if choice == CHOICE_ENTER_CHAT:
            return SessionState.ENTER_CHAT
        if choice == CHOICE_EXIT:
            self.output(EXITING)
            return SessionState.SHUTDOWN
        self.output(INVALID_CHOICE)
        return SessionState.MENU

    async def _create_chat(self) -> SessionState:
        peer_id = (await self._prompt(PEER_PROMPT)).strip()
        if not peer_id or peer_id == CHOICE_RETURN:
            return SessionState.MENU

        if self._replies is not None:
            # Drop replies nobody waited for
            while not self._replies.empty():
                self._replies.get_nowait()

        try:
            await self.adapter.send_request(
                NewChatRequest(user_ids=[self.user_id, peer_id])
            )
        except ProtocolError as e:
            logger.error("Failed to encode new chat request: %s", e)
            return SessionState.MENU

        delivery = await self._await_reply()
        if isinstance(delivery, ChatCreated):
            self.output(CHAT_CREATED.format(chat_id=delivery.chat_id))
        else:
            logger.debug("Unexpected reply to new chat request: %r", delivery)
        return SessionState.MENU

    async def _await_reply(self) -> Optional[Delivery]:
        """Wait for the delivery answering a new chat request."""
        if self._receiver is None:
            self.adapter.set_read_deadline(self.reply_timeout)
            try:
                return await self._until_cancelled(
                    self.adapter.receive_delivery()
                )
            except ProtocolError as e:
                logger.debug("Discarding malformed reply: %s", e)
                return None

        # The receiver owns the socket; it hands replies over the queue
        try:
            return await self._until_cancelled(
                asyncio.wait_for(self._replies.get(), self.reply_timeout),
                self._receiver,
            )
        except asyncio.TimeoutError:
            logger.warning("No reply to new chat request")
            return None

    async def _until_cancelled(self, awaitable, *watch):
        """
        Await ``awaitable`` unless the session is cancelled first.

        Tasks in ``watch`` end the wait when they finish.

        Raises:
            UserAbort: If the cancellation event fired
            TransportError: If a watched task finished first
        """
        work = asyncio.ensure_future(awaitable)
        cancel_wait = asyncio.ensure_future(self.cancel.wait())
        try:
            await asyncio.wait(
                {work, cancel_wait, *watch},
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            cancel_wait.cancel()
            if not work.done():
                work.cancel()

        if work.done() and not work.cancelled():
            return work.result()
        if self.cancel.is_set():
            raise UserAbort("Cancelled while waiting for the server")
        raise TransportError("Connection closed while waiting for the server")

    async def _enter_chat(self) -> SessionState:
        chat_id = (await self._prompt(CHAT_ID_PROMPT)).strip()
        if not chat_id or chat_id == CHOICE_RETURN:
            return SessionState.MENU

        self.active_chat.set(chat_id)
        self._ensure_receiver()
        return SessionState.SEND_LOOP

    async def _send_loop(self) -> SessionState:
        chat_id = self.active_chat.get()
        while True:
            body = await self._prompt(MESSAGE_PROMPT)
            if not body:
                self.active_chat.clear()
                return SessionState.MENU

            request = NewMessageRequest(chat_id=chat_id, body=body)
            try:
                await self.adapter.send_request(request)
            except ProtocolError as e:
                logger.error("Failed to encode message: %s", e)
                self.active_chat.clear()
                return SessionState.MENU
            except TransportError as e:
                logger.error("Failed to send message: %s", e)
                self.active_chat.clear()
                return SessionState.MENU
            logger.debug(
                "Sent message %s to chat %s", request.message_id, chat_id
            )

    def _ensure_receiver(self) -> None:
        if self._receiver is not None:
            return
        self._replies = asyncio.Queue()
        self._receiver = asyncio.ensure_future(self._receive_loop())
        logger.info("Receiver started")

    async def _receive_loop(self) -> None:
        try:
            while not self.cancel.is_set():
                self.adapter.set_read_deadline()
                try:
                    delivery = await self.adapter.receive_delivery()
                except ProtocolError as e:
                    logger.debug("Discarding malformed delivery: %s", e)
                    continue
                self._dispatch(delivery)
        except TransportError as e:
            logger.warning("Receiver stopped: %s", e)
        finally:
            await self.adapter.close()

    def _dispatch(self, delivery: Delivery) -> None:
        if isinstance(delivery, MessageBroadcast):
            if self.active_chat.matches(delivery.ch_id):
                self.output(format_message(delivery.from_id, delivery.body))
            else:
                logger.debug(
                    "Ignoring message for chat %s (active: %s)",
                    delivery.ch_id,
                    self.active_chat.get(),
                )
        elif isinstance(delivery, ChatCreated):
            self._replies.put_nowait(delivery)
        else:
            logger.debug("Ignoring delivery of unknown shape: %r", delivery)
