"""
Chat Client Package

Terminal client for a WebSocket chat service: configuration loading, the
JSON transport, the protocol adapter, and the interactive session
controller.

Schemas are organized in the `schemas` subpackage by category:
    - chat: Chat creation request and reply
    - message: Outbound messages and inbound broadcasts
    - delivery: Classification of inbound frames
"""

from .config import ClientConfig, load_config
from .console import ConsoleReader
from .errors import (
    ChatClientError,
    ConfigError,
    ConfigMissingError,
    DialFailedError,
    ProtocolError,
    TransportError,
    UserAbort,
)
from .protocol import ProtocolAdapter
from .session import ActiveChat, SessionController, SessionState
from .transport import Transport, dial_with_retry
from .schemas import (
    # Base
    BaseRequest,
    decode_request,
    # Chat schemas
    NewChatRequest,
    ChatCreated,
    # Message schemas
    NewMessageRequest,
    MessageBroadcast,
    # Deliveries
    UnknownDelivery,
    decode_delivery,
)

__all__ = [
    # Configuration
    "ClientConfig",
    "load_config",
    # Errors
    "ChatClientError",
    "ConfigError",
    "ConfigMissingError",
    "DialFailedError",
    "ProtocolError",
    "TransportError",
    "UserAbort",
    # Connection and session
    "Transport",
    "dial_with_retry",
    "ProtocolAdapter",
    "ConsoleReader",
    "ActiveChat",
    "SessionController",
    "SessionState",
    # Schemas
    "BaseRequest",
    "decode_request",
    "NewChatRequest",
    "ChatCreated",
    "NewMessageRequest",
    "MessageBroadcast",
    "UnknownDelivery",
    "decode_delivery",
]
