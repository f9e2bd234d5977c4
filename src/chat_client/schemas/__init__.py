"""
Schemas Package

Wire schemas for client-server communication, organized by category:
chat creation, messages, and inbound delivery classification.
"""

from .base import BaseRequest, decode_request, encode_payload
from .chat import ChatCreated, NewChatRequest, REQ_TYPE_NEW_CHAT
from .message import (
    MessageBroadcast,
    NewMessageRequest,
    MSG_TYPE_ADD,
    REQ_TYPE_NEW_MSG,
    new_id,
)
from .delivery import Delivery, UnknownDelivery, decode_delivery

__all__ = [
    # Base
    "BaseRequest",
    "decode_request",
    "encode_payload",
    # Chat schemas
    "ChatCreated",
    "NewChatRequest",
    "REQ_TYPE_NEW_CHAT",
    # Message schemas
    "MessageBroadcast",
    "NewMessageRequest",
    "MSG_TYPE_ADD",
    "REQ_TYPE_NEW_MSG",
    "new_id",
    # Deliveries
    "Delivery",
    "UnknownDelivery",
    "decode_delivery",
]
