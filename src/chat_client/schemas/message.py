"""
Message Schema Definitions

Outbound chat messages and the broadcasts the server fans out to chat
members.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .base import BaseRequest

REQ_TYPE_NEW_MSG = "new_msg"

MSG_TYPE_ADD = "add"


def new_id() -> str:
    """Generate a fresh identifier."""
    return str(uuid.uuid4())


@dataclass
class NewMessageRequest(BaseRequest):
    """
    Request to add a message to a chat.

    The message ID identifies the message locally (logging); the server
    assigns its own and it is not sent.

    Attributes:
        chat_id: ID of the chat to post to
        body: The message text
        message_id: Locally generated message ID
    """

    chat_id: str
    body: str
    message_id: str = field(default_factory=new_id)

    @property
    def _message_type(self) -> str:
        return REQ_TYPE_NEW_MSG

    def payload(self) -> Dict[str, Any]:
        return {"Msg": self.body, "Type": MSG_TYPE_ADD, "ChID": self.chat_id}


@dataclass
class MessageBroadcast:
    """
    A message delivered to the members of a chat.

    Attributes:
        ch_id: ID of the chat the message belongs to
        from_id: ID of the sender
        body: The message text
        msg_id: Server-side message ID, when provided
        t_date: Server timestamp, when provided
    """

    ch_id: str
    from_id: str
    body: str
    msg_id: Optional[str] = None
    t_date: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageBroadcast":
        """Create from the delivery's data object."""
        return cls(
            ch_id=data["ch_id"],
            from_id=str(data.get("from_id", "")),
            body=str(data.get("body", "")),
            msg_id=data.get("msg_id"),
            t_date=data.get("t_date"),
        )
