"""
Protocol Adapter

Typed send/receive on top of the transport. Requests are encoded into the
outer envelope (see ``schemas.base``); inbound frames are classified into
deliveries (see ``schemas.delivery``). Nothing here retries.
"""

import logging

from .schemas import BaseRequest, Delivery, decode_delivery
from .transport import Transport

logger = logging.getLogger(__name__)


class ProtocolAdapter:
    """
    Encodes requests and decodes deliveries for a transport.

    Attributes:
        transport: The underlying connection
    """

    def __init__(self, transport: Transport):
        self.transport = transport

    async def send_request(self, request: BaseRequest) -> None:
        """
        Encode and send a request.

        Raises:
            ProtocolError: If the request cannot be encoded
            TransportError: If the connection fails
        """
        envelope = request.to_dict()
        logger.debug("Sending %s request", envelope["Type"])
        await self.transport.send_json(envelope)

    async def receive_delivery(self) -> Delivery:
        """
        Read and classify one delivery.

        Raises:
            ProtocolError: If the frame is malformed
            TransportError: If the connection fails or the deadline passes
        """
        frame = await self.transport.recv_json()
        return decode_delivery(frame)

    def set_read_deadline(self, timeout=None) -> None:
        """Refresh the transport's read deadline."""
        self.transport.set_read_deadline(timeout)

    @property
    def closed(self) -> bool:
        return self.transport.closed

    async def close(self) -> None:
        await self.transport.close()
