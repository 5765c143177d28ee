# social_service/realtime/connection.py
import logging
import uuid
from enum import Enum
from typing import Any, Protocol

from fastapi import WebSocketDisconnect

logger = logging.getLogger("SocialAPI.realtime")


class Transport(Protocol):
    async def send_json(self, data: Any) -> None: ...


class ConnectionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    BOUND = "bound"
    CLOSED = "closed"


class Connection:
    """One live socket and the user identity bound to it.

    UNAUTHENTICATED -> BOUND on ``join``; any state -> CLOSED on disconnect.
    CLOSED is terminal: emits become no-ops and the engine ignores events.
    """

    def __init__(self, transport: Transport, connection_id: str | None = None):
        self.transport = transport
        self.id = connection_id or uuid.uuid4().hex
        self.state = ConnectionState.UNAUTHENTICATED
        self.user_id: int | None = None

    def __repr__(self) -> str:
        return f"<Connection {self.id} user={self.user_id} state={self.state.value}>"

    @property
    def is_bound(self) -> bool:
        return self.state is ConnectionState.BOUND

    @property
    def is_closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    def bind(self, user_id: int) -> None:
        if self.state is not ConnectionState.UNAUTHENTICATED:
            raise RuntimeError(f"Cannot bind a connection in state {self.state.value}")
        self.user_id = user_id
        self.state = ConnectionState.BOUND

    def close(self) -> None:
        self.state = ConnectionState.CLOSED

    async def emit(self, event: str, data: Any) -> bool:
        """Send one frame; returns False instead of raising when the socket is gone."""
        if self.is_closed:
            return False
        try:
            await self.transport.send_json({"event": event, "data": data})
            return True
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.debug(f"Dropped {event} for {self!r}: {e}")
            return False
