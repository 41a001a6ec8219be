import asyncio
import uuid
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel

from exceptions import InvalidTransitionError, RoomReassignmentError
from logging_config import get_logger

logger = get_logger(__name__)


class SessionState(str, Enum):
    CONNECTING = "connecting"
    JOINED = "joined"
    CLOSED = "closed"


class SessionEvent(str, Enum):
    JOIN_ACCEPTED = "join_accepted"
    JOIN_REJECTED = "join_rejected"
    DISCONNECTED = "disconnected"


_TRANSITIONS = {
    (SessionState.CONNECTING, SessionEvent.JOIN_ACCEPTED): SessionState.JOINED,
    (SessionState.CONNECTING, SessionEvent.JOIN_REJECTED): SessionState.CLOSED,
    (SessionState.CONNECTING, SessionEvent.DISCONNECTED): SessionState.CLOSED,
    (SessionState.JOINED, SessionEvent.DISCONNECTED): SessionState.CLOSED,
    (SessionState.CLOSED, SessionEvent.DISCONNECTED): SessionState.CLOSED,
}


def transition(state: SessionState, event: SessionEvent) -> SessionState:
    """Return the state a session moves to when `event` happens in `state`."""
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransitionError(state, event) from None


class PeerSession:
    """Server-side state for one client's WebSocket connection.

    The websocket only needs `send_text`, `send_bytes` and `close(code, reason)`,
    which is what Starlette's WebSocket provides. Relayed frames go through
    `deliver`, which queues them on a per-session outbox drained by its own
    task, so a slow recipient never holds up whoever sent the frame.
    """

    def __init__(self, websocket, session_id: Optional[str] = None):
        self.websocket = websocket
        self.session_id = session_id or str(uuid.uuid4())
        self.state = SessionState.CONNECTING
        self._room: Optional[str] = None
        self._outbox: asyncio.Queue = asyncio.Queue()
        self._writer: Optional[asyncio.Task] = None

    def __repr__(self):
        return f"PeerSession({self.session_id[:8]}, state={self.state.value}, room={self._room!r})"

    @property
    def room(self) -> Optional[str]:
        return self._room

    @property
    def is_closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def apply(self, event: SessionEvent) -> SessionState:
        self.state = transition(self.state, event)
        return self.state

    def assign_room(self, room_key: str):
        if self._room is not None:
            raise RoomReassignmentError(self._room, room_key)
        self.apply(SessionEvent.JOIN_ACCEPTED)
        self._room = room_key

    def reject(self):
        self.apply(SessionEvent.JOIN_REJECTED)

    def mark_closed(self):
        self.apply(SessionEvent.DISCONNECTED)
        if self._writer is not None and not self._writer.done():
            self._writer.cancel()

    async def send_envelope(self, envelope: BaseModel):
        await self.websocket.send_text(envelope.model_dump_json())

    async def close(self, code: int = 1000, reason: Optional[str] = None):
        await self.websocket.close(code=code, reason=reason)

    def deliver(self, frame: Union[str, bytes]):
        """Queue a relayed frame for this session without waiting for it to be sent."""
        if self.is_closed:
            return
        self._outbox.put_nowait(frame)
        if self._writer is None or self._writer.done():
            self._writer = asyncio.create_task(self._drain_outbox())

    async def flush(self):
        """Wait until every queued frame has been handed to the transport or dropped."""
        await self._outbox.join()

    async def _drain_outbox(self):
        while True:
            frame = await self._outbox.get()
            try:
                if isinstance(frame, bytes):
                    await self.websocket.send_bytes(frame)
                else:
                    await self.websocket.send_text(frame)
            except Exception as e:
                logger.warning(f"Failed to relay frame to {self!r}: {e}")
            finally:
                self._outbox.task_done()
