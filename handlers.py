"""Join, relay and cleanup handling for signaling connections.

Every handler takes the registry explicitly. A connection's frames are handled
one at a time by `dispatch`, so a join (including its sends) finishes before the
same connection's next frame is looked at.
"""
from backend import RoomRegistry
from constants import ROOM_FULL_CLOSE_CODE, ROOM_FULL_REASON
from logging_config import get_logger
from schemas.envelopes import (
    JoinEnvelope,
    NewPeerEnvelope,
    PeersEnvelope,
    RelayEnvelope,
    RoomFullEnvelope,
    parse_envelope,
)
from session import PeerSession

logger = get_logger(__name__)


async def handle_join(registry: RoomRegistry, session: PeerSession, envelope: JoinEnvelope) -> bool:
    """Admit `session` into the requested room.

    Returns True if the session joined, False if the join was ignored or rejected.
    """
    room_key = envelope.room
    if session.room is not None:
        logger.warning(f"Ignoring join to {room_key} from {session!r}: already in room {session.room}")
        return False

    async with registry.room_lock(room_key):
        peers_before = registry.members(room_key)
        if len(peers_before) < registry.capacity:
            registry.add_member(room_key, session)
            session.assign_room(room_key)
            # still under the room lock: no other join to this room can interleave
            await session.send_envelope(PeersEnvelope(count=len(peers_before) + 1))
            for peer in peers_before:
                try:
                    await peer.send_envelope(NewPeerEnvelope())
                except Exception as e:
                    logger.warning(f"Could not notify {peer!r} in room {room_key} of new peer: {e}")
            logger.info(f"{session!r} joined room {room_key} ({len(peers_before) + 1}/{registry.capacity})")
            return True

    logger.info(f"Rejecting {session!r}: room {room_key} is full ({len(peers_before)}/{registry.capacity})")
    session.reject()
    try:
        await session.send_envelope(RoomFullEnvelope(max=registry.capacity))
    finally:
        await session.close(code=ROOM_FULL_CLOSE_CODE, reason=ROOM_FULL_REASON)
    return False


async def handle_relay(registry: RoomRegistry, session: PeerSession, envelope: RelayEnvelope) -> int:
    """Forward a relay frame verbatim to the other members of the sender's room.

    The frame is queued on each recipient's outbox; delivery failures are
    logged by the recipient's writer. Returns how many recipients it was queued for.
    """
    if session.room is None:
        logger.debug(f"Ignoring {envelope.type} from {session!r}: not in a room")
        return 0

    recipients = [peer for peer in await registry.snapshot(session.room) if peer is not session]
    if not recipients:
        logger.debug(f"No recipients for {envelope.type} in room {session.room}")
        return 0

    for peer in recipients:
        peer.deliver(envelope.raw)
    logger.debug(f"Relayed {envelope.type} from {session!r} to {len(recipients)} peers in room {session.room}")
    return len(recipients)


async def handle_disconnect(registry: RoomRegistry, session: PeerSession) -> bool:
    """Remove a closing session from its room. Safe to call repeatedly."""
    session.mark_closed()
    if session.room is None:
        return False
    removed = await registry.remove_member(session.room, session)
    if removed:
        logger.info(f"{session!r} left room {session.room}")
    return removed


async def dispatch(registry: RoomRegistry, session: PeerSession, raw) -> None:
    envelope = parse_envelope(raw)
    if isinstance(envelope, JoinEnvelope):
        await handle_join(registry, session, envelope)
    elif isinstance(envelope, RelayEnvelope):
        await handle_relay(registry, session, envelope)
    else:
        logger.debug(f"Ignoring frame from {session!r}: {envelope.reason}")
