from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import PlainTextResponse
from starlette.websockets import WebSocketState

from constants import SIGNALING_PATH
from handlers import dispatch, handle_disconnect
from logging_config import get_logger
from session import PeerSession

logger = get_logger(__name__)

signaling_router = APIRouter(tags=["signaling"])

HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]


@signaling_router.websocket(SIGNALING_PATH)
async def signaling_endpoint(websocket: WebSocket):
    """Signaling connection: one join, then offer/answer/candidate/chat frames relayed to the room."""
    registry = websocket.app.state.registry
    await websocket.accept()
    session = PeerSession(websocket)
    client_host = websocket.client.host if websocket.client else "unknown"
    logger.info(f"Signaling connection {session.session_id} opened from {client_host}")

    try:
        while not session.is_closed:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"Signaling connection {session.session_id} disconnected (code {message.get('code')})")
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            await dispatch(registry, session, raw)
    except WebSocketDisconnect:
        logger.info(f"Signaling connection {session.session_id} disconnected")
    except Exception as e:
        logger.error(f"Error on signaling connection {session.session_id}: {e}", exc_info=True)
    finally:
        await handle_disconnect(registry, session)
        if websocket.application_state == WebSocketState.CONNECTED and websocket.client_state == WebSocketState.CONNECTED:
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"Error closing WebSocket: {e}")


@signaling_router.api_route(SIGNALING_PATH, methods=HTTP_METHODS, include_in_schema=False)
async def signaling_requires_upgrade(request: Request):
    logger.info(f"Rejecting plain {request.method} to {SIGNALING_PATH}: upgrade required")
    return PlainTextResponse(
        "Upgrade Required",
        status_code=426,
        headers={"Upgrade": "websocket", "Connection": "Upgrade"},
    )
