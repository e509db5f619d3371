from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from loguru import logger

from trackdrop.context import AppContext

from ..deps import get_app_context
from ..event_stream import event_stream

router = APIRouter()


@router.websocket("/events")
async def events_websocket(websocket: WebSocket, ctx: AppContext = Depends(get_app_context)):
    """WebSocket endpoint streaming import events to the client."""
    event_stream.attach(ctx.events)
    await event_stream.connect(websocket)

    try:
        await websocket.send_json({"type": "credits", "data": {"credits": ctx.credits.get()}})
        # Clients do not send anything meaningful; keep reading to notice disconnects
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Event stream client disconnected")
    finally:
        event_stream.disconnect(websocket)
