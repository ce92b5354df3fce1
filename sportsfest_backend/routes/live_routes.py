# sportsfest_backend/routes/live_routes.py
# WebSocket feed of broadcast events: one subscription per connected viewer.

import asyncio
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from sportsfest_backend.core.logger import get_logger

router = APIRouter()
log = get_logger("routes.live")


@router.websocket("/ws/live")
async def live_feed(websocket: WebSocket, topics: Optional[str] = None):
    """
    Streams {"event": topic, "data": payload} frames.
    `topics` is a comma-separated subset of match:update, match:created, match:deleted.
    """
    channel = websocket.app.state.channel
    wanted = [topic.strip() for topic in topics.split(",") if topic.strip()] if topics else None

    try:
        subscription = channel.subscribe(wanted)
    except ValueError as e:
        await websocket.close(code=1008, reason=str(e))
        return

    await websocket.accept()

    async def forward():
        async for event in subscription:
            await websocket.send_json(event)

    async def wait_for_disconnect():
        # Viewers never send anything meaningful; this only notices the close
        while True:
            await websocket.receive_text()

    sender = asyncio.create_task(forward())
    receiver = asyncio.create_task(wait_for_disconnect())
    try:
        done, pending = await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                log.warning(f"Live feed closed with error: {exc!r}")
    finally:
        subscription.close()
