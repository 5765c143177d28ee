# social_service/realtime/server.py
import json

from fastapi import WebSocket, WebSocketDisconnect

from social_service.realtime.engine import DispatchEngine


async def serve(engine: DispatchEngine, websocket: WebSocket) -> None:
    """Read frames from one socket until it closes.

    Each frame is handled to completion before the next is read, so events
    from one connection are processed in arrival order.
    """
    await websocket.accept()
    connection = engine.connect(websocket)
    try:
        while True:
            text = await websocket.receive_text()
            try:
                raw = json.loads(text)
            except json.JSONDecodeError:
                raw = None
            await engine.handle_frame(connection, raw)
    except WebSocketDisconnect as e:
        engine.logger.debug(f"{connection!r} closed with code {e.code}")
    finally:
        await engine.disconnect(connection)
