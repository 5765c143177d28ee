# social_service/api/ws.py
from fastapi import APIRouter, WebSocket

from social_service.realtime.server import serve

router = APIRouter()


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    await serve(websocket.app.state.dispatch_engine, websocket)
