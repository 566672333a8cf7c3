import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from support_chat.core.interfaces.storage import IStorage
from support_chat.dependencies import get_completion_service, get_storage
from support_chat.services.completion import CompletionService
from support_chat.services.session import ChatSession

router = APIRouter(tags=["chat"])
logger = logging.getLogger(__name__)


@router.websocket("/ws")
async def chat_channel(
        websocket: WebSocket,
        storage: IStorage = Depends(get_storage),
        completion_service: CompletionService = Depends(get_completion_service),
):
    """
    Chat channel carrying {type, payload} JSON envelopes.
    Each event is processed to completion before the next one is read.
    """
    await websocket.accept()
    logger.info("New WebSocket connection established")

    session = ChatSession(storage=storage, completion_service=completion_service, send=websocket.send_json)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))

            # Binary frames carry the same JSON envelope as text frames
            data = message.get("text")
            if data is None:
                data = message.get("bytes") or b""
            await session.handle_raw(data)
    except WebSocketDisconnect:
        logger.info(f"WebSocket connection closed (conversation={session.conversation_id})")
