"""
Chat Routes: 텍스트 대화 + 실시간 음성.

- POST /api/chat/message → 메시지 1개 전송
- WS /api/chat/live → 음성 세션 relay
"""

import logging
from typing import Any

from fastapi import APIRouter, Form, Request, WebSocket

from documind.app.services.chat import ChatService
from documind.app.services.live import LiveVoiceRelay

from .workspace import get_session

logger = logging.getLogger(__name__)

api_router = APIRouter()


@api_router.post("/message")
async def send_message(
    request: Request,
    session_id: str = Form(...),
    message: str = Form(""),  # 빈 문자열 허용, 서비스에서 무시
    lite: bool = Form(False),
    thinking: bool = Form(False),
) -> dict[str, Any]:
    session = get_session(request, session_id)
    service = ChatService(request.app.state.config, request.app.state.provider)
    await service.send(session, message, lite=lite, thinking=thinking)
    return session.to_dict()


@api_router.websocket("/live")
async def live_voice(websocket: WebSocket) -> None:
    """
    실시간 음성 대화.

    브라우저는 연결 후 마이크 프레임을 binary로 전송, 종료 시 {"type": "close"}.
    """
    await websocket.accept()
    logger.info("Live voice client connected")
    relay = LiveVoiceRelay(websocket.app.state.provider)
    await relay.run(websocket)
    if not relay.client_gone:
        await websocket.close()
