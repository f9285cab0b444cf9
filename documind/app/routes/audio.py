"""
Audio Routes.

- POST /api/audio/transcribe → 첨부 오디오 전사
- POST /api/audio/tts → 텍스트 내레이션 (audio/wav, 실패 시 204)
"""

from typing import Any

from fastapi import APIRouter, Form, Request
from fastapi.responses import Response

from documind.app.services.speech import SpeechService
from documind.domain.errors import DocuMindError

from .workspace import get_session, raise_bad_request

api_router = APIRouter()


@api_router.post("/transcribe")
async def transcribe(
    request: Request,
    session_id: str = Form(...),
) -> dict[str, Any]:
    session = get_session(request, session_id)
    service = SpeechService(request.app.state.config, request.app.state.provider)
    try:
        await service.transcribe(session)
    except DocuMindError as e:
        raise_bad_request(e)
    return session.to_dict()


@api_router.post("/tts")
async def narrate(request: Request, text: str = Form("")) -> Response:
    """내레이션은 보조 기능: 실패해도 에러 응답 없이 204."""
    service = SpeechService(request.app.state.config, request.app.state.provider)
    wav = await service.narrate(text)
    if wav is None:
        return Response(status_code=204)
    return Response(content=wav, media_type="audio/wav")
