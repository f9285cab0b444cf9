"""
Workspace Routes: 대시보드 + 세션/모드/파일 관리.

- GET / → 대시보드 (Jinja2)
- POST /api/workspace/session → 세션 생성 (또는 기존 세션 재개)
- GET /api/workspace/state → 현재 뷰 상태
- POST /api/workspace/mode → 모드 전환 (출력 초기화)
- POST /api/workspace/upload → 입력 파일 첨부
- GET /api/workspace/file → 첨부 파일 미리보기
- GET /api/workspace/steps → 단계 변화 SSE
- GET /api/workspace/key → API 키 설정 여부

다른 라우트 모듈은 get_session / raise_bad_request 를 공용으로 사용.
"""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any, NoReturn

from fastapi import APIRouter, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, Response, StreamingResponse
from fastapi.templating import Jinja2Templates

from documind.core.session import SessionStore, WorkspaceSession
from documind.domain.constants import (
    DEFAULT_HUB_QUERY,
    DEFAULT_INTEL_INTENT,
    GITHUB_URL,
    IMAGE_ASPECT_RATIOS,
    IMAGE_SIZES,
    NARRATION_CREATIVE_DONE,
    NARRATION_READY,
    PROFILE_URL,
    REPO_URL,
    RESULT_TABS,
    VIDEO_ASPECT_RATIOS,
)
from documind.domain.errors import DocuMindError, ErrorCodes
from documind.domain.schemas import AppMode, CreativeTask

logger = logging.getLogger(__name__)

# Jinja2 템플릿 설정
_templates_dir = Path(__file__).parent.parent / "templates"
jinja_templates = Jinja2Templates(directory=_templates_dir)

# Routers
router = APIRouter()  # HTML pages
api_router = APIRouter()  # API endpoints

# SSE 폴링 간격 (초)
STEP_POLL_INTERVAL = 0.2


# =============================================================================
# Shared helpers
# =============================================================================


def get_store(request: Request) -> SessionStore:
    store: SessionStore = request.app.state.sessions
    return store


def get_session(request: Request, session_id: str) -> WorkspaceSession:
    """세션 조회. 모르는 ID면 404."""
    session = get_store(request).get(session_id)
    if session is None:
        raise HTTPException(
            status_code=404,
            detail={"code": ErrorCodes.UNKNOWN_SESSION, "session_id": session_id},
        )
    return session


def raise_bad_request(error: DocuMindError) -> NoReturn:
    """입력 검증 실패 → 400."""
    logger.info(f"Rejected request: [{error.code}] {error}")
    raise HTTPException(status_code=400, detail=error.to_dict()) from error


# =============================================================================
# Page
# =============================================================================


@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request) -> HTMLResponse:
    """대시보드. 세션은 페이지 로드 후 /api/workspace/session 으로 생성."""
    return jinja_templates.TemplateResponse(
        request,
        "index.html",
        {
            "modes": [mode.value for mode in AppMode],
            "creative_tasks": [task.value for task in CreativeTask],
            "result_tabs": RESULT_TABS,
            "image_aspect_ratios": IMAGE_ASPECT_RATIOS,
            "image_sizes": IMAGE_SIZES,
            "video_aspect_ratios": VIDEO_ASPECT_RATIOS,
            "default_intent": DEFAULT_INTEL_INTENT,
            "default_hub_query": DEFAULT_HUB_QUERY,
            "narration_ready": NARRATION_READY,
            "narration_creative_done": NARRATION_CREATIVE_DONE,
            "repo_url": REPO_URL,
            "github_url": GITHUB_URL,
            "profile_url": PROFILE_URL,
        },
    )


# =============================================================================
# API Routes
# =============================================================================


@api_router.post("/session")
async def create_session(
    request: Request,
    session_id: str | None = Form(None),
) -> dict[str, Any]:
    """세션 생성. 기존 ID를 보내면 해당 세션 재개."""
    session = get_store(request).get_or_create(session_id)
    return session.to_dict()


@api_router.get("/state")
async def get_state(request: Request, session_id: str) -> dict[str, Any]:
    return get_session(request, session_id).to_dict()


@api_router.post("/mode")
async def change_mode(
    request: Request,
    session_id: str = Form(...),
    mode: str = Form(...),
) -> dict[str, Any]:
    session = get_session(request, session_id)
    try:
        app_mode = AppMode(mode)
    except ValueError:
        raise_bad_request(
            DocuMindError(
                ErrorCodes.INVALID_OPTION,
                f"Unknown mode: {mode}",
                field="mode",
                value=mode,
            )
        )
    session.change_mode(app_mode)
    return session.to_dict()


@api_router.post("/upload")
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    session_id: str = Form(...),
) -> dict[str, Any]:
    """입력 파일 첨부. 이전 출력은 모두 초기화."""
    session = get_session(request, session_id)
    data = await file.read()
    if not data:
        raise_bad_request(
            DocuMindError(ErrorCodes.FILE_REQUIRED, "Uploaded file is empty.")
        )

    uploaded = session.attach_file(
        file.filename or "upload",
        file.content_type or "application/octet-stream",
        data,
    )
    logger.info(
        f"Session {session.session_id}: attached {uploaded.filename} "
        f"({uploaded.mime_type}, {len(data)} bytes)"
    )
    return session.to_dict()


@api_router.get("/file")
async def get_file(request: Request, session_id: str) -> Response:
    """첨부 파일 원본 (미리보기용)."""
    uploaded = get_session(request, session_id).state.file
    if uploaded is None:
        raise HTTPException(status_code=404, detail={"code": ErrorCodes.FILE_REQUIRED})
    return Response(content=uploaded.data, media_type=uploaded.mime_type)


async def step_events(
    session: WorkspaceSession,
    is_disconnected: Callable[[], Awaitable[bool]],
    poll_interval: float = STEP_POLL_INTERVAL,
) -> AsyncGenerator[dict[str, Any], None]:
    """
    세션 단계 변화 스트림.

    열릴 때 이미 종료 단계면 그건 이전 실행 결과이므로 보내지 않고
    다음 실행(run_seq 증가)부터 따라감.

    Yields:
        {"step", "showIndicator", "indicator"}
    """
    opened_run = session.run_seq
    stale = session.step.is_terminal
    last_step = None
    while True:
        if await is_disconnected():
            return

        if stale and session.run_seq == opened_run:
            await asyncio.sleep(poll_interval)
            continue
        stale = False

        step = session.step
        if step != last_step:
            payload = session.to_dict()
            yield {
                "step": payload["step"],
                "showIndicator": payload["showIndicator"],
                "indicator": payload["indicator"],
            }
            last_step = step

        if step.is_terminal:
            return
        await asyncio.sleep(poll_interval)


@api_router.get("/steps")
async def stream_steps(request: Request, session_id: str) -> StreamingResponse:
    """
    단계 변화 SSE.

    단계가 바뀔 때마다 step 이벤트 전송, 종료 단계(COMPLETED/FAILED)에서 스트림 종료.
    """
    session = get_session(request, session_id)

    async def event_generator() -> AsyncGenerator[str, None]:
        async for data in step_events(session, request.is_disconnected):
            yield f"event: step\ndata: {json.dumps(data)}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


@api_router.get("/key")
async def key_status(request: Request) -> dict[str, bool]:
    """API 키 설정 여부. 키 값은 노출하지 않음."""
    return {"configured": request.app.state.provider.has_api_key}
