"""
Creative Routes.

- POST /api/creative/run → 이미지 생성/편집, 비디오 생성
- GET /api/creative/output → 생성 결과 바이너리 (img/video src)
"""

from typing import Any

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import Response

from documind.app.services.creative import CreativeService
from documind.domain.errors import DocuMindError, ErrorCodes
from documind.domain.schemas import CreativeTask

from .workspace import get_session, raise_bad_request

api_router = APIRouter()


@api_router.post("/run")
async def run_creative(
    request: Request,
    session_id: str = Form(...),
    task: str = Form(...),
    prompt: str = Form(""),
    aspect_ratio: str = Form("1:1"),
    image_size: str = Form("1K"),
) -> dict[str, Any]:
    session = get_session(request, session_id)
    try:
        creative_task = CreativeTask(task)
    except ValueError:
        raise_bad_request(
            DocuMindError(
                ErrorCodes.INVALID_OPTION,
                f"Unknown creative task: {task}",
                field="task",
                value=task,
            )
        )

    service = CreativeService(request.app.state.config, request.app.state.provider)
    try:
        await service.run(session, creative_task, prompt, aspect_ratio, image_size)
    except DocuMindError as e:
        raise_bad_request(e)
    return session.to_dict()


@api_router.get("/output")
async def get_output(request: Request, session_id: str) -> Response:
    output = get_session(request, session_id).state.creative_output
    if output is None:
        raise HTTPException(status_code=404, detail="No creative output")
    return Response(content=output.data, media_type=output.mime_type)
