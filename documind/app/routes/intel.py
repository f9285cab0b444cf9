"""
Document Intelligence + Hugging Face Explorer Routes.

- POST /api/intel/run → 문서 파이프라인 실행
- GET /api/intel/website → 생성된 웹사이트 코드 (iframe srcdoc 대용)
- POST /api/intel/tab → 결과 탭 전환
- POST /api/hub/explore → Hugging Face 탐색
"""

from typing import Any

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse

from documind.app.providers.base import IntelOptions
from documind.app.services.hub import HubService
from documind.app.services.intel import IntelService
from documind.domain.constants import RESULT_TABS
from documind.domain.errors import DocuMindError, ErrorCodes

from .workspace import get_session, raise_bad_request

api_router = APIRouter()
hub_api_router = APIRouter()

WEBSITE_CSP = "sandbox allow-scripts"


@api_router.post("/run")
async def run_intel(
    request: Request,
    session_id: str = Form(...),
    intent: str = Form(""),
    use_search: bool = Form(False),
    use_maps: bool = Form(False),
    use_thinking: bool = Form(False),
) -> dict[str, Any]:
    """
    문서 파이프라인 실행.

    원격 호출 실패는 200 + state.step=FAILED 로 반환 (UI가 에러 표시).
    파일 미첨부는 400.
    """
    session = get_session(request, session_id)
    service = IntelService(request.app.state.config, request.app.state.provider)
    options = IntelOptions(
        use_search=use_search,
        use_maps=use_maps,
        use_thinking=use_thinking,
    )
    try:
        await service.run(session, intent, options)
    except DocuMindError as e:
        raise_bad_request(e)
    return session.to_dict()


@api_router.get("/website", response_class=HTMLResponse)
async def get_website(request: Request, session_id: str) -> HTMLResponse:
    result = get_session(request, session_id).state.result
    if result is None or not result.website_code:
        raise HTTPException(status_code=404, detail="No website code generated")
    # 생성 HTML은 별도 origin 취급 (앱 API 접근 불가)
    return HTMLResponse(
        content=result.website_code,
        headers={"Content-Security-Policy": WEBSITE_CSP},
    )


@api_router.post("/tab")
async def select_tab(
    request: Request,
    session_id: str = Form(...),
    tab: str = Form(...),
) -> dict[str, Any]:
    session = get_session(request, session_id)
    if tab not in RESULT_TABS:
        raise_bad_request(
            DocuMindError(
                ErrorCodes.INVALID_OPTION,
                f"Result tab must be one of {', '.join(RESULT_TABS)}.",
                field="tab",
                value=tab,
            )
        )
    session.state.active_result_tab = tab
    return session.to_dict()


# =============================================================================
# Hugging Face Explorer
# =============================================================================


@hub_api_router.post("/explore")
async def explore_hub(
    request: Request,
    session_id: str = Form(...),
    query: str = Form(""),
) -> dict[str, Any]:
    session = get_session(request, session_id)
    service = HubService(request.app.state.config, request.app.state.provider)
    await service.explore(session, query)
    return session.to_dict()
