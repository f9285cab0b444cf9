"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn documind.app.main:app --reload
- 프로덕션: uvicorn documind.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from documind import __version__
from documind.app.providers.gemini import GeminiProvider
from documind.app.routes import audio, chat, creative, intel, workspace
from documind.core.logging import configure_logging
from documind.core.session import SessionStore

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}
        return data


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: .env/설정 로드, Provider/세션 저장소 초기화
    종료 시: 세션 정리

    테스트는 app.state.provider 를 미리 넣어 두면 그대로 사용.
    """
    # Startup
    load_dotenv()
    app.state.config = load_config()
    configure_logging(app.state.config)

    if getattr(app.state, "provider", None) is None:
        app.state.provider = GeminiProvider.from_config(app.state.config)
    app.state.sessions = SessionStore.from_config(app.state.config)

    if not app.state.provider.has_api_key:
        logger.warning("No Gemini API key configured; remote calls will fail")

    yield

    # Shutdown
    app.state.sessions.clear()


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="DocuMind AI",
    description="문서/이미지/오디오 → Gemini 기반 구조화 분석 및 생성 워크스페이스",
    version=__version__,
    lifespan=lifespan,
)

# Static files (CSS, JS)
static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=static_dir), name="static")


# =============================================================================
# Routes
# =============================================================================

# 페이지 라우트 (HTML)
app.include_router(workspace.router, prefix="", tags=["Workspace"])

# API 라우트
app.include_router(
    workspace.api_router, prefix="/api/workspace", tags=["Workspace API"]
)
app.include_router(intel.api_router, prefix="/api/intel", tags=["Intel API"])
app.include_router(intel.hub_api_router, prefix="/api/hub", tags=["Hub API"])
app.include_router(creative.api_router, prefix="/api/creative", tags=["Creative API"])
app.include_router(audio.api_router, prefix="/api/audio", tags=["Audio API"])
app.include_router(chat.api_router, prefix="/api/chat", tags=["Chat API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "documind.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
