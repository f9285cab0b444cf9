"""
Pytest fixtures for the workspace tests.

원칙:
- Provider는 항상 mock (네트워크 호출 없음)
- 세션 시계는 주입 가능한 FakeClock 사용
"""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml

from documind.app.providers.base import GenerativeProvider
from documind.core.session import WorkspaceSession
from documind.domain.constants import DEFAULT_MODELS

# =============================================================================
# Path / Config Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config(project_root: Path) -> dict[str, Any]:
    """default.yaml 로드."""
    with open(project_root / "default.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def config() -> dict[str, Any]:
    """테스트용 최소 설정 (call log 파일 저장 없음)."""
    return {
        "ai": {"video": {"poll_interval": 0}},
        "pipeline": {"step_delays": {"semantic": 1.2, "reasoning": 2.8}},
        "logging": {"level": "DEBUG", "call_log_dir": None},
    }


# =============================================================================
# Clock / Session Fixtures
# =============================================================================


class FakeClock:
    """수동으로 진행시키는 monotonic 시계."""

    def __init__(self, start: float = 100.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def session(clock: FakeClock) -> WorkspaceSession:
    """파일 없는 빈 세션."""
    return WorkspaceSession(session_id="WS-TEST", clock=clock)


@pytest.fixture
def image_session(session: WorkspaceSession) -> WorkspaceSession:
    """PNG가 첨부된 세션."""
    session.attach_file("scan.png", "image/png", b"\x89PNG fake")
    return session


@pytest.fixture
def audio_session(session: WorkspaceSession) -> WorkspaceSession:
    """오디오가 첨부된 세션."""
    session.attach_file("memo.webm", "audio/webm", b"fake audio")
    return session


# =============================================================================
# Provider Fixtures
# =============================================================================


@pytest.fixture
def mock_provider() -> MagicMock:
    """
    GenerativeProvider mock.

    비동기 메서드는 AsyncMock, 동기 메서드는 기본값을 가진 MagicMock.
    """
    provider = MagicMock(spec=GenerativeProvider)
    provider.has_api_key = True
    provider.model_name.side_effect = lambda purpose: DEFAULT_MODELS[purpose]
    provider.video_download_url.side_effect = lambda uri: f"{uri}?key=test-key"

    for name in (
        "analyze_document",
        "explore_hub",
        "generate_image",
        "edit_image",
        "generate_video",
        "transcribe",
        "synthesize_speech",
        "chat",
        "send_live_audio",
    ):
        setattr(provider, name, AsyncMock())
    return provider
