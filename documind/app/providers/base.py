"""
AI Provider 추상 인터페이스.

- Provider 추상화로 서비스/테스트에서 원격 모델 교체 가능
- 모델명은 config만 SSOT (domain.constants는 기본값)
- 결과에는 model_used 기록
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from typing import Any

from documind.domain.schemas import GroundingSource

# =============================================================================
# Request Options
# =============================================================================


@dataclass
class IntelOptions:
    """문서 파이프라인 토글."""
    use_search: bool = False
    use_maps: bool = False
    use_thinking: bool = False


# =============================================================================
# Result Data Classes
# =============================================================================


@dataclass
class StructuredResponse:
    """JSON 응답 + grounding."""
    data: dict[str, Any]
    grounding: list[GroundingSource] = field(default_factory=list)
    model_used: str | None = None


@dataclass
class MediaResult:
    """생성된 바이너리 (이미지/오디오)."""
    data: bytes
    mime_type: str
    model_used: str | None = None


# =============================================================================
# Provider Exceptions
# =============================================================================


class ProviderError(Exception):
    """Provider 관련 에러."""

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")


class GenerationError(ProviderError):
    """원격 생성 호출 실패 / 빈 결과."""
    pass


class ConfigurationError(ProviderError):
    """API 키/SDK 설정 문제."""
    pass


# =============================================================================
# Abstract Provider
# =============================================================================


class GenerativeProvider(ABC):
    """
    원격 생성 모델 Provider.

    역할: 요청 구성(모델명, 모달리티, 툴 토글) + 응답 해석.
    UI 상태는 건드리지 않음 (services 담당).
    """

    @property
    @abstractmethod
    def has_api_key(self) -> bool:
        ...

    @abstractmethod
    def model_name(self, purpose: str) -> str:
        """용도(intel, chat, video, ...)별 모델 ID."""
        ...

    @abstractmethod
    async def analyze_document(
        self,
        data: bytes,
        mime_type: str,
        intent: str,
        options: IntelOptions,
    ) -> StructuredResponse:
        """문서/미디어 분석 → {markdown, jsonSchema, sections, explanation, websiteCode}."""
        ...

    @abstractmethod
    async def explore_hub(self, query: str) -> StructuredResponse:
        """Hugging Face 트렌드 탐색 → {explanation, items}."""
        ...

    @abstractmethod
    async def generate_image(
        self, prompt: str, aspect_ratio: str, image_size: str
    ) -> MediaResult:
        ...

    @abstractmethod
    async def edit_image(self, data: bytes, mime_type: str, prompt: str) -> MediaResult:
        ...

    @abstractmethod
    async def generate_video(
        self,
        prompt: str,
        image: bytes | None = None,
        mime_type: str | None = None,
        aspect_ratio: str = "16:9",
    ) -> str:
        """비디오 생성 (완료까지 폴링) → 비디오 URI."""
        ...

    @abstractmethod
    def video_download_url(self, uri: str) -> str:
        ...

    @abstractmethod
    async def transcribe(self, data: bytes, mime_type: str) -> str:
        ...

    @abstractmethod
    async def synthesize_speech(self, text: str) -> bytes | None:
        """TTS → raw PCM16 (24kHz mono), 오디오 없으면 None."""
        ...

    @abstractmethod
    async def chat(self, message: str, lite: bool = False, thinking: bool = False) -> str:
        ...

    @abstractmethod
    def connect_live(self) -> AbstractAsyncContextManager[Any]:
        """양방향 저지연 오디오 세션."""
        ...

    @abstractmethod
    async def send_live_audio(self, session: Any, pcm: bytes) -> None:
        ...

    @abstractmethod
    def receive_live_audio(self, session: Any) -> AsyncIterator[bytes]:
        """세션에서 모델 오디오 청크(PCM16)를 순서대로 yield."""
        ...
