"""
Google Gemini Provider (google-genai SDK).

요청 구성 규칙:
- 문서 분석: maps 툴 사용 시 JSON mime 강제 불가 → 텍스트 응답 + 블록 추출
- 문서 분석: maps 사용 시 flash 모델, 아니면 pro 모델
- thinking 토글 시 thinking_budget=32768
- 비디오: operation 완료까지 poll_interval 간격으로 폴링

에러 매핑 (google.genai.errors.APIError.code 기준):
- 401/403 → AUTH_OR_INPUT_ERROR
- 404 / "Requested entity was not found" → API_KEY_SELECTION_REQUIRED
- 429 → QUOTA_EXCEEDED, 5xx → SERVICE_UNAVAILABLE (재시도 대상)
"""

import asyncio
import logging
import os
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from documind.core.jsonparse import extract_json
from documind.domain.constants import (
    DEFAULT_MODELS,
    DEFAULT_VOICES,
    LIVE_INPUT_MIME_TYPE,
    THINKING_BUDGET,
    VIDEO_POLL_INTERVAL,
    VIDEO_RESOLUTION,
)
from documind.domain.errors import ErrorCodes
from documind.domain.schemas import grounding_from_chunks
from documind.utils.retry import RetryPolicy, retry_with_backoff

from .base import (
    ConfigurationError,
    GenerationError,
    GenerativeProvider,
    IntelOptions,
    MediaResult,
    ProviderError,
    StructuredResponse,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

API_KEY_ENV_VARS = ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY")

# =============================================================================
# Prompts
# =============================================================================

TRANSCRIBE_PROMPT = "Precisely transcribe this audio. Return ONLY the transcription."


def build_intel_prompt(intent: str) -> str:
    """문서 분석 프롬프트."""
    return f"""DocuMind AI Protocol: {intent}.
Execute multi-step intelligence:
1. Visual Parse: Extract structures, tables, and raw text.
2. Semantic Layer: Identify entities (names, organizations, risks).
3. Rationalization: Synthesize findings into human-level reasoning.

Return strictly valid JSON:
{{
  "markdown": "Complete documentation of the media content",
  "jsonSchema": {{ "type": "object", "properties": {{}} }},
  "sections": [{{"title": "Node Name", "content": "Findings", "riskScore": 0.0, "entities": []}}],
  "explanation": "Summarized enterprise-grade insights",
  "websiteCode": "If the intent suggests a UI, provide a complete single-file Tailwind HTML prototype."
}}"""


def build_hub_prompt(query: str) -> str:
    """Hugging Face 탐색 프롬프트."""
    return f"""Retrieve the latest trending content from Hugging Face related to: {query}.
Focus on Models, Datasets, and Spaces. Provide a structured summary.

Return strictly valid JSON:
{{
  "explanation": "Brief overview of current HF trends for this query",
  "items": [
    {{
      "type": "model" | "dataset" | "space",
      "name": "Full name of the resource",
      "description": "Short summary",
      "tags": ["tag1", "tag2"],
      "url": "huggingface.co/path"
    }}
  ]
}}"""


# =============================================================================
# Provider
# =============================================================================


class GeminiProvider(GenerativeProvider):
    """
    Gemini Provider.

    Usage:
        provider = GeminiProvider.from_config(config)
        response = await provider.analyze_document(data, "image/png", intent, IntelOptions())
    """

    def __init__(
        self,
        api_key: str | None = None,
        models: dict[str, str] | None = None,
        voices: dict[str, str] | None = None,
        thinking_budget: int = THINKING_BUDGET,
        poll_interval: float = VIDEO_POLL_INTERVAL,
        retry_policy: RetryPolicy | None = None,
    ):
        """
        Args:
            api_key: API 키 (없으면 GOOGLE_API_KEY → GEMINI_API_KEY → API_KEY)
            models: 용도별 모델 ID (config에서 주입, 누락 키는 기본값)
            voices: 용도별 prebuilt 보이스
            thinking_budget: thinking 토글 시 토큰 예산
            poll_interval: 비디오 operation 폴링 간격(초)
            retry_policy: 일시적 에러 재시도 (기본: 재시도 없음)
        """
        self.api_key = api_key or next(
            (os.environ[name] for name in API_KEY_ENV_VARS if os.environ.get(name)),
            None,
        )
        self.models = {**DEFAULT_MODELS, **(models or {})}
        self.voices = {**DEFAULT_VOICES, **(voices or {})}
        self.thinking_budget = thinking_budget
        self.poll_interval = poll_interval
        self.retry_policy = retry_policy or RetryPolicy()
        self._client: Any = None

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "GeminiProvider":
        """default.yaml ai 섹션으로 생성."""
        ai_config = config.get("ai", {})
        return cls(
            models=ai_config.get("models"),
            voices=ai_config.get("voices"),
            thinking_budget=int(ai_config.get("thinking_budget", THINKING_BUDGET)),
            poll_interval=float(
                ai_config.get("video", {}).get("poll_interval", VIDEO_POLL_INTERVAL)
            ),
            retry_policy=RetryPolicy.from_config(config),
        )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def model_name(self, purpose: str) -> str:
        return self.models[purpose]

    def _get_client(self) -> Any:
        """Gemini 클라이언트 (lazy init). 키 없으면 fail-fast."""
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError(
                    ErrorCodes.API_KEY_MISSING,
                    "No Gemini API key configured. "
                    "Set GOOGLE_API_KEY (or GEMINI_API_KEY) in the environment or .env.",
                )
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    # -------------------------------------------------------------------------
    # Request builders
    # -------------------------------------------------------------------------

    def intel_model(self, use_maps: bool) -> str:
        return self.models["intel_maps"] if use_maps else self.models["intel"]

    def build_intel_config(self, options: IntelOptions) -> types.GenerateContentConfig:
        """문서 분석 요청 설정 (툴, 응답 mime, thinking)."""
        tools = []
        if options.use_search:
            tools.append(types.Tool(google_search=types.GoogleSearch()))
        if options.use_maps:
            tools.append(types.Tool(google_maps=types.GoogleMaps()))

        config_params: dict[str, Any] = {"tools": tools}
        # maps 툴은 JSON mime 강제와 함께 쓸 수 없음
        if not options.use_maps:
            config_params["response_mime_type"] = "application/json"
        if options.use_thinking:
            config_params["thinking_config"] = types.ThinkingConfig(
                thinking_budget=self.thinking_budget
            )
        return types.GenerateContentConfig(**config_params)

    def build_chat_config(
        self, lite: bool, thinking: bool
    ) -> types.GenerateContentConfig | None:
        # lite 모델은 thinking 미사용
        if thinking and not lite:
            return types.GenerateContentConfig(
                thinking_config=types.ThinkingConfig(thinking_budget=self.thinking_budget)
            )
        return None

    def build_speech_config(self, voice_name: str) -> types.SpeechConfig:
        return types.SpeechConfig(
            voice_config=types.VoiceConfig(
                prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice_name)
            )
        )

    # -------------------------------------------------------------------------
    # Document / Hub
    # -------------------------------------------------------------------------

    async def analyze_document(
        self,
        data: bytes,
        mime_type: str,
        intent: str,
        options: IntelOptions,
    ) -> StructuredResponse:
        model = self.intel_model(options.use_maps)
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=data, mime_type=mime_type),
                    types.Part.from_text(text=build_intel_prompt(intent)),
                ],
            )
        ]
        response = await self._generate(
            model, contents, self.build_intel_config(options)
        )
        return StructuredResponse(
            data=extract_json(response.text or "{}"),
            grounding=grounding_from_chunks(_grounding_chunks(response)),
            model_used=model,
        )

    async def explore_hub(self, query: str) -> StructuredResponse:
        model = self.models["hub"]
        config = types.GenerateContentConfig(
            tools=[types.Tool(google_search=types.GoogleSearch())],
            response_mime_type="application/json",
        )
        response = await self._generate(model, build_hub_prompt(query), config)
        return StructuredResponse(
            data=extract_json(response.text or "{}"),
            grounding=grounding_from_chunks(_grounding_chunks(response)),
            model_used=model,
        )

    # -------------------------------------------------------------------------
    # Creative
    # -------------------------------------------------------------------------

    async def generate_image(
        self, prompt: str, aspect_ratio: str, image_size: str
    ) -> MediaResult:
        model = self.models["image_pro"]
        config = types.GenerateContentConfig(
            image_config=types.ImageConfig(
                aspect_ratio=aspect_ratio,
                image_size=image_size,
            )
        )
        response = await self._generate(model, prompt, config)
        return _first_inline_media(response, model, "Target generation failed.")

    async def edit_image(self, data: bytes, mime_type: str, prompt: str) -> MediaResult:
        model = self.models["image_edit"]
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=data, mime_type=mime_type),
                    types.Part.from_text(text=prompt),
                ],
            )
        ]
        response = await self._generate(model, contents)
        return _first_inline_media(response, model, "Visual modulation failed.")

    async def generate_video(
        self,
        prompt: str,
        image: bytes | None = None,
        mime_type: str | None = None,
        aspect_ratio: str = "16:9",
    ) -> str:
        """
        비디오 생성.

        operation.done이 될 때까지 poll_interval 간격으로 폴링.
        타임아웃 없음 (operation이 에러로 끝나면 GenerationError).
        """
        client = self._get_client()
        model = self.models["video"]
        config = types.GenerateVideosConfig(
            number_of_videos=1,
            resolution=VIDEO_RESOLUTION,
            aspect_ratio=aspect_ratio,
        )
        start_image = (
            types.Image(image_bytes=image, mime_type=mime_type) if image else None
        )

        operation = await self._call(
            lambda: client.aio.models.generate_videos(
                model=model,
                prompt=prompt,
                image=start_image,
                config=config,
            )
        )
        polls = 0
        while not operation.done:
            await asyncio.sleep(self.poll_interval)
            operation = await self._call(lambda: client.aio.operations.get(operation))
            polls += 1
            logger.debug(f"Video operation poll #{polls}: done={operation.done}")

        if getattr(operation, "error", None):
            raise GenerationError(
                ErrorCodes.REQUEST_FAILED,
                f"Video generation failed: {operation.error}",
                model=model,
            )

        try:
            uri = operation.response.generated_videos[0].video.uri
        except (AttributeError, IndexError, TypeError) as e:
            raise GenerationError(
                ErrorCodes.GENERATION_EMPTY,
                "Video generation returned no video.",
                model=model,
            ) from e
        if not uri:
            raise GenerationError(
                ErrorCodes.GENERATION_EMPTY,
                "Video generation returned no video.",
                model=model,
            )
        logger.info(f"Video ready after {polls} polls")
        return str(uri)

    def video_download_url(self, uri: str) -> str:
        """다운로드 URL (API 키 부착). 서버 측에서만 사용."""
        separator = "&" if "?" in uri else "?"
        return f"{uri}{separator}key={self.api_key}"

    # -------------------------------------------------------------------------
    # Speech / Chat
    # -------------------------------------------------------------------------

    async def transcribe(self, data: bytes, mime_type: str) -> str:
        model = self.models["transcribe"]
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(data=data, mime_type=mime_type),
                    types.Part.from_text(text=TRANSCRIBE_PROMPT),
                ],
            )
        ]
        response = await self._generate(model, contents)
        return response.text or ""

    async def synthesize_speech(self, text: str) -> bytes | None:
        model = self.models["tts"]
        config = types.GenerateContentConfig(
            response_modalities=[types.Modality.AUDIO],
            speech_config=self.build_speech_config(self.voices["tts"]),
        )
        response = await self._generate(model, text, config)
        try:
            inline = response.candidates[0].content.parts[0].inline_data
        except (AttributeError, IndexError, TypeError):
            return None
        if inline is None or not inline.data:
            return None
        return bytes(inline.data)

    async def chat(self, message: str, lite: bool = False, thinking: bool = False) -> str:
        model = self.models["chat_lite"] if lite else self.models["chat"]
        response = await self._generate(
            model, message, self.build_chat_config(lite, thinking)
        )
        return response.text or ""

    # -------------------------------------------------------------------------
    # Live
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def connect_live(self) -> AsyncIterator[Any]:
        """
        양방향 오디오 세션 연결.

        Usage:
            async with provider.connect_live() as session:
                await provider.send_live_audio(session, pcm)
        """
        client = self._get_client()
        config = types.LiveConnectConfig(
            response_modalities=[types.Modality.AUDIO],
            speech_config=self.build_speech_config(self.voices["live"]),
        )
        async with client.aio.live.connect(
            model=self.models["live"], config=config
        ) as session:
            yield session

    async def send_live_audio(self, session: Any, pcm: bytes) -> None:
        await session.send_realtime_input(
            audio=types.Blob(data=pcm, mime_type=LIVE_INPUT_MIME_TYPE)
        )

    async def receive_live_audio(self, session: Any) -> AsyncIterator[bytes]:
        """
        모델 오디오 청크 스트림.

        session.receive()는 턴 단위로 끝나므로 세션이 닫힐 때까지 반복.
        """
        while True:
            async for message in session.receive():
                server_content = getattr(message, "server_content", None)
                model_turn = getattr(server_content, "model_turn", None)
                for part in getattr(model_turn, "parts", None) or []:
                    inline = getattr(part, "inline_data", None)
                    if inline is not None and inline.data:
                        yield bytes(inline.data)

    # -------------------------------------------------------------------------
    # Call helpers
    # -------------------------------------------------------------------------

    async def _generate(
        self,
        model: str,
        contents: Any,
        config: types.GenerateContentConfig | None = None,
    ) -> Any:
        client = self._get_client()
        return await self._call(
            lambda: client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        )

    async def _call(self, func: Callable[[], Awaitable[T]]) -> T:
        """재시도 정책 적용 + SDK 예외 → ProviderError."""
        try:
            return await retry_with_backoff(func, self.retry_policy, is_transient_error)
        except ProviderError:
            raise
        except Exception as e:
            mapped = map_api_error(e)
            logger.error(f"Gemini call failed: [{mapped.code}] {e}", exc_info=True)
            raise mapped from e


# =============================================================================
# Response / Error helpers
# =============================================================================


def _grounding_chunks(response: Any) -> list[Any]:
    try:
        metadata = response.candidates[0].grounding_metadata
    except (AttributeError, IndexError, TypeError):
        return []
    if metadata is None:
        return []
    return list(getattr(metadata, "grounding_chunks", None) or [])


def _first_inline_media(response: Any, model: str, failure_message: str) -> MediaResult:
    """첫 inline_data 파트 → MediaResult. 없으면 GenerationError."""
    try:
        parts = response.candidates[0].content.parts or []
    except (AttributeError, IndexError, TypeError):
        parts = []

    for part in parts:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return MediaResult(
                data=bytes(inline.data),
                mime_type=inline.mime_type or "image/png",
                model_used=model,
            )
    raise GenerationError(ErrorCodes.GENERATION_EMPTY, failure_message, model=model)


def is_transient_error(error: Exception) -> bool:
    """429 / 5xx 만 재시도 대상."""
    if isinstance(error, genai_errors.APIError):
        return error.code == 429 or (error.code or 0) >= 500
    return False


def map_api_error(error: Exception) -> ProviderError:
    """
    SDK 예외 → 사용자 친화적 ProviderError.

    원문 메시지는 context["detail"]에 보존.
    """
    detail = str(error)

    if "Requested entity was not found" in detail:
        return ConfigurationError(
            ErrorCodes.API_KEY_SELECTION_REQUIRED,
            "Requested entity was not found. Select a paid-tier API key "
            "with access to this model and try again.",
            detail=detail,
        )

    if isinstance(error, genai_errors.APIError):
        status = error.code or 0
        if status in (401, 403):
            return ConfigurationError(
                ErrorCodes.AUTH_OR_INPUT_ERROR,
                "Gemini API authentication failed. Check GOOGLE_API_KEY.",
                status=status,
                detail=detail,
            )
        if status == 404:
            return ConfigurationError(
                ErrorCodes.API_KEY_SELECTION_REQUIRED,
                "The requested model is not available for this API key.",
                status=status,
                detail=detail,
            )
        if status == 429:
            return GenerationError(
                ErrorCodes.QUOTA_EXCEEDED,
                "API quota exceeded. Wait a moment and try again.",
                status=status,
                detail=detail,
            )
        if status >= 500:
            return GenerationError(
                ErrorCodes.SERVICE_UNAVAILABLE,
                "The Gemini service is temporarily unavailable. Try again shortly.",
                status=status,
                detail=detail,
            )
        if status == 400:
            return GenerationError(
                ErrorCodes.AUTH_OR_INPUT_ERROR,
                f"The request was rejected: {error.message or detail}",
                status=status,
                detail=detail,
            )

    lowered = detail.lower()
    if "timeout" in lowered:
        return GenerationError(
            ErrorCodes.REQUEST_FAILED, "The request timed out. Try again.", detail=detail
        )
    if "connection" in lowered:
        return GenerationError(
            ErrorCodes.REQUEST_FAILED,
            "Network error while contacting the Gemini API.",
            detail=detail,
        )
    return GenerationError(ErrorCodes.REQUEST_FAILED, detail or type(error).__name__)
