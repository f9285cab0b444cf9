"""
test_gemini.py - Gemini Provider 테스트

검증:
- 요청 구성 (모델 선택, 툴 토글, JSON mime, thinking budget)
- 응답 파싱 (JSON 추출, grounding, inline media)
- SDK 예외 → ProviderError 매핑
- 비디오 operation 폴링

SDK 클라이언트는 provider._client 에 MagicMock 주입.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import errors as genai_errors
from google.genai import types

from documind.app.providers.base import (
    ConfigurationError,
    GenerationError,
    IntelOptions,
    ProviderError,
)
from documind.app.providers.gemini import (
    TRANSCRIBE_PROMPT,
    GeminiProvider,
    build_hub_prompt,
    build_intel_prompt,
    is_transient_error,
    map_api_error,
)
from documind.domain.errors import ErrorCodes, ResponseParseError
from documind.utils.retry import RetryPolicy

# =============================================================================
# Helpers
# =============================================================================


def text_response(text, chunks=None):
    """generate_content 응답 (텍스트 + grounding)."""
    metadata = SimpleNamespace(grounding_chunks=chunks) if chunks is not None else None
    return SimpleNamespace(
        text=text,
        candidates=[SimpleNamespace(grounding_metadata=metadata, content=None)],
    )


def media_response(*parts):
    return SimpleNamespace(
        text=None,
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))],
    )


def inline_part(data, mime_type="image/png"):
    return SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime_type))


def api_error(code, message="error"):
    error_cls = genai_errors.ServerError if code >= 500 else genai_errors.ClientError
    return error_cls(code, {"error": {"code": code, "message": message, "status": "ERR"}})


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def provider():
    """SDK 클라이언트가 mock 된 provider."""
    provider = GeminiProvider(api_key="test-api-key", poll_interval=0)
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    client.aio.models.generate_videos = AsyncMock()
    client.aio.operations.get = AsyncMock()
    provider._client = client
    return provider


def sent_kwargs(provider):
    return provider._client.aio.models.generate_content.call_args.kwargs


# =============================================================================
# 초기화 테스트
# =============================================================================


class TestGeminiProviderInit:
    """GeminiProvider 초기화 테스트."""

    def test_defaults(self, monkeypatch):
        for name in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY"):
            monkeypatch.delenv(name, raising=False)

        provider = GeminiProvider()

        assert provider.api_key is None
        assert not provider.has_api_key
        assert provider.model_name("intel") == "gemini-3-pro-preview"
        assert provider.voices == {"tts": "Kore", "live": "Zephyr"}
        assert provider.thinking_budget == 32768
        assert provider._client is None

    def test_env_api_key_order(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
        monkeypatch.setenv("API_KEY", "generic-key")

        assert GeminiProvider().api_key == "gemini-key"

    def test_explicit_key_wins(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "env-key")

        assert GeminiProvider(api_key="my-key").api_key == "my-key"

    def test_from_config(self):
        config = {
            "ai": {
                "models": {"chat": "custom-chat"},
                "voices": {"tts": "Puck"},
                "thinking_budget": 1024,
                "video": {"poll_interval": 2},
                "retry": {"max_retries": 3},
            }
        }

        provider = GeminiProvider.from_config(config)

        assert provider.models["chat"] == "custom-chat"
        assert provider.models["chat_lite"] == "gemini-3-flash-preview"
        assert provider.voices["tts"] == "Puck"
        assert provider.voices["live"] == "Zephyr"
        assert provider.thinking_budget == 1024
        assert provider.poll_interval == 2.0
        assert provider.retry_policy.max_retries == 3

    def test_missing_key_fails_fast(self, monkeypatch):
        for name in ("GOOGLE_API_KEY", "GEMINI_API_KEY", "API_KEY"):
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            GeminiProvider()._get_client()

        assert exc_info.value.code == ErrorCodes.API_KEY_MISSING


# =============================================================================
# 요청 구성 테스트
# =============================================================================


class TestRequestBuilders:
    """요청 설정 빌더 테스트."""

    def test_intel_model(self):
        provider = GeminiProvider(api_key="k")

        assert provider.intel_model(use_maps=True) == "gemini-2.5-flash-latest"
        assert provider.intel_model(use_maps=False) == "gemini-3-pro-preview"

    def test_intel_config_plain(self):
        config = GeminiProvider(api_key="k").build_intel_config(IntelOptions())

        assert config.tools == []
        assert config.response_mime_type == "application/json"
        assert config.thinking_config is None

    def test_intel_config_search_and_thinking(self):
        config = GeminiProvider(api_key="k").build_intel_config(
            IntelOptions(use_search=True, use_thinking=True)
        )

        assert len(config.tools) == 1
        assert config.tools[0].google_search is not None
        assert config.response_mime_type == "application/json"
        assert config.thinking_config.thinking_budget == 32768

    def test_intel_config_maps_drops_json_mime(self):
        """maps 툴 사용 시 JSON mime 강제 안 함."""
        config = GeminiProvider(api_key="k").build_intel_config(
            IntelOptions(use_search=True, use_maps=True)
        )

        assert len(config.tools) == 2
        assert config.tools[1].google_maps is not None
        assert config.response_mime_type is None

    def test_chat_config(self):
        provider = GeminiProvider(api_key="k")

        assert provider.build_chat_config(lite=False, thinking=False) is None
        assert provider.build_chat_config(lite=True, thinking=True) is None
        config = provider.build_chat_config(lite=False, thinking=True)
        assert config.thinking_config.thinking_budget == 32768

    def test_speech_config(self):
        config = GeminiProvider(api_key="k").build_speech_config("Kore")

        assert config.voice_config.prebuilt_voice_config.voice_name == "Kore"

    def test_prompts_embed_input(self):
        assert "DocuMind AI Protocol: Find risks." in build_intel_prompt("Find risks")
        assert '"websiteCode"' in build_intel_prompt("x")
        assert "related to: Zenieverse." in build_hub_prompt("Zenieverse")

    def test_video_download_url(self):
        provider = GeminiProvider(api_key="secret")

        assert provider.video_download_url("https://v/file") == "https://v/file?key=secret"
        assert (
            provider.video_download_url("https://v/file?alt=media")
            == "https://v/file?alt=media&key=secret"
        )


# =============================================================================
# 문서 분석 / 탐색
# =============================================================================


class TestAnalyzeDocument:
    """analyze_document 테스트."""

    async def test_parses_json_and_grounding(self, provider):
        chunks = [SimpleNamespace(web=SimpleNamespace(uri="https://src", title="Src"), maps=None)]
        provider._client.aio.models.generate_content.return_value = text_response(
            '```json\n{"markdown": "# Doc", "sections": []}\n```', chunks
        )

        response = await provider.analyze_document(
            b"img", "image/png", "Extract", IntelOptions(use_search=True)
        )

        assert response.data == {"markdown": "# Doc", "sections": []}
        assert response.grounding[0].uri == "https://src"
        assert response.model_used == "gemini-3-pro-preview"

        kwargs = sent_kwargs(provider)
        assert kwargs["model"] == "gemini-3-pro-preview"
        parts = kwargs["contents"][0].parts
        assert parts[0].inline_data.data == b"img"
        assert parts[0].inline_data.mime_type == "image/png"
        assert "DocuMind AI Protocol: Extract." in parts[1].text

    async def test_maps_uses_flash_model(self, provider):
        provider._client.aio.models.generate_content.return_value = text_response("{}")

        response = await provider.analyze_document(
            b"img", "image/png", "Locate", IntelOptions(use_maps=True)
        )

        assert sent_kwargs(provider)["model"] == "gemini-2.5-flash-latest"
        assert response.data == {}

    async def test_empty_text_is_empty_object(self, provider):
        provider._client.aio.models.generate_content.return_value = text_response(None)

        response = await provider.analyze_document(b"x", "image/png", "i", IntelOptions())

        assert response.data == {}
        assert response.grounding == []

    async def test_unparseable_text_raises(self, provider):
        provider._client.aio.models.generate_content.return_value = text_response(
            "Sorry, I cannot help."
        )

        with pytest.raises(ResponseParseError):
            await provider.analyze_document(b"x", "image/png", "i", IntelOptions())


class TestExploreHub:
    """explore_hub 테스트."""

    async def test_request(self, provider):
        provider._client.aio.models.generate_content.return_value = text_response(
            '{"explanation": "e", "items": []}'
        )

        response = await provider.explore_hub("diffusion")

        kwargs = sent_kwargs(provider)
        assert kwargs["model"] == "gemini-3-pro-preview"
        assert "diffusion" in kwargs["contents"]
        assert kwargs["config"].response_mime_type == "application/json"
        assert kwargs["config"].tools[0].google_search is not None
        assert response.data["explanation"] == "e"


# =============================================================================
# Creative
# =============================================================================


class TestImages:
    """이미지 생성/편집 테스트."""

    async def test_generate_image(self, provider):
        provider._client.aio.models.generate_content.return_value = media_response(
            SimpleNamespace(inline_data=None, text="caption"),
            inline_part(b"png-bytes"),
        )

        result = await provider.generate_image("a cat", "16:9", "2K")

        assert result.data == b"png-bytes"
        assert result.mime_type == "image/png"
        kwargs = sent_kwargs(provider)
        assert kwargs["model"] == "gemini-3-pro-image-preview"
        assert kwargs["config"].image_config.aspect_ratio == "16:9"
        assert kwargs["config"].image_config.image_size == "2K"

    async def test_generate_image_without_media(self, provider):
        provider._client.aio.models.generate_content.return_value = media_response(
            SimpleNamespace(inline_data=None, text="refused")
        )

        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_image("a cat", "1:1", "1K")

        assert exc_info.value.message == "Target generation failed."
        assert exc_info.value.code == ErrorCodes.GENERATION_EMPTY

    async def test_edit_image(self, provider):
        provider._client.aio.models.generate_content.return_value = media_response(
            inline_part(b"edited", "image/jpeg")
        )

        result = await provider.edit_image(b"src", "image/jpeg", "make it blue")

        assert result.data == b"edited"
        assert result.mime_type == "image/jpeg"
        assert sent_kwargs(provider)["model"] == "gemini-2.5-flash-image"

    async def test_edit_image_without_media(self, provider):
        provider._client.aio.models.generate_content.return_value = media_response()

        with pytest.raises(GenerationError, match="Visual modulation failed."):
            await provider.edit_image(b"src", "image/png", "x")


def video_operation(done, uri=None, error=None):
    response = None
    if uri is not None:
        response = SimpleNamespace(
            generated_videos=[SimpleNamespace(video=SimpleNamespace(uri=uri))]
        )
    return SimpleNamespace(done=done, response=response, error=error)


class TestGenerateVideo:
    """비디오 생성 / 폴링 테스트."""

    async def test_polls_until_done(self, provider):
        aio = provider._client.aio
        aio.models.generate_videos.return_value = video_operation(False)
        aio.operations.get.side_effect = [
            video_operation(False),
            video_operation(True, uri="https://video/abc"),
        ]

        uri = await provider.generate_video("sunrise", aspect_ratio="9:16")

        assert uri == "https://video/abc"
        assert aio.operations.get.await_count == 2
        kwargs = aio.models.generate_videos.call_args.kwargs
        assert kwargs["model"] == "veo-3.1-fast-generate-preview"
        assert kwargs["image"] is None
        assert kwargs["config"].number_of_videos == 1
        assert kwargs["config"].resolution == "720p"
        assert kwargs["config"].aspect_ratio == "9:16"

    async def test_start_image(self, provider):
        aio = provider._client.aio
        aio.models.generate_videos.return_value = video_operation(True, uri="https://v")

        await provider.generate_video("pan", b"frame", "image/png", "16:9")

        image = aio.models.generate_videos.call_args.kwargs["image"]
        assert isinstance(image, types.Image)
        assert image.image_bytes == b"frame"
        assert image.mime_type == "image/png"
        aio.operations.get.assert_not_awaited()

    async def test_operation_error(self, provider):
        provider._client.aio.models.generate_videos.return_value = video_operation(
            True, error={"message": "blocked"}
        )

        with pytest.raises(GenerationError, match="Video generation failed"):
            await provider.generate_video("x")

    async def test_no_video(self, provider):
        provider._client.aio.models.generate_videos.return_value = video_operation(True)

        with pytest.raises(GenerationError) as exc_info:
            await provider.generate_video("x")

        assert exc_info.value.code == ErrorCodes.GENERATION_EMPTY


# =============================================================================
# Speech / Chat
# =============================================================================


class TestSpeechAndChat:
    """전사, TTS, 채팅 테스트."""

    async def test_transcribe(self, provider):
        provider._client.aio.models.generate_content.return_value = text_response("hello world")

        text = await provider.transcribe(b"audio", "audio/webm")

        assert text == "hello world"
        kwargs = sent_kwargs(provider)
        assert kwargs["model"] == "gemini-3-flash-preview"
        assert kwargs["contents"][0].parts[1].text == TRANSCRIBE_PROMPT

    async def test_synthesize_speech(self, provider):
        provider._client.aio.models.generate_content.return_value = media_response(
            inline_part(b"\x00\x01", "audio/L16;rate=24000")
        )

        pcm = await provider.synthesize_speech("hi")

        assert pcm == b"\x00\x01"
        kwargs = sent_kwargs(provider)
        assert kwargs["model"] == "gemini-2.5-flash-preview-tts"
        assert kwargs["config"].response_modalities == [types.Modality.AUDIO]
        voice = kwargs["config"].speech_config.voice_config.prebuilt_voice_config
        assert voice.voice_name == "Kore"

    async def test_synthesize_speech_without_audio(self, provider):
        provider._client.aio.models.generate_content.return_value = media_response()

        assert await provider.synthesize_speech("hi") is None

    @pytest.mark.parametrize(
        ("lite", "thinking", "model", "has_thinking"),
        [
            (False, False, "gemini-3-pro-preview", False),
            (False, True, "gemini-3-pro-preview", True),
            (True, True, "gemini-3-flash-preview", False),
        ],
    )
    async def test_chat_model_selection(self, provider, lite, thinking, model, has_thinking):
        provider._client.aio.models.generate_content.return_value = text_response("reply")

        reply = await provider.chat("hi", lite=lite, thinking=thinking)

        assert reply == "reply"
        kwargs = sent_kwargs(provider)
        assert kwargs["model"] == model
        assert (kwargs["config"] is not None) == has_thinking

    async def test_chat_empty_reply(self, provider):
        provider._client.aio.models.generate_content.return_value = text_response(None)

        assert await provider.chat("hi") == ""


# =============================================================================
# Live
# =============================================================================


class FakeLiveSession:
    """session.receive()가 턴 단위로 메시지를 내보내는 가짜 세션."""

    def __init__(self, turns):
        self.turns = list(turns)
        self.sent = []

    async def send_realtime_input(self, audio):
        self.sent.append(audio)

    async def receive(self):
        if not self.turns:
            raise ConnectionError("closed")
        for message in self.turns.pop(0):
            yield message


def audio_message(*chunks):
    parts = [SimpleNamespace(inline_data=SimpleNamespace(data=c)) for c in chunks]
    return SimpleNamespace(server_content=SimpleNamespace(model_turn=SimpleNamespace(parts=parts)))


class TestLive:
    """실시간 세션 테스트."""

    async def test_connect_live(self, provider):
        session = FakeLiveSession([])
        connect = provider._client.aio.live.connect
        connect.return_value.__aenter__.return_value = session

        async with provider.connect_live() as opened:
            assert opened is session

        kwargs = connect.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash-native-audio-preview-09-2025"
        assert kwargs["config"].response_modalities == [types.Modality.AUDIO]
        voice = kwargs["config"].speech_config.voice_config.prebuilt_voice_config
        assert voice.voice_name == "Zephyr"

    async def test_send_live_audio(self, provider):
        session = FakeLiveSession([])

        await provider.send_live_audio(session, b"\x00\x00")

        blob = session.sent[0]
        assert blob.data == b"\x00\x00"
        assert blob.mime_type == "audio/pcm;rate=16000"

    async def test_receive_live_audio_spans_turns(self, provider):
        """모든 inline 오디오 파트를 턴을 넘어 순서대로 전달."""
        session = FakeLiveSession(
            [
                [audio_message(b"a", b"b"), SimpleNamespace(server_content=None)],
                [audio_message(b"c")],
            ]
        )

        received = []
        with pytest.raises(ConnectionError):
            async for chunk in provider.receive_live_audio(session):
                received.append(chunk)

        assert received == [b"a", b"b", b"c"]


# =============================================================================
# 에러 매핑 / 재시도
# =============================================================================


class TestErrorMapping:
    """SDK 예외 → ProviderError 매핑 테스트."""

    @pytest.mark.parametrize(
        ("status", "code", "error_type"),
        [
            (401, ErrorCodes.AUTH_OR_INPUT_ERROR, ConfigurationError),
            (403, ErrorCodes.AUTH_OR_INPUT_ERROR, ConfigurationError),
            (404, ErrorCodes.API_KEY_SELECTION_REQUIRED, ConfigurationError),
            (429, ErrorCodes.QUOTA_EXCEEDED, GenerationError),
            (500, ErrorCodes.SERVICE_UNAVAILABLE, GenerationError),
            (503, ErrorCodes.SERVICE_UNAVAILABLE, GenerationError),
            (400, ErrorCodes.AUTH_OR_INPUT_ERROR, GenerationError),
        ],
    )
    def test_status_mapping(self, status, code, error_type):
        mapped = map_api_error(api_error(status))

        assert isinstance(mapped, error_type)
        assert mapped.code == code
        assert mapped.context["status"] == status

    def test_entity_not_found_message(self):
        """'Requested entity was not found' → 키 재선택 안내."""
        mapped = map_api_error(RuntimeError("Requested entity was not found."))

        assert mapped.code == ErrorCodes.API_KEY_SELECTION_REQUIRED
        assert "Requested entity was not found" in mapped.context["detail"]

    def test_timeout_and_connection(self):
        assert "timed out" in map_api_error(TimeoutError("read timeout")).message
        assert "Network error" in map_api_error(OSError("connection reset")).message

    def test_unknown_error(self):
        mapped = map_api_error(ValueError("weird"))

        assert mapped.code == ErrorCodes.REQUEST_FAILED
        assert mapped.message == "weird"

    def test_transient(self):
        assert is_transient_error(api_error(429))
        assert is_transient_error(api_error(503))
        assert not is_transient_error(api_error(400))
        assert not is_transient_error(ValueError("x"))

    async def test_call_maps_sdk_error(self, provider):
        provider._client.aio.models.generate_content.side_effect = api_error(429, "quota")

        with pytest.raises(ProviderError) as exc_info:
            await provider.chat("hi")

        assert exc_info.value.code == ErrorCodes.QUOTA_EXCEEDED

    async def test_retry_on_transient(self, provider):
        provider.retry_policy = RetryPolicy(max_retries=2, initial_delay=0, max_delay=0)
        provider._client.aio.models.generate_content.side_effect = [
            api_error(503),
            text_response("ok"),
        ]

        assert await provider.chat("hi") == "ok"
        assert provider._client.aio.models.generate_content.await_count == 2

    async def test_no_retry_by_default(self, provider):
        provider._client.aio.models.generate_content.side_effect = [
            api_error(503),
            text_response("ok"),
        ]

        with pytest.raises(GenerationError):
            await provider.chat("hi")
        assert provider._client.aio.models.generate_content.await_count == 1
