"""
Speech Service: 오디오 전사, TTS 내레이션.

TTS 실패는 UI 상태를 바꾸지 않음 (로그만 남기고 None).
"""

import logging

from documind.core.audio import pcm16_to_wav
from documind.core.session import WorkspaceSession
from documind.domain.constants import AUDIO_CHANNELS, OUTPUT_SAMPLE_RATE
from documind.domain.schemas import AppMode, ProcessingStep

from .base import WorkspaceService

logger = logging.getLogger(__name__)


class SpeechService(WorkspaceService):
    """전사 + 내레이션."""

    async def transcribe(self, session: WorkspaceSession) -> WorkspaceSession:
        """업로드된 오디오 전사 (파일 필수)."""
        uploaded = self._require_file(session, AppMode.TRANSCRIPTION.value)

        session.begin(ProcessingStep.PROCESSING)
        try:
            text = await self._tracked(
                session,
                "speech.transcribe",
                "transcribe",
                lambda: self.provider.transcribe(uploaded.data, uploaded.mime_type),
            )
        except Exception as e:
            self._fail(session, e)
            return session

        session.state.transcription = text
        session.complete()
        return session

    async def narrate(self, text: str) -> bytes | None:
        """
        텍스트 → WAV 바이트.

        Returns:
            WAV 바이트, 빈 텍스트/오디오 없음/실패 시 None
        """
        if not text.strip():
            return None

        try:
            pcm = await self.provider.synthesize_speech(text)
        except Exception as e:
            logger.error(f"TTS_FAILED: {e}", exc_info=True)
            return None

        if not pcm:
            logger.warning("TTS returned no audio")
            return None
        return pcm16_to_wav(pcm, OUTPUT_SAMPLE_RATE, AUDIO_CHANNELS)
