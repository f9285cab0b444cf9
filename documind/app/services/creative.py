"""
Creative Service: 이미지 생성/편집, 비디오 생성.

작업:
- PRO_GEN: 프롬프트 → 이미지 (aspect ratio, size 선택)
- FLASH_EDIT: 업로드 이미지 + 프롬프트 → 편집 이미지 (파일 필수)
- VEO_VIDEO: 프롬프트 (+ 선택적 시작 이미지) → 비디오

비디오는 API 키가 붙은 다운로드 URL을 서버에서만 사용하고
바이트를 받아 세션에 저장 (브라우저에 키 노출 없음).
"""

import logging
from typing import Any

import httpx

from documind.app.providers.base import GenerationError, GenerativeProvider
from documind.core.session import WorkspaceSession
from documind.domain.constants import IMAGE_ASPECT_RATIOS, IMAGE_SIZES, VIDEO_ASPECT_RATIOS
from documind.domain.errors import DocuMindError, ErrorCodes
from documind.domain.schemas import AppMode, CreativeOutput, CreativeTask, ProcessingStep

from .base import WorkspaceService

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_MIME_TYPE = "video/mp4"


class CreativeService(WorkspaceService):
    """Creative 스위트."""

    def __init__(
        self,
        config: dict[str, Any],
        provider: GenerativeProvider | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            config: 설정 (ai.video.download_timeout 포함)
            provider: 생성 모델 Provider
            http_client: 비디오 다운로드용 클라이언트 (None이면 호출마다 생성)
        """
        super().__init__(config, provider)
        self.http_client = http_client
        self.download_timeout = float(
            config.get("ai", {}).get("video", {}).get("download_timeout", 120.0)
        )

    def validate(self, task: CreativeTask, aspect_ratio: str, image_size: str) -> None:
        """옵션 검증. 원격 호출 전에 실패해야 함."""
        if task == CreativeTask.VEO_VIDEO:
            if aspect_ratio not in VIDEO_ASPECT_RATIOS:
                raise DocuMindError(
                    ErrorCodes.INVALID_OPTION,
                    f"Video aspect ratio must be one of {', '.join(VIDEO_ASPECT_RATIOS)}.",
                    field="aspect_ratio",
                    value=aspect_ratio,
                )
            return

        if aspect_ratio not in IMAGE_ASPECT_RATIOS:
            raise DocuMindError(
                ErrorCodes.INVALID_OPTION,
                f"Aspect ratio must be one of {', '.join(IMAGE_ASPECT_RATIOS)}.",
                field="aspect_ratio",
                value=aspect_ratio,
            )
        if image_size not in IMAGE_SIZES:
            raise DocuMindError(
                ErrorCodes.INVALID_OPTION,
                f"Image size must be one of {', '.join(IMAGE_SIZES)}.",
                field="image_size",
                value=image_size,
            )

    async def run(
        self,
        session: WorkspaceSession,
        task: CreativeTask,
        prompt: str,
        aspect_ratio: str = "1:1",
        image_size: str = "1K",
    ) -> WorkspaceSession:
        """
        Creative 작업 실행.

        Raises:
            DocuMindError: 옵션 오류 / FLASH_EDIT인데 파일 없음 (호출 전)
        """
        self.validate(task, aspect_ratio, image_size)
        if task == CreativeTask.FLASH_EDIT:
            self._require_file(session, AppMode.CREATIVE.value)

        session.begin(ProcessingStep.PROCESSING)
        try:
            if task == CreativeTask.PRO_GEN:
                output = await self._generate_image(session, prompt, aspect_ratio, image_size)
            elif task == CreativeTask.FLASH_EDIT:
                output = await self._edit_image(session, prompt)
            else:
                output = await self._generate_video(session, prompt, aspect_ratio)
        except Exception as e:
            self._fail(session, e)
            return session

        session.state.creative_output = output
        session.complete()
        return session

    async def _generate_image(
        self,
        session: WorkspaceSession,
        prompt: str,
        aspect_ratio: str,
        image_size: str,
    ) -> CreativeOutput:
        media = await self._tracked(
            session,
            "creative.image",
            "image_pro",
            lambda: self.provider.generate_image(prompt, aspect_ratio, image_size),
        )
        return CreativeOutput(kind="image", mime_type=media.mime_type, data=media.data)

    async def _edit_image(self, session: WorkspaceSession, prompt: str) -> CreativeOutput:
        uploaded = self._require_file(session, AppMode.CREATIVE.value)
        media = await self._tracked(
            session,
            "creative.edit",
            "image_edit",
            lambda: self.provider.edit_image(uploaded.data, uploaded.mime_type, prompt),
        )
        return CreativeOutput(kind="image", mime_type=media.mime_type, data=media.data)

    async def _generate_video(
        self,
        session: WorkspaceSession,
        prompt: str,
        aspect_ratio: str,
    ) -> CreativeOutput:
        # 업로드 이미지가 있으면 시작 프레임으로 사용
        uploaded = session.state.file
        if uploaded is not None and not uploaded.is_image:
            uploaded = None
        uri = await self._tracked(
            session,
            "creative.video",
            "video",
            lambda: self.provider.generate_video(
                prompt,
                uploaded.data if uploaded else None,
                uploaded.mime_type if uploaded else None,
                aspect_ratio,
            ),
        )
        data, mime_type = await self.download_video(uri)
        return CreativeOutput(kind="video", mime_type=mime_type, data=data)

    async def download_video(self, uri: str) -> tuple[bytes, str]:
        """
        생성된 비디오 다운로드.

        Returns:
            (바이트, MIME 타입)
        """
        url = self.provider.video_download_url(uri)
        try:
            if self.http_client is not None:
                response = await self.http_client.get(url, follow_redirects=True)
            else:
                async with httpx.AsyncClient(timeout=self.download_timeout) as client:
                    response = await client.get(url, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as e:
            # URL에 키가 있으므로 로그에는 uri만
            logger.error(f"Video download failed for {uri}: {type(e).__name__}")
            raise GenerationError(
                ErrorCodes.VIDEO_DOWNLOAD_FAILED,
                "The video was generated but could not be downloaded.",
                uri=uri,
            ) from e

        mime_type = response.headers.get("content-type", DEFAULT_VIDEO_MIME_TYPE)
        return response.content, mime_type.split(";")[0].strip() or DEFAULT_VIDEO_MIME_TYPE
