"""
Document Intelligence Service: 문서/이미지 → 구조화 분석 결과.

흐름:
1. 파일 필수 (없으면 FILE_REQUIRED)
2. 타임라인 시작: OCR → Semantic(1.2s) → Reasoning(2.8s) 표시
3. 원격 호출 1회 (툴 토글: search / maps / thinking)
4. AnalysisResult + grounding 저장, 결과 탭은 sections
"""

from documind.app.providers.base import IntelOptions
from documind.core.session import ProcessingTimeline, WorkspaceSession
from documind.domain.constants import DEFAULT_INTEL_INTENT
from documind.domain.schemas import AnalysisResult, AppMode

from .base import WorkspaceService


class IntelService(WorkspaceService):
    """문서 인텔리전스 파이프라인."""

    async def run(
        self,
        session: WorkspaceSession,
        intent: str | None = None,
        options: IntelOptions | None = None,
    ) -> WorkspaceSession:
        """
        파이프라인 실행.

        Args:
            session: 워크스페이스 세션 (file 필수)
            intent: 파이프라인 의도 (비어 있으면 기본 의도)
            options: 툴 토글

        Returns:
            갱신된 세션 (성공: COMPLETED + result, 실패: FAILED + error)
        """
        uploaded = self._require_file(session, AppMode.DOC_INTEL.value)

        options = options or IntelOptions()
        intent = (intent or "").strip() or DEFAULT_INTEL_INTENT
        purpose = "intel_maps" if options.use_maps else "intel"

        session.begin(timeline=ProcessingTimeline.from_config(self.config))
        try:
            response = await self._tracked(
                session,
                "intel.analyze",
                purpose,
                lambda: self.provider.analyze_document(
                    uploaded.data, uploaded.mime_type, intent, options
                ),
            )
        except Exception as e:
            self._fail(session, e)
            return session

        session.state.result = AnalysisResult.from_dict(response.data, response.grounding)
        session.state.active_result_tab = "sections"
        session.complete()
        return session
