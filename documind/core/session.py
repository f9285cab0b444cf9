"""
Workspace session: UI 뷰 상태 + 처리 단계 진행.

규칙:
- 세션은 메모리에만 존재 (브라우저 탭 수명)
- latest write wins, 단일 이벤트 루프에서만 변경
- 파이프라인 진행 단계는 경과 시간으로 계산, 완료/실패가 나면 종료 단계 우선
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from documind.core.ids import generate_session_id
from documind.core.logging import CallLog
from documind.domain.constants import MAX_SESSIONS, STEP_DELAY_REASONING, STEP_DELAY_SEMANTIC
from documind.domain.schemas import (
    AppMode,
    ProcessingStep,
    UploadedFile,
    WorkspaceState,
)

logger = logging.getLogger(__name__)

# =============================================================================
# Processing Timeline
# =============================================================================


@dataclass
class ProcessingTimeline:
    """
    문서 파이프라인의 시각적 진행 단계.

    원격 호출은 한 번이지만 UI는 OCR → Semantic → Reasoning 순으로 보여줌.
    (offset_seconds, step) 목록은 offset 오름차순.
    """
    stages: list[tuple[float, ProcessingStep]] = field(
        default_factory=lambda: [
            (0.0, ProcessingStep.OCR_EXTRACTING),
            (STEP_DELAY_SEMANTIC, ProcessingStep.SEMANTIC_ANALYSIS),
            (STEP_DELAY_REASONING, ProcessingStep.MULTIMODAL_REASONING),
        ]
    )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ProcessingTimeline":
        delays = config.get("pipeline", {}).get("step_delays", {})
        return cls(
            stages=[
                (0.0, ProcessingStep.OCR_EXTRACTING),
                (float(delays.get("semantic", STEP_DELAY_SEMANTIC)), ProcessingStep.SEMANTIC_ANALYSIS),
                (float(delays.get("reasoning", STEP_DELAY_REASONING)), ProcessingStep.MULTIMODAL_REASONING),
            ]
        )

    def step_at(self, elapsed: float) -> ProcessingStep:
        """경과 시간 기준 현재 단계."""
        current = self.stages[0][1]
        for offset, step in self.stages:
            if elapsed >= offset:
                current = step
        return current


# =============================================================================
# Processing Indicator
# =============================================================================

INDICATOR_STEPS: list[dict[str, Any]] = [
    {
        "id": ProcessingStep.OCR_EXTRACTING,
        "label": "PaddleOCR: Visual Extraction",
        "desc": "Analyzing layout, tables & markers",
    },
    {
        "id": ProcessingStep.SEMANTIC_ANALYSIS,
        "label": "ERNIE 4.5: Semantic Layer",
        "desc": "Classifying sections & detecting risks",
    },
    {
        "id": ProcessingStep.MULTIMODAL_REASONING,
        "label": "ERNIE 5: Multimodal Fuse",
        "desc": "Generating human-level insights",
    },
]

_STEP_INDEX = {
    ProcessingStep.OCR_EXTRACTING: 0,
    ProcessingStep.SEMANTIC_ANALYSIS: 1,
    ProcessingStep.MULTIMODAL_REASONING: 2,
    ProcessingStep.COMPLETED: 3,
}


def step_index(step: ProcessingStep) -> int:
    return _STEP_INDEX.get(step, -1)


def show_indicator(step: ProcessingStep) -> bool:
    """IDLE/COMPLETED 에서는 인디케이터 숨김."""
    return step not in (ProcessingStep.IDLE, ProcessingStep.COMPLETED)


def indicator_steps(step: ProcessingStep) -> list[dict[str, str]]:
    """
    인디케이터 행 목록.

    Returns:
        [{"id", "label", "desc", "state": done|active|pending}, ...]
    """
    current = step_index(step)
    rows = []
    for idx, item in enumerate(INDICATOR_STEPS):
        if idx < current:
            state = "done"
        elif idx == current:
            state = "active"
        else:
            state = "pending"
        rows.append(
            {
                "id": item["id"].value,
                "label": item["label"],
                "desc": item["desc"],
                "state": state,
            }
        )
    return rows


# =============================================================================
# Workspace Session
# =============================================================================


class WorkspaceSession:
    """
    워크스페이스 세션 1개.

    Usage:
        session = WorkspaceSession()
        session.attach_file("doc.png", "image/png", data)
        session.begin(ProcessingStep.OCR_EXTRACTING, timeline=timeline)
        ...
        session.complete()
    """

    def __init__(
        self,
        session_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.session_id = session_id or generate_session_id()
        self.state = WorkspaceState()
        self.call_logs: list[CallLog] = []
        self._clock = clock
        self._timeline: ProcessingTimeline | None = None
        self._started_at: float | None = None
        self.run_seq = 0

    # -------------------------------------------------------------------------
    # Step
    # -------------------------------------------------------------------------

    @property
    def step(self) -> ProcessingStep:
        """
        현재 표시 단계.

        타임라인이 걸려 있고 아직 종료 단계가 아니면 경과 시간으로 계산.
        """
        if (
            self._timeline is not None
            and self._started_at is not None
            and not self.state.step.is_terminal
        ):
            return self._timeline.step_at(self._clock() - self._started_at)
        return self.state.step

    def begin(
        self,
        step: ProcessingStep = ProcessingStep.PROCESSING,
        timeline: ProcessingTimeline | None = None,
    ) -> None:
        """처리 시작. 이전 에러는 지움, run_seq 증가."""
        self.run_seq += 1
        self.state.error = None
        self.state.error_code = None
        self._timeline = timeline
        self._started_at = self._clock() if timeline is not None else None
        self.state.step = timeline.step_at(0.0) if timeline is not None else step

    def complete(self) -> None:
        self._clear_timeline()
        self.state.step = ProcessingStep.COMPLETED

    def fail(self, message: str, code: str | None = None) -> None:
        self._clear_timeline()
        self.state.step = ProcessingStep.FAILED
        self.state.error = message
        self.state.error_code = code

    def _clear_timeline(self) -> None:
        self._timeline = None
        self._started_at = None

    # -------------------------------------------------------------------------
    # View-state transitions
    # -------------------------------------------------------------------------

    def reset_outputs(self) -> None:
        """모든 출력 초기화, 단계 IDLE."""
        self._clear_timeline()
        state = self.state
        state.result = None
        state.error = None
        state.error_code = None
        state.step = ProcessingStep.IDLE
        state.creative_output = None
        state.transcription = ""
        state.chat_history = []
        state.hub_result = None

    def change_mode(self, mode: AppMode) -> None:
        self.state.mode = mode
        self.reset_outputs()

    def attach_file(self, filename: str, mime_type: str, data: bytes) -> UploadedFile:
        """입력 미디어 교체. 미리보기 URL 갱신 후 출력 초기화."""
        uploaded = UploadedFile(
            filename=filename,
            mime_type=mime_type or "application/octet-stream",
            data=data,
        )
        self.state.file = uploaded
        self.state.preview_url = f"/api/workspace/file?session_id={self.session_id}"
        self.reset_outputs()
        return uploaded

    def to_dict(self) -> dict[str, Any]:
        data = self.state.to_dict()
        step = self.step
        data["sessionId"] = self.session_id
        data["step"] = step.value
        data["showIndicator"] = show_indicator(step)
        data["indicator"] = indicator_steps(step)
        return data


class SessionStore:
    """
    세션 저장소 (in-memory, LRU).

    max_sessions 초과 시 가장 오래 조회되지 않은 세션부터 제거.
    """

    def __init__(self, max_sessions: int = MAX_SESSIONS) -> None:
        if max_sessions < 1:
            raise ValueError(f"max_sessions must be >= 1, got {max_sessions}")
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, WorkspaceSession] = OrderedDict()

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "SessionStore":
        workspace = config.get("workspace", {})
        return cls(max_sessions=int(workspace.get("max_sessions", MAX_SESSIONS)))

    def get(self, session_id: str) -> WorkspaceSession | None:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def get_or_create(self, session_id: str | None = None) -> WorkspaceSession:
        """
        세션 ID에 대응하는 세션 반환.

        ID가 없거나 모르는 ID면 새 세션 생성 (새 ID 발급).
        """
        if session_id:
            existing = self.get(session_id)
            if existing is not None:
                return existing

        session = WorkspaceSession()
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.info(f"Session evicted (store full): {evicted_id}")
        return session

    def drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def clear(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
