"""
Data schemas for the workspace.

규칙:
- 모델 응답(camelCase JSON) → dataclass 변환은 from_dict에서만
- to_dict는 UI/JSON 응답용 (camelCase 키 유지)
- 모든 상태는 브라우저 탭 수명 동안만 유지 (영속성 없음)
"""

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# =============================================================================
# Enums
# =============================================================================

class ProcessingStep(str, Enum):
    """
    처리 단계 (UI 표시용).

    OCR_EXTRACTING → SEMANTIC_ANALYSIS → MULTIMODAL_REASONING 은
    문서 파이프라인의 시각적 진행 단계. 다른 모드는 PROCESSING 사용.
    """
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    OCR_EXTRACTING = "OCR_EXTRACTING"
    SEMANTIC_ANALYSIS = "SEMANTIC_ANALYSIS"
    MULTIMODAL_REASONING = "MULTIMODAL_REASONING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStep.COMPLETED, ProcessingStep.FAILED)


class AppMode(str, Enum):
    """워크스페이스 모드."""
    DOC_INTEL = "DOC_INTEL"
    CREATIVE = "CREATIVE"
    HUGGING_FACE = "HUGGING_FACE"
    CHAT = "CHAT"
    TRANSCRIPTION = "TRANSCRIPTION"


class CreativeTask(str, Enum):
    """Creative 모드 작업 종류."""
    PRO_GEN = "PRO_GEN"
    FLASH_EDIT = "FLASH_EDIT"
    VEO_VIDEO = "VEO_VIDEO"


# =============================================================================
# Helpers
# =============================================================================

def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


# =============================================================================
# Grounding
# =============================================================================

@dataclass
class GroundingSource:
    """Grounding 인용 (웹 또는 지도)."""
    kind: str  # web | maps
    uri: str
    title: str | None = None

    @classmethod
    def from_chunk(cls, chunk: Any) -> "GroundingSource | None":
        """
        grounding chunk → GroundingSource.

        SDK 객체(.web/.maps 속성)와 dict 모두 허용.
        web/maps 둘 다 없으면 None.
        """
        for kind in ("web", "maps"):
            payload = (
                chunk.get(kind) if isinstance(chunk, dict) else getattr(chunk, kind, None)
            )
            if not payload:
                continue
            if isinstance(payload, dict):
                uri = payload.get("uri")
                title = payload.get("title")
            else:
                uri = getattr(payload, "uri", None)
                title = getattr(payload, "title", None)
            if uri:
                return cls(kind=kind, uri=uri, title=title)
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "uri": self.uri, "title": self.title}


def grounding_from_chunks(chunks: list[Any] | None) -> list[GroundingSource]:
    """chunk 목록 → GroundingSource 목록 (변환 불가 chunk는 제외)."""
    sources = []
    for chunk in chunks or []:
        source = GroundingSource.from_chunk(chunk)
        if source is not None:
            sources.append(source)
    return sources


# =============================================================================
# Document Intelligence
# =============================================================================

@dataclass
class DocumentEntity:
    """섹션에서 식별된 엔티티."""
    type: str
    value: str
    confidence: float = 0.0

    @classmethod
    def from_raw(cls, raw: Any) -> "DocumentEntity":
        # 모델이 문자열 목록으로 돌려주는 경우가 있음
        if isinstance(raw, dict):
            return cls(
                type=str(raw.get("type", "entity")),
                value=str(raw.get("value", raw.get("name", ""))),
                confidence=_to_float(raw.get("confidence")),
            )
        return cls(type="entity", value=str(raw))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "value": self.value, "confidence": self.confidence}


@dataclass
class AnalysisSection:
    """리스크 점수가 붙은 분석 섹션."""
    title: str
    content: str
    risk_score: float = 0.0
    entities: list[DocumentEntity] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AnalysisSection":
        return cls(
            title=str(data.get("title", "")),
            content=str(data.get("content", "")),
            risk_score=_clamp(_to_float(data.get("riskScore"))),
            entities=[DocumentEntity.from_raw(e) for e in data.get("entities") or []],
        )

    @property
    def risk_level(self) -> str:
        """UI 배지용 리스크 등급."""
        if self.risk_score >= 0.7:
            return "high"
        if self.risk_score >= 0.4:
            return "medium"
        return "low"

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "content": self.content,
            "riskScore": self.risk_score,
            "riskLevel": self.risk_level,
            "entities": [e.to_dict() for e in self.entities],
        }


@dataclass
class AnalysisResult:
    """
    문서 파이프라인 결과.

    모델 응답 계약:
    {markdown, jsonSchema, sections[], explanation, websiteCode?}
    """
    markdown: str = ""
    json_schema: dict[str, Any] = field(default_factory=dict)
    sections: list[AnalysisSection] = field(default_factory=list)
    explanation: str = ""
    website_code: str | None = None
    grounding: list[GroundingSource] = field(default_factory=list)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        grounding: list[GroundingSource] | None = None,
    ) -> "AnalysisResult":
        json_schema = data.get("jsonSchema")
        sections = data.get("sections")
        return cls(
            markdown=str(data.get("markdown") or ""),
            json_schema=json_schema if isinstance(json_schema, dict) else {},
            sections=[
                AnalysisSection.from_dict(s)
                for s in (sections if isinstance(sections, list) else [])
                if isinstance(s, dict)
            ],
            explanation=str(data.get("explanation") or ""),
            website_code=data.get("websiteCode") or None,
            grounding=grounding or [],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "markdown": self.markdown,
            "jsonSchema": self.json_schema,
            "sections": [s.to_dict() for s in self.sections],
            "explanation": self.explanation,
            "websiteCode": self.website_code,
            "groundingUrls": [g.to_dict() for g in self.grounding],
        }


# =============================================================================
# Hugging Face Explorer
# =============================================================================

@dataclass
class HubItem:
    """Hugging Face 리소스 (model / dataset / space)."""
    type: str
    name: str
    description: str = ""
    tags: list[str] = field(default_factory=list)
    url: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HubItem":
        url = str(data.get("url") or "")
        if url and not url.startswith("http"):
            url = f"https://{url}"
        tags = data.get("tags")
        return cls(
            type=str(data.get("type", "model")),
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            tags=[str(t) for t in tags] if isinstance(tags, list) else [],
            url=url,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "tags": self.tags,
            "url": self.url,
        }


@dataclass
class HubResult:
    explanation: str = ""
    items: list[HubItem] = field(default_factory=list)
    grounding: list[GroundingSource] = field(default_factory=list)

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        grounding: list[GroundingSource] | None = None,
    ) -> "HubResult":
        items = data.get("items")
        return cls(
            explanation=str(data.get("explanation") or ""),
            items=[
                HubItem.from_dict(i)
                for i in (items if isinstance(items, list) else [])
                if isinstance(i, dict)
            ],
            grounding=grounding or [],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "explanation": self.explanation,
            "items": [i.to_dict() for i in self.items],
            "groundingUrls": [g.to_dict() for g in self.grounding],
        }


# =============================================================================
# Chat / Creative / Files
# =============================================================================

@dataclass
class ChatTurn:
    role: str  # user | ai
    text: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "text": self.text}


@dataclass
class CreativeOutput:
    """생성된 이미지/비디오."""
    kind: str  # image | video
    mime_type: str
    data: bytes

    @property
    def data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "mimeType": self.mime_type, "size": len(self.data)}


@dataclass
class UploadedFile:
    """워크스페이스에 올린 입력 미디어."""
    filename: str
    mime_type: str
    data: bytes

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def to_dict(self) -> dict[str, Any]:
        return {
            "filename": self.filename,
            "mimeType": self.mime_type,
            "size": len(self.data),
        }


# =============================================================================
# Workspace State
# =============================================================================

@dataclass
class WorkspaceState:
    """
    UI 뷰 상태.

    단일 세션, latest write wins. 영속성/동시성 요구 없음.
    """
    mode: AppMode = AppMode.DOC_INTEL
    file: UploadedFile | None = None
    preview_url: str | None = None
    step: ProcessingStep = ProcessingStep.IDLE
    result: AnalysisResult | None = None
    error: str | None = None
    error_code: str | None = None

    # 모드별 출력
    active_result_tab: str = "sections"
    creative_output: CreativeOutput | None = None
    transcription: str = ""
    chat_history: list[ChatTurn] = field(default_factory=list)
    hub_result: HubResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode.value,
            "file": self.file.to_dict() if self.file else None,
            "previewUrl": self.preview_url,
            "step": self.step.value,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
            "errorCode": self.error_code,
            "activeResultTab": self.active_result_tab,
            "creativeOutput": (
                self.creative_output.to_dict() if self.creative_output else None
            ),
            "transcription": self.transcription,
            "chatHistory": [t.to_dict() for t in self.chat_history],
            "hubResult": self.hub_result.to_dict() if self.hub_result else None,
        }
