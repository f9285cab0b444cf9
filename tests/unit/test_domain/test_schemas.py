"""
test_schemas.py - 모델 응답 → 도메인 객체 변환 테스트
"""

from types import SimpleNamespace

import pytest

from documind.domain.errors import DocuMindError, ErrorCodes, ResponseParseError
from documind.domain.schemas import (
    AnalysisResult,
    AnalysisSection,
    CreativeOutput,
    DocumentEntity,
    GroundingSource,
    HubItem,
    HubResult,
    ProcessingStep,
    UploadedFile,
    WorkspaceState,
    grounding_from_chunks,
)

# =============================================================================
# Grounding
# =============================================================================


class TestGroundingSource:
    """GroundingSource.from_chunk 테스트."""

    def test_web_chunk_object(self):
        chunk = SimpleNamespace(
            web=SimpleNamespace(uri="https://example.com", title="Example"),
            maps=None,
        )

        source = GroundingSource.from_chunk(chunk)

        assert source == GroundingSource(kind="web", uri="https://example.com", title="Example")

    def test_maps_chunk_dict(self):
        source = GroundingSource.from_chunk(
            {"maps": {"uri": "https://maps.google.com/?cid=1", "title": "Office"}}
        )

        assert source.kind == "maps"
        assert source.title == "Office"

    def test_chunk_without_payload_dropped(self):
        chunks = [
            {"web": {"uri": "https://a.com"}},
            {"retrievedContext": {"uri": "x"}},
            SimpleNamespace(web=None, maps=None),
        ]

        sources = grounding_from_chunks(chunks)

        assert [s.uri for s in sources] == ["https://a.com"]

    def test_none_chunks(self):
        assert grounding_from_chunks(None) == []


# =============================================================================
# Document Intelligence
# =============================================================================


class TestAnalysisResult:
    """AnalysisResult.from_dict 테스트."""

    def test_full_payload(self):
        data = {
            "markdown": "# Invoice",
            "jsonSchema": {"type": "object"},
            "sections": [
                {
                    "title": "Payment Terms",
                    "content": "Net 90",
                    "riskScore": 0.8,
                    "entities": [
                        {"type": "org", "value": "ACME", "confidence": 0.9},
                        "John Doe",
                    ],
                }
            ],
            "explanation": "Long payment terms.",
            "websiteCode": "<html></html>",
        }
        grounding = [GroundingSource(kind="web", uri="https://a.com")]

        result = AnalysisResult.from_dict(data, grounding)

        assert result.markdown == "# Invoice"
        assert result.json_schema == {"type": "object"}
        assert result.explanation == "Long payment terms."
        assert result.website_code == "<html></html>"
        assert result.grounding == grounding
        section = result.sections[0]
        assert section.risk_score == 0.8
        assert section.risk_level == "high"
        assert section.entities[0] == DocumentEntity(type="org", value="ACME", confidence=0.9)
        assert section.entities[1] == DocumentEntity(type="entity", value="John Doe")

    def test_missing_keys_get_defaults(self):
        result = AnalysisResult.from_dict({})

        assert result.markdown == ""
        assert result.json_schema == {}
        assert result.sections == []
        assert result.website_code is None
        assert result.grounding == []

    def test_to_dict_uses_camel_case(self):
        result = AnalysisResult.from_dict(
            {"sections": [{"title": "A", "content": "B", "riskScore": 0.5}]},
            [GroundingSource(kind="maps", uri="https://m")],
        )

        data = result.to_dict()

        assert data["sections"][0]["riskScore"] == 0.5
        assert data["sections"][0]["riskLevel"] == "medium"
        assert data["groundingUrls"] == [{"kind": "maps", "uri": "https://m", "title": None}]
        assert "jsonSchema" in data
        assert "websiteCode" in data


class TestAnalysisSection:
    """리스크 점수 정규화 테스트."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(1.7, 1.0), (-0.2, 0.0), ("0.3", 0.3), ("high", 0.0), (None, 0.0)],
    )
    def test_risk_score_clamped(self, raw, expected):
        section = AnalysisSection.from_dict({"title": "t", "content": "c", "riskScore": raw})

        assert section.risk_score == pytest.approx(expected)

    def test_risk_level_low(self):
        assert AnalysisSection(title="t", content="c", risk_score=0.1).risk_level == "low"


# =============================================================================
# Hugging Face Explorer
# =============================================================================


class TestHubResult:
    """HubResult.from_dict 테스트."""

    def test_items_and_url_normalization(self):
        data = {
            "explanation": "Trending now",
            "items": [
                {
                    "type": "model",
                    "name": "org/model",
                    "description": "desc",
                    "tags": ["nlp"],
                    "url": "huggingface.co/org/model",
                },
                {"type": "space", "name": "org/space", "url": "https://huggingface.co/spaces/org/space"},
                "not-a-dict",
            ],
        }

        result = HubResult.from_dict(data)

        assert result.explanation == "Trending now"
        assert len(result.items) == 2
        assert result.items[0].url == "https://huggingface.co/org/model"
        assert result.items[1].url == "https://huggingface.co/spaces/org/space"
        assert result.items[1].tags == []

    def test_item_defaults(self):
        item = HubItem.from_dict({})

        assert item.type == "model"
        assert item.url == ""


# =============================================================================
# Files / Creative / State
# =============================================================================


class TestMediaObjects:
    """업로드 파일, 생성 결과 테스트."""

    def test_uploaded_file(self):
        uploaded = UploadedFile(filename="a.png", mime_type="image/png", data=b"\x00\x01")

        assert uploaded.base64 == "AAE="
        assert uploaded.is_image
        assert uploaded.to_dict() == {"filename": "a.png", "mimeType": "image/png", "size": 2}

    def test_audio_is_not_image(self):
        assert not UploadedFile(filename="a.mp3", mime_type="audio/mpeg", data=b"").is_image

    def test_creative_data_url(self):
        output = CreativeOutput(kind="image", mime_type="image/png", data=b"\x00\x01")

        assert output.data_url == "data:image/png;base64,AAE="
        assert output.to_dict() == {"kind": "image", "mimeType": "image/png", "size": 2}


class TestWorkspaceState:
    """WorkspaceState 테스트."""

    def test_defaults(self):
        data = WorkspaceState().to_dict()

        assert data["mode"] == "DOC_INTEL"
        assert data["step"] == "IDLE"
        assert data["file"] is None
        assert data["activeResultTab"] == "sections"
        assert data["chatHistory"] == []

    def test_terminal_steps(self):
        assert ProcessingStep.COMPLETED.is_terminal
        assert ProcessingStep.FAILED.is_terminal
        assert not ProcessingStep.PROCESSING.is_terminal


# =============================================================================
# Errors
# =============================================================================


class TestErrors:
    """DocuMindError 테스트."""

    def test_message(self):
        error = DocuMindError(ErrorCodes.FILE_REQUIRED, "Upload an input file first.", mode="DOC_INTEL")

        assert str(error) == "Upload an input file first."
        assert error.to_dict() == {
            "code": "FILE_REQUIRED",
            "mode": "DOC_INTEL",
            "message": "Upload an input file first.",
        }

    def test_message_from_context(self):
        error = DocuMindError(ErrorCodes.INVALID_OPTION, field="tab")

        assert str(error) == "[INVALID_OPTION] field='tab'"

    def test_response_parse_error_code(self):
        assert ResponseParseError("bad").code == ErrorCodes.RESPONSE_PARSE_FAILED
