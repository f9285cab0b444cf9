"""
Error definitions for the workspace.

원칙:
- 원격 호출 에러는 호출 지점에서 잡아 사람이 읽을 수 있는 메시지로 UI 상태에 반영
- JSON 파싱 실패는 ResponseParseError로 명시적 실패
"""

from typing import Any


class DocuMindError(Exception):
    """
    워크스페이스 동작 실패 시 발생하는 에러.

    Usage:
        raise DocuMindError("FILE_REQUIRED", mode="DOC_INTEL")
        raise DocuMindError("INVALID_OPTION", message="...", field="aspect_ratio")
    """

    def __init__(self, code: str, message: str | None = None, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.message:
            return self.message
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.code}] {ctx_str}" if ctx_str else f"[{self.code}]"

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        data: dict[str, Any] = {"code": self.code, **self.context}
        if self.message:
            data["message"] = self.message
        return data


class ResponseParseError(DocuMindError):
    """모델 응답에서 JSON을 얻지 못함."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(ErrorCodes.RESPONSE_PARSE_FAILED, message, **context)


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Input ===
    FILE_REQUIRED = "FILE_REQUIRED"
    INVALID_OPTION = "INVALID_OPTION"
    UNKNOWN_SESSION = "UNKNOWN_SESSION"

    # === Response ===
    RESPONSE_PARSE_FAILED = "RESPONSE_PARSE_FAILED"
    GENERATION_EMPTY = "GENERATION_EMPTY"

    # === Remote API ===
    API_KEY_MISSING = "API_KEY_MISSING"
    API_KEY_SELECTION_REQUIRED = "API_KEY_SELECTION_REQUIRED"
    AUTH_OR_INPUT_ERROR = "AUTH_OR_INPUT_ERROR"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    GENAI_NOT_INSTALLED = "GENAI_NOT_INSTALLED"
    REQUEST_FAILED = "REQUEST_FAILED"
    VIDEO_DOWNLOAD_FAILED = "VIDEO_DOWNLOAD_FAILED"

    # === Live ===
    LIVE_PROTOCOL_FAULT = "LIVE_PROTOCOL_FAULT"
    LIVE_START_FAILED = "LIVE_START_FAILED"
