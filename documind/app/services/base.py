"""
Service 공통: Provider 주입 + 호출 기록 + 에러 → UI 상태 반영.

에러 처리 원칙:
- 원격 호출 에러는 호출 지점(서비스)에서 잡아 session.fail(message)로 표시
- 입력 검증 에러(DocuMindError)는 호출 전에 발생 → 라우트에서 400
"""

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

from documind.app.providers.base import GenerativeProvider, ProviderError
from documind.app.providers.gemini import GeminiProvider
from documind.core.logging import complete_call_log, create_call_log, save_call_log
from documind.core.session import WorkspaceSession
from documind.domain.errors import DocuMindError, ErrorCodes
from documind.domain.schemas import UploadedFile

logger = logging.getLogger(__name__)

T = TypeVar("T")


def describe_error(error: Exception) -> tuple[str, str]:
    """예외 → (code, 사용자 메시지)."""
    if isinstance(error, ProviderError):
        return error.code, error.message
    if isinstance(error, DocuMindError):
        return error.code, str(error)
    return ErrorCodes.REQUEST_FAILED, str(error) or type(error).__name__


class WorkspaceService:
    """
    모드별 서비스의 공통 베이스.

    Args:
        config: 설정 (default.yaml)
        provider: 생성 모델 Provider (None이면 config 기반 Gemini 생성)
    """

    def __init__(
        self,
        config: dict[str, Any],
        provider: GenerativeProvider | None = None,
    ):
        self.config = config
        self.provider = provider if provider is not None else GeminiProvider.from_config(config)

        call_log_dir = config.get("logging", {}).get("call_log_dir")
        self.call_log_dir = Path(call_log_dir) if call_log_dir else None

    async def _tracked(
        self,
        session: WorkspaceSession,
        operation: str,
        purpose: str,
        func: Callable[[], Awaitable[T]],
    ) -> T:
        """
        원격 호출 1회 실행 + CallLog 기록.

        예외는 기록 후 그대로 전파.
        """
        call_log = create_call_log(
            session.session_id, operation, self.provider.model_name(purpose)
        )
        session.call_logs.append(call_log)
        try:
            result = await func()
        except Exception as e:
            code, message = describe_error(e)
            complete_call_log(call_log, success=False, error_code=code, error_message=message)
            raise
        else:
            complete_call_log(call_log, success=True)
            return result
        finally:
            if self.call_log_dir is not None:
                save_call_log(call_log, self.call_log_dir)

    def _fail(self, session: WorkspaceSession, error: Exception) -> None:
        """호출 실패를 세션 상태에 반영."""
        code, message = describe_error(error)
        if not isinstance(error, (ProviderError, DocuMindError)):
            logger.error(f"Unexpected failure in {type(self).__name__}: {error}", exc_info=True)
        session.fail(message, code)

    @staticmethod
    def _require_file(session: WorkspaceSession, mode: str) -> UploadedFile:
        if session.state.file is None:
            raise DocuMindError(
                ErrorCodes.FILE_REQUIRED,
                "Upload an input file first.",
                mode=mode,
            )
        return session.state.file
