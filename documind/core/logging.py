"""
Call logging: 원격 모델 호출 기록.

호출 1회 = CallLog 1개:
- 필수 키: run_id, session_id, operation, model, started_at, result
- 실패 시: error_code, error_message
- logging.call_log_dir 설정 시 JSON 파일로도 저장
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from documind.core.ids import generate_run_id

logger = logging.getLogger(__name__)


@dataclass
class CallLog:
    """원격 호출 1회 기록."""
    run_id: str
    session_id: str
    operation: str
    model: str | None
    started_at: str
    finished_at: str | None = None
    result: str = "pending"  # pending | success | failed
    error_code: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "session_id": self.session_id,
            "operation": self.operation,
            "model": self.model,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


def configure_logging(config: dict[str, Any]) -> None:
    """default.yaml의 logging 섹션으로 루트 로거 설정."""
    log_config = config.get("logging", {})
    logging.basicConfig(
        level=getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO),
        format=log_config.get("format", "%(asctime)s [%(levelname)s] %(name)s: %(message)s"),
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_call_log(session_id: str, operation: str, model: str | None) -> CallLog:
    """
    새 CallLog 생성.

    Args:
        session_id: 워크스페이스 세션 ID
        operation: 동작 이름 (예: intel.analyze, creative.video)
        model: 호출 대상 모델

    Returns:
        초기화된 CallLog
    """
    return CallLog(
        run_id=generate_run_id(),
        session_id=session_id,
        operation=operation,
        model=model,
        started_at=datetime.now(UTC).isoformat(),
    )


def complete_call_log(
    call_log: CallLog,
    success: bool,
    error_code: str | None = None,
    error_message: str | None = None,
) -> None:
    """CallLog 완료 처리."""
    call_log.finished_at = datetime.now(UTC).isoformat()
    call_log.result = "success" if success else "failed"

    if not success:
        call_log.error_code = error_code
        call_log.error_message = error_message
        logger.warning(
            f"{call_log.operation} failed ({call_log.run_id}): "
            f"[{error_code}] {error_message}"
        )
    else:
        logger.info(f"{call_log.operation} succeeded ({call_log.run_id})")


def save_call_log(call_log: CallLog, logs_dir: Path) -> Path:
    """
    CallLog를 파일로 저장 (temp + rename).

    Returns:
        저장된 파일 경로
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"call_{call_log.run_id}.json"

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=logs_dir,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            json.dump(call_log.to_dict(), f, indent=2, ensure_ascii=False)

        os.replace(temp_path, log_path)
    except Exception:
        # 실패 시 temp 정리 후 전파
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise
    return log_path
