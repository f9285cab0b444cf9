"""
ID 생성: session_id, run_id
"""

import uuid
from datetime import UTC, datetime


def generate_session_id() -> str:
    """
    워크스페이스 세션 ID 생성.

    포맷: WS-{uuid[:12]} (대문자)
    """
    return f"WS-{uuid.uuid4().hex[:12].upper()}"


def generate_run_id() -> str:
    """
    Run ID 생성 (원격 호출 1회 단위).

    고유성 보장: UUID v4
    포맷: RUN-{timestamp}-{uuid[:8]}
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"RUN-{timestamp}-{unique}"
