"""
Core layer: 응답 파싱, 오디오 코덱, 워크스페이스 상태.

역할:
- jsonparse: 모델 응답 → JSON (펜스/설명 섞인 응답 허용)
- audio: base64, PCM16 변환, 재생 스케줄링
- session: 뷰 상태 + 처리 단계 진행
- logging: 원격 호출 기록
"""

from .audio import (
    PlaybackScheduler,
    decode_audio_data,
    decode_base64_audio,
    encode_audio,
    float_to_pcm16,
    pcm16_to_wav,
)
from .ids import generate_run_id, generate_session_id
from .jsonparse import extract_json
from .logging import complete_call_log, create_call_log, save_call_log
from .session import ProcessingTimeline, SessionStore, WorkspaceSession

__all__ = [
    # jsonparse
    "extract_json",
    # audio
    "PlaybackScheduler",
    "decode_audio_data",
    "decode_base64_audio",
    "encode_audio",
    "float_to_pcm16",
    "pcm16_to_wav",
    # ids
    "generate_run_id",
    "generate_session_id",
    # logging
    "create_call_log",
    "complete_call_log",
    "save_call_log",
    # session
    "ProcessingTimeline",
    "SessionStore",
    "WorkspaceSession",
]
