"""
Services: 모드별 비즈니스 로직.

라우트는 서비스만 호출하고, 서비스는 Provider만 호출.
"""

from .base import WorkspaceService, describe_error
from .chat import ChatService
from .creative import CreativeService
from .hub import HubService
from .intel import IntelService
from .live import LiveVoiceRelay
from .speech import SpeechService

__all__ = [
    "WorkspaceService",
    "describe_error",
    "IntelService",
    "HubService",
    "CreativeService",
    "SpeechService",
    "ChatService",
    "LiveVoiceRelay",
]
