"""
FastAPI Routes.

페이지 라우트 (HTML) + API 라우트 (REST + SSE + WebSocket)
"""

from . import audio, chat, creative, intel, workspace

__all__ = ["audio", "chat", "creative", "intel", "workspace"]
