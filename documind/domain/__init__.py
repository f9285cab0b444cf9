"""
Domain layer: 스키마, 에러 코드, 상수.
"""

from .errors import DocuMindError, ErrorCodes, ResponseParseError
from .schemas import AnalysisResult, AppMode, ProcessingStep, WorkspaceState

__all__ = [
    "DocuMindError",
    "ErrorCodes",
    "ResponseParseError",
    "AnalysisResult",
    "AppMode",
    "ProcessingStep",
    "WorkspaceState",
]
