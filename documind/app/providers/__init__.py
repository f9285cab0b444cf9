"""
AI Provider Abstraction.

모델 교체 가능하게 설계, 모델명은 config만 SSOT.
"""

from .base import (
    ConfigurationError,
    GenerationError,
    GenerativeProvider,
    IntelOptions,
    MediaResult,
    ProviderError,
    StructuredResponse,
)
from .gemini import GeminiProvider

__all__ = [
    "GenerativeProvider",
    "GeminiProvider",
    "IntelOptions",
    "MediaResult",
    "StructuredResponse",
    "ProviderError",
    "GenerationError",
    "ConfigurationError",
]
