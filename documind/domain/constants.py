"""
Domain Constants: 워크스페이스 전역 상수.

모델명/보이스 등은 default.yaml이 우선이며, 여기 값은 config 누락 시 기본값.
"""

# =============================================================================
# Models (default.yaml ai.models.* 기본값)
# =============================================================================

DEFAULT_MODELS: dict[str, str] = {
    "intel": "gemini-3-pro-preview",
    "intel_maps": "gemini-2.5-flash-latest",
    "hub": "gemini-3-pro-preview",
    "image_pro": "gemini-3-pro-image-preview",
    "image_edit": "gemini-2.5-flash-image",
    "video": "veo-3.1-fast-generate-preview",
    "transcribe": "gemini-3-flash-preview",
    "tts": "gemini-2.5-flash-preview-tts",
    "chat": "gemini-3-pro-preview",
    "chat_lite": "gemini-3-flash-preview",
    "live": "gemini-2.5-flash-native-audio-preview-09-2025",
}

DEFAULT_VOICES: dict[str, str] = {
    "tts": "Kore",
    "live": "Zephyr",
}

THINKING_BUDGET = 32768

# =============================================================================
# Creative options
# =============================================================================

IMAGE_ASPECT_RATIOS = ("1:1", "3:4", "4:3", "9:16", "16:9", "21:9")
IMAGE_SIZES = ("1K", "2K", "4K")
VIDEO_ASPECT_RATIOS = ("16:9", "9:16")
VIDEO_RESOLUTION = "720p"
VIDEO_POLL_INTERVAL = 10.0  # seconds

# =============================================================================
# Audio
# =============================================================================

INPUT_SAMPLE_RATE = 16000
OUTPUT_SAMPLE_RATE = 24000
AUDIO_CHANNELS = 1
CAPTURE_FRAME_SIZE = 4096
LIVE_INPUT_MIME_TYPE = f"audio/pcm;rate={INPUT_SAMPLE_RATE}"

# =============================================================================
# Pipeline pacing (초 단위, UI 표시용)
# =============================================================================

STEP_DELAY_SEMANTIC = 1.2
STEP_DELAY_REASONING = 2.8

# 메모리에 유지하는 최대 세션 수 (초과 시 가장 오래 안 쓴 세션 제거)
MAX_SESSIONS = 200

# =============================================================================
# Workspace defaults
# =============================================================================

DEFAULT_INTEL_INTENT = "Extract structured insights and detect risks."
DEFAULT_HUB_QUERY = "Zenieverse"
RESULT_TABS = ("sections", "markdown", "json", "web")

NARRATION_READY = "Zenieverse protocols fully active. ERNIE reasoning online."
NARRATION_CREATIVE_DONE = "Creative generation protocol complete."

REPO_URL = "https://huggingface.co/Zenieverse/DocuMind-ERNIE4.5-Document-Reasoning"
GITHUB_URL = "https://github.com/Zenieverse/DocuMind"
PROFILE_URL = "https://huggingface.co/Zenieverse"
