"""
오디오 스트림 유틸리티: base64, 16-bit PCM 변환, 재생 스케줄링.

포맷:
- 마이크 입력: float32 mono → PCM16 LE, 16kHz (audio/pcm;rate=16000)
- 모델 출력: PCM16 LE, 24kHz mono (TTS / live)
"""

import base64
import io
import wave
from dataclasses import dataclass

import numpy as np

from documind.domain.constants import AUDIO_CHANNELS, OUTPUT_SAMPLE_RATE

PCM16_SCALE = 32768.0


# =============================================================================
# Base64
# =============================================================================


def decode_base64_audio(data: str) -> bytes:
    """base64 문자열 → 원본 바이트."""
    return base64.b64decode(data)


def encode_audio(data: bytes) -> str:
    """바이트 → base64 문자열."""
    return base64.b64encode(data).decode("ascii")


# =============================================================================
# PCM16 <-> float
# =============================================================================


def pcm16_to_float(data: bytes, num_channels: int = AUDIO_CHANNELS) -> np.ndarray:
    """
    인터리브된 PCM16 LE → 채널별 float32 샘플.

    Returns:
        shape (num_channels, frame_count), 값 범위 [-1.0, 1.0)
    """
    samples = np.frombuffer(data, dtype="<i2")
    frame_count = len(samples) // num_channels
    # 마지막 불완전 프레임은 버림
    samples = samples[: frame_count * num_channels]
    return (samples.reshape(frame_count, num_channels).T / PCM16_SCALE).astype(
        np.float32
    )


def float_to_pcm16(samples: np.ndarray | list[float]) -> bytes:
    """float 샘플 → PCM16 LE 바이트 (int16 범위로 clip)."""
    scaled = np.asarray(samples, dtype=np.float32) * PCM16_SCALE
    return np.clip(scaled, -32768, 32767).astype("<i2").tobytes()


def float32_frames_to_pcm16(data: bytes) -> bytes:
    """브라우저 캡처 프레임(float32 LE 바이트) → PCM16 LE."""
    usable = len(data) - len(data) % 4
    return float_to_pcm16(np.frombuffer(data[:usable], dtype="<f4"))


@dataclass
class AudioBuffer:
    """디코딩된 PCM 청크."""
    channels: np.ndarray
    sample_rate: int

    @property
    def num_channels(self) -> int:
        return int(self.channels.shape[0])

    @property
    def frame_count(self) -> int:
        return int(self.channels.shape[1])

    @property
    def duration(self) -> float:
        return self.frame_count / self.sample_rate


def decode_audio_data(
    data: bytes,
    sample_rate: int = OUTPUT_SAMPLE_RATE,
    num_channels: int = AUDIO_CHANNELS,
) -> AudioBuffer:
    """PCM16 바이트 → AudioBuffer."""
    return AudioBuffer(
        channels=pcm16_to_float(data, num_channels),
        sample_rate=sample_rate,
    )


def pcm16_to_wav(
    data: bytes,
    sample_rate: int = OUTPUT_SAMPLE_RATE,
    num_channels: int = AUDIO_CHANNELS,
) -> bytes:
    """raw PCM16 → WAV 컨테이너 (브라우저 <audio> 재생용)."""
    buffer = io.BytesIO()
    with wave.open(buffer, "wb") as wf:
        wf.setnchannels(num_channels)
        wf.setsampwidth(2)
        wf.setframerate(sample_rate)
        wf.writeframes(data)
    return buffer.getvalue()


# =============================================================================
# Playback Scheduling
# =============================================================================


class PlaybackScheduler:
    """
    수신 오디오 청크를 겹치지 않게 이어 붙이는 재생 큐.

    불변식: 각 청크의 시작 시각 >= 직전 청크의 종료 시각.
    재생 측이 밀려 있으면(now < next_start_time) 큐 끝에 붙이고,
    비어 있으면(now >= next_start_time) 즉시 시작.
    """

    def __init__(self) -> None:
        self.next_start_time = 0.0

    def schedule(self, duration: float, now: float) -> float:
        """
        청크 시작 시각 결정.

        Args:
            duration: 청크 길이(초)
            now: 재생 시계의 현재 시각(초)

        Returns:
            청크 시작 시각
        """
        start = max(self.next_start_time, now)
        self.next_start_time = start + duration
        return start

    def reset(self) -> None:
        self.next_start_time = 0.0
