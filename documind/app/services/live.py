"""
Live Voice Relay: 브라우저 WebSocket ↔ Gemini live 오디오 세션.

프로토콜 (브라우저 측):
- → 서버: binary 프레임 = 마이크 float32 LE 샘플 (16kHz mono)
- → 서버: {"type": "clock", "currentTime": s} = 브라우저 재생 시계 동기화
- → 서버: {"type": "close"} = 종료 요청
- ← 서버: {"type": "open", "sampleRate": 24000, "inputSampleRate": 16000}
- ← 서버: {"type": "audio", "data": <b64 PCM16>, "startAt": s, "duration": s}
- ← 서버: {"type": "error", "code": ..., "message": ...}
- ← 서버: {"type": "closed"}

startAt은 브라우저 재생 시계 기준 시각 (clock 동기화 전에는 세션 시작 기준).
청크는 겹치지 않게 이어 붙임.
"""

import asyncio
import json
import logging
import time
from collections.abc import Callable
from typing import Any

from fastapi import WebSocket, WebSocketDisconnect

from documind.app.providers.base import GenerativeProvider, ProviderError
from documind.core.audio import (
    PlaybackScheduler,
    decode_audio_data,
    encode_audio,
    float32_frames_to_pcm16,
)
from documind.domain.constants import AUDIO_CHANNELS, INPUT_SAMPLE_RATE, OUTPUT_SAMPLE_RATE
from documind.domain.errors import ErrorCodes

logger = logging.getLogger(__name__)


class LiveVoiceRelay:
    """
    WebSocket 1개당 relay 1개.

    Usage:
        relay = LiveVoiceRelay(provider)
        await relay.run(websocket)
    """

    def __init__(
        self,
        provider: GenerativeProvider,
        clock: Callable[[], float] = time.monotonic,
        output_rate: int = OUTPUT_SAMPLE_RATE,
    ):
        self.provider = provider
        self.clock = clock
        self.output_rate = output_rate
        self.scheduler = PlaybackScheduler()
        self.client_gone = False
        self._epoch = 0.0

    async def run(self, websocket: WebSocket) -> None:
        """세션 연결 → 양방향 중계 → 정리. 예외는 error 메시지로 전달."""
        try:
            async with self.provider.connect_live() as session:
                self._epoch = self.clock()
                self.scheduler.reset()
                await websocket.send_json(
                    {
                        "type": "open",
                        "sampleRate": self.output_rate,
                        "inputSampleRate": INPUT_SAMPLE_RATE,
                    }
                )
                logger.info("Live session opened")
                await self._relay(websocket, session)
        except ProviderError as e:
            logger.error(f"{ErrorCodes.LIVE_START_FAILED}: [{e.code}] {e.message}")
            await self._send_error(websocket, e.code, e.message)
        except WebSocketDisconnect:
            self.client_gone = True
        except Exception as e:
            logger.error(f"{ErrorCodes.LIVE_PROTOCOL_FAULT}: {e}", exc_info=True)
            await self._send_error(websocket, ErrorCodes.LIVE_PROTOCOL_FAULT, str(e))
        finally:
            if not self.client_gone:
                await self._safe_send(websocket, {"type": "closed"})
            logger.info("Live session closed")

    async def _relay(self, websocket: WebSocket, session: Any) -> None:
        upstream = asyncio.create_task(self._upstream(websocket, session))
        downstream = asyncio.create_task(self._downstream(websocket, session))
        done, pending = await asyncio.wait(
            {upstream, downstream}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        for task in pending:
            try:
                await task
            except asyncio.CancelledError:
                pass
        for task in done:
            # 종료된 쪽의 예외를 run()으로 전파
            task.result()

    async def _upstream(self, websocket: WebSocket, session: Any) -> None:
        """브라우저 마이크 프레임 → 모델."""
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                self.client_gone = True
                return

            frame = message.get("bytes")
            if frame:
                await self.provider.send_live_audio(session, float32_frames_to_pcm16(frame))
                continue

            text = message.get("text")
            if not text:
                continue
            try:
                control = json.loads(text)
            except json.JSONDecodeError:
                logger.warning(f"Ignoring malformed live control message: {text[:80]!r}")
                continue
            if not isinstance(control, dict):
                continue
            if control.get("type") == "close":
                return
            if control.get("type") == "clock":
                self.sync_clock(control.get("currentTime"))

    def sync_clock(self, playback_time: Any) -> None:
        """브라우저 재생 시계 기준으로 epoch 재설정."""
        if isinstance(playback_time, bool) or not isinstance(playback_time, (int, float)):
            logger.warning(f"Ignoring invalid live clock value: {playback_time!r}")
            return
        self._epoch = self.clock() - float(playback_time)

    async def _downstream(self, websocket: WebSocket, session: Any) -> None:
        """모델 오디오 청크 → 브라우저 (재생 시각 포함)."""
        async for chunk in self.provider.receive_live_audio(session):
            buffer = decode_audio_data(chunk, self.output_rate, AUDIO_CHANNELS)
            start_at = self.scheduler.schedule(buffer.duration, self.clock() - self._epoch)
            await websocket.send_json(
                {
                    "type": "audio",
                    "data": encode_audio(chunk),
                    "startAt": start_at,
                    "duration": buffer.duration,
                }
            )

    async def _send_error(self, websocket: WebSocket, code: str, message: str) -> None:
        if not self.client_gone:
            await self._safe_send(
                websocket, {"type": "error", "code": code, "message": message}
            )

    async def _safe_send(self, websocket: WebSocket, payload: dict[str, Any]) -> None:
        try:
            await websocket.send_json(payload)
        except (RuntimeError, WebSocketDisconnect):
            self.client_gone = True
