"""
재시도 유틸리티.

기본값은 재시도 없음 (max_retries=0). default.yaml ai.retry.max_retries로
일시적 서버 에러(429/5xx)에 한해 지수 백오프 재시도를 켤 수 있음.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """지수 백오프 설정."""
    max_retries: int = 0
    initial_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "RetryPolicy":
        retry = config.get("ai", {}).get("retry", {})
        return cls(
            max_retries=int(retry.get("max_retries", 0)),
            initial_delay=float(retry.get("initial_delay", 1.0)),
            max_delay=float(retry.get("max_delay", 30.0)),
        )


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    is_retryable: Callable[[Exception], bool],
) -> T:
    """
    is_retryable이 True인 예외에 한해 지수 백오프 재시도.

    Args:
        func: 인자 없는 비동기 함수
        policy: 재시도 설정
        is_retryable: 재시도 대상 예외 판별

    Returns:
        func의 반환값

    Raises:
        재시도 불가 예외 또는 마지막 시도의 예외
    """
    delay = policy.initial_delay
    attempt = 0

    while True:
        try:
            result = await func()
            if attempt > 0:
                logger.info(f"Retry succeeded on attempt {attempt + 1}")
            return result
        except Exception as e:
            if not is_retryable(e) or attempt >= policy.max_retries:
                if attempt > 0:
                    logger.error(f"All {attempt + 1} attempts failed. Last error: {e}")
                raise

            attempt += 1
            logger.warning(
                f"Attempt {attempt}/{policy.max_retries + 1} failed: {e}. "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)
            delay = min(delay * policy.exponential_base, policy.max_delay)
