"""
모델 응답 JSON 추출.

모델은 JSON을 요청받아도 ```json 펜스나 설명 문장을 섞어 돌려주는 경우가 있음:
1. 전체 텍스트를 그대로 파싱
2. 실패 시 첫 '{' ~ 마지막 '}' 블록만 잘라 재파싱
3. 그래도 실패하면 ResponseParseError
"""

import json
import re
from typing import Any

from documind.domain.errors import ResponseParseError

_BRACE_BLOCK = re.compile(r"\{[\s\S]*\}")


def extract_json(text: str) -> dict[str, Any]:
    """
    응답 텍스트에서 JSON 객체 추출.

    Args:
        text: 모델 응답 텍스트

    Returns:
        파싱된 JSON 객체

    Raises:
        ResponseParseError: 블록은 있으나 파싱 불가, 또는 블록 없음
    """
    try:
        parsed = json.loads(text)
        # 최상위가 배열/스칼라면 중괄호 블록 추출로 넘어감 (객체 배열은 보통 파싱 실패)
        if isinstance(parsed, dict):
            return parsed
    except (json.JSONDecodeError, TypeError):
        pass

    match = _BRACE_BLOCK.search(text or "")
    if match is None:
        raise ResponseParseError("No valid JSON found in response")

    try:
        data: dict[str, Any] = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ResponseParseError("Failed to parse response JSON") from e
    return data
