"""
DocuMind AI: Gemini 기반 문서/미디어 인텔리전스 워크스페이스.

레이어:
- app/ → FastAPI 서버 (routes, services, providers)
- core/ → 응답 파싱, 오디오 코덱, 워크스페이스 상태
- domain/ → 스키마, 에러, 상수
"""

__version__ = "0.1.0"
