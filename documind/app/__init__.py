"""
App layer: UI 서버 (FastAPI).

역할:
- 대시보드 페이지, 파일 업로드, 세션/모드 관리
- 모드별 서비스 호출 (문서 분석, Creative, 전사, 채팅, 실시간 음성)
- 브라우저는 캡처/재생만 담당, 요청 구성과 응답 파싱은 서버에서

주의: 폴더 구분
- documind/app/templates/ → Jinja2 HTML
- documind/app/static/ → 브라우저 JS/CSS (마이크 캡처, 오디오 재생)
"""
