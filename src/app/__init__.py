"""
App layer: HTTP 서버 (FastAPI).

역할:
- 템플릿 업로드, 생성 요청, 생성 파일 다운로드
- PipelineError → HTTP 응답 변환
- 렌더링/변환/저장 로직 없음 (render, core에 위임)

주의: 폴더 구분
- src/templates/ → 코드 (manager.py, scanner.py)
- templates/ (루트) → 업로드된 템플릿 저장소
"""
