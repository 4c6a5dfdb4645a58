"""
Application Services.

역할:
- generation: 템플릿 렌더링 → PDF 변환 → 생성 파일 목록
"""

from .generation import GenerationResult, generate_documents

__all__ = [
    "GenerationResult",
    "generate_documents",
]
