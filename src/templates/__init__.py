"""
Templates layer: 업로드 템플릿 저장 + placeholder 추출.

역할:
- 템플릿 저장/조회 (manager.py)
- {{name}} placeholder 스캔 (scanner.py)

주의: 폴더 구분
- src/templates/ → 코드 (이 모듈)
- templates/ (루트) → 업로드된 템플릿 저장소
"""

from .manager import (
    NullTemplateMirror,
    TemplateMirror,
    TemplateStore,
    clean_template_name,
    template_from_path,
)
from .scanner import scan_placeholders, scan_xlsx_placeholders

__all__ = [
    # manager
    "TemplateStore",
    "TemplateMirror",
    "NullTemplateMirror",
    "clean_template_name",
    "template_from_path",
    # scanner
    "scan_placeholders",
    "scan_xlsx_placeholders",
]
