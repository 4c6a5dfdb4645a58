"""
Render layer: 템플릿 + 데이터 → 최종 파일.

역할:
- openpyxl (Excel), python-docx + jinja2 (Word)
- LibreOffice (PDF 변환)
"""

from .excel import ExcelRenderer, render_xlsx
from .pdf import PdfConverter
from .word import DocxRenderer, normalize_image_fields, render_docx

__all__ = [
    "render_docx",
    "render_xlsx",
    "normalize_image_fields",
    "DocxRenderer",
    "ExcelRenderer",
    "PdfConverter",
]
