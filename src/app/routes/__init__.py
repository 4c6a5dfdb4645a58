"""
FastAPI Routes.

페이지 라우트 (HTML) + API 라우트 (업로드, 생성, 다운로드)
"""

from . import download, generate, templates

__all__ = ["download", "generate", "templates"]
