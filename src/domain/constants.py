"""
Domain Constants: 파이프라인 전역 상수.

파일명 정책, 경로 상수, placeholder 패턴 등 시스템 전반에서 사용되는 값들.
"""

import os
import re

# =============================================================================
# Placeholder Pattern
# =============================================================================
# {{name}} 형식, name은 '}'를 제외한 임의 문자열

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")

# YYYY-MM-DD 로 시작하면 날짜 값으로 저장
ISO_DATE_PREFIX_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")

# =============================================================================
# Generated Artifacts (생성 파일 정책)
# =============================================================================
# output-generated/
# ├── docx/   generated-<ms>.docx
# ├── excel/  generated-<ms>.xlsx
# └── pdf/    generated-<ms>.pdf
#
# 파일명은 항상 타임스탬프 기반, 사용자 입력으로 만들지 않음

ARTIFACT_FILENAME_PREFIX = "generated-"

ARTIFACT_DIRS = {
    "pdf": "pdf",
    "excel": "excel",
    "docx": "docx",
}

ARTIFACT_EXTENSIONS = {
    "pdf": ".pdf",
    "excel": ".xlsx",
    "docx": ".docx",
}

# =============================================================================
# Templates
# =============================================================================

SUPPORTED_TEMPLATE_EXTENSIONS = (".docx", ".xlsx")

# =============================================================================
# Images (DOCX 이미지 필드 기본값)
# =============================================================================

IMAGE_FIELD_TYPE = "image"
DEFAULT_IMAGE_FORMAT = "png"
DEFAULT_IMAGE_WIDTH = 150
DEFAULT_IMAGE_HEIGHT = 100
DEFAULT_IMAGE_TRANSPARENCY = 0

# px → EMU (96 DPI 기준)
EMU_PER_PIXEL = 9525

IMAGE_FORMATS = {
    "png": "image/png",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "gif": "image/gif",
    "bmp": "image/bmp",
}

# =============================================================================
# MIME Types
# =============================================================================

MIME_TYPES = {
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".pdf": "application/pdf",
}


def get_mime_type(filename: str) -> str:
    """
    파일명에서 MIME 타입 추출.

    Args:
        filename: 파일명 (확장자 포함)

    Returns:
        MIME 타입 문자열 (알 수 없으면 octet-stream)
    """
    ext = os.path.splitext(filename)[1].lower()
    return MIME_TYPES.get(ext, "application/octet-stream")
