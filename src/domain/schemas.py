"""
Data schemas for the document pipeline.

규칙:
- 생성 파일명은 타임스탬프 기반 (사용자 입력 사용 금지)
- 모든 생성 파일은 정확히 하나의 타입 디렉터리에 속함
- 이미지 필드는 렌더링 전에 ImageField로 정규화
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from src.domain.constants import ARTIFACT_DIRS, ARTIFACT_EXTENSIONS, MIME_TYPES

# =============================================================================
# Enums
# =============================================================================

class TemplateFormat(str, Enum):
    """템플릿 형식 (확장자 기준)."""
    DOCX = "docx"
    XLSX = "xlsx"

    @classmethod
    def from_path(cls, path: Path | str) -> "TemplateFormat | None":
        """확장자로 형식 판별 (지원하지 않으면 None)."""
        suffix = Path(path).suffix.lower().lstrip(".")
        try:
            return cls(suffix)
        except ValueError:
            return None


class ArtifactType(str, Enum):
    """
    생성 파일 타입.

    값은 다운로드 URL의 type 세그먼트와 동일.
    """
    PDF = "pdf"
    EXCEL = "excel"
    DOCX = "docx"

    @property
    def directory_name(self) -> str:
        return ARTIFACT_DIRS[self.value]

    @property
    def extension(self) -> str:
        return ARTIFACT_EXTENSIONS[self.value]

    @property
    def media_type(self) -> str:
        return MIME_TYPES[self.extension]


# =============================================================================
# Core Schemas
# =============================================================================

@dataclass(frozen=True)
class Template:
    """업로드된 템플릿 (업로드 후 시스템이 수정하지 않음)."""
    path: Path
    format: TemplateFormat

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class ImageField:
    """
    정규화된 이미지 필드 값.

    전송 형식(base64 텍스트)에서 디코딩된 원본 바이트 + 명시적 형식.
    """
    source: bytes
    format: str
    width: int
    height: int
    alt_text: str
    transparency_percent: int = 0


@dataclass
class GeneratedArtifact:
    """생성된 파일 (문서 또는 PDF)."""
    type: ArtifactType
    filename: str
    created_at: datetime
    size: int
    path: Path

    @property
    def download_url(self) -> str:
        return f"/download/{self.type.value}/{self.filename}"

    def to_dict(self) -> dict[str, Any]:
        """API 응답용 (경로는 노출하지 않음)."""
        return {
            "type": self.type.value,
            "filename": self.filename,
            "size": self.size,
            "created_at": self.created_at.isoformat(),
            "download_url": self.download_url,
        }


@dataclass
class ResolvedArtifact:
    """다운로드 요청 검증 결과."""
    type: ArtifactType
    filename: str
    path: Path
    media_type: str
    size: int


# =============================================================================
# Cleanup Schemas
# =============================================================================

@dataclass
class CleanupPolicy:
    """생성 파일 보관 정책 (모든 타입 디렉터리에 동일 적용)."""
    max_age_seconds: float = 3600.0  # 1시간
    interval_seconds: float = 12 * 3600.0  # 12시간마다 정리

    def __post_init__(self) -> None:
        # 0 이하면 scheduler가 쉬지 않고 sweep 반복
        if not self.interval_seconds > 0:
            raise ValueError(
                f"cleanup interval must be positive, got {self.interval_seconds!r} seconds"
            )

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "CleanupPolicy":
        """default.yaml의 cleanup 섹션에서 로드 (시간 단위)."""
        cleanup = config.get("cleanup", {}) or {}
        return cls(
            max_age_seconds=float(cleanup.get("max_age_hours", 1)) * 3600,
            interval_seconds=float(cleanup.get("interval_hours", 12)) * 3600,
        )


@dataclass
class SweepResult:
    """Sweep 결과."""
    scanned_files: int = 0
    removed_files: int = 0
    removed_bytes: int = 0
    removed: list[Path] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    finished_at: datetime = field(default_factory=lambda: datetime.now(UTC))
