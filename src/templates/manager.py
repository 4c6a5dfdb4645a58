"""
템플릿 저장소: 업로드 저장 + 이름으로 조회.

규칙:
- 파일명은 base name만 사용 (경로 구분자 제거)
- .docx / .xlsx 만 허용
- 같은 이름으로 다시 업로드하면 덮어씀 (upsert)
- 저장은 템플릿별 락 + 원자적 쓰기 (temp → rename)
- 저장 후 mirror(원격 저장소 등)에 복사, 실패 시 UPLOAD_FAILED
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Protocol

from filelock import FileLock, Timeout

from src.core.config import get_paths
from src.core.fileio import atomic_write_bytes
from src.domain.constants import SUPPORTED_TEMPLATE_EXTENSIONS, get_mime_type
from src.domain.errors import ErrorCodes, PipelineError
from src.domain.schemas import Template, TemplateFormat

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 50 * 1024 * 1024


# =============================================================================
# Mirror
# =============================================================================

class TemplateMirror(Protocol):
    """업로드된 템플릿 사본 저장 대상."""

    def upload(self, name: str, data: bytes, content_type: str) -> None: ...


class NullTemplateMirror:
    """아무 데이터도 보내지 않는 mirror (기본값)."""

    def upload(self, name: str, data: bytes, content_type: str) -> None:
        return None


# =============================================================================
# Validation
# =============================================================================

def clean_template_name(filename: str | None) -> str:
    """
    업로드 파일명 → 저장용 이름.

    Raises:
        PipelineError: VALIDATION_ERROR, UNSUPPORTED_FORMAT
    """
    name = Path((filename or "").replace("\\", "/")).name
    if name in ("", ".", ".."):
        raise PipelineError(
            ErrorCodes.VALIDATION_ERROR,
            "No file uploaded",
            filename=filename,
        )

    if Path(name).suffix.lower() not in SUPPORTED_TEMPLATE_EXTENSIONS:
        raise PipelineError(
            ErrorCodes.UNSUPPORTED_FORMAT,
            "Unsupported file format. Please upload a .docx or .xlsx file.",
            filename=name,
        )
    return name


def template_from_path(path: Path) -> Template:
    """
    저장된 파일 → Template (형식은 확장자로 판별).

    Raises:
        PipelineError: UNSUPPORTED_FORMAT
    """
    template_format = TemplateFormat.from_path(path)
    if template_format is None:
        raise PipelineError(
            ErrorCodes.UNSUPPORTED_FORMAT,
            "Unsupported file format. Please upload a .docx or .xlsx file.",
            template=path.name,
        )
    return Template(path=path, format=template_format)


# =============================================================================
# Template Store
# =============================================================================

class TemplateStore:
    """
    업로드 템플릿 저장소.

    구조:
    templates/
    ├── .locks/           # 템플릿별 락 파일
    ├── invoice.xlsx
    └── letter.docx
    """

    # 락 timeout (초)
    LOCK_TIMEOUT = 10.0

    def __init__(
        self,
        templates_dir: Path,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        mirror: TemplateMirror | None = None,
    ):
        """
        Args:
            templates_dir: 템플릿 저장 디렉터리
            max_upload_bytes: 업로드 최대 크기
            mirror: 사본 저장 대상 (없으면 NullTemplateMirror)
        """
        self.templates_dir = templates_dir
        self.max_upload_bytes = max_upload_bytes
        self.mirror: TemplateMirror = mirror or NullTemplateMirror()
        self._locks_dir = templates_dir / ".locks"

    @classmethod
    def from_config(
        cls,
        config: dict[str, Any],
        mirror: TemplateMirror | None = None,
    ) -> "TemplateStore":
        templates_dir, _ = get_paths(config)
        upload = config.get("upload", {}) or {}
        max_mb = float(upload.get("max_size_mb", 50))
        return cls(templates_dir, int(max_mb * 1024 * 1024), mirror)

    @contextmanager
    def _template_lock(self, name: str) -> Generator[None, None, None]:
        """
        템플릿별 락 획득.

        Raises:
            PipelineError: UPLOAD_FAILED (timeout)
        """
        self._locks_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self._locks_dir / f"{name}.lock", timeout=self.LOCK_TIMEOUT)

        try:
            lock.acquire()
        except Timeout:
            raise PipelineError(
                ErrorCodes.UPLOAD_FAILED,
                f"Failed to acquire lock for template '{name}'",
                template=name,
                timeout=self.LOCK_TIMEOUT,
            ) from None
        try:
            yield
        finally:
            lock.release()

    def save(self, filename: str | None, data: bytes) -> Template:
        """
        업로드 템플릿 저장 (같은 이름이면 덮어씀).

        Args:
            filename: 업로드 파일명 (경로 포함 가능, base name만 사용)
            data: 파일 내용

        Returns:
            저장된 Template

        Raises:
            PipelineError: VALIDATION_ERROR, UNSUPPORTED_FORMAT, UPLOAD_FAILED
        """
        name = clean_template_name(filename)

        if not data:
            raise PipelineError(
                ErrorCodes.VALIDATION_ERROR,
                "Uploaded file is empty",
                filename=name,
            )
        if len(data) > self.max_upload_bytes:
            raise PipelineError(
                ErrorCodes.VALIDATION_ERROR,
                "Uploaded file is too large",
                filename=name,
                size=len(data),
                max_size=self.max_upload_bytes,
            )

        target = self.templates_dir / name
        with self._template_lock(name):
            try:
                atomic_write_bytes(target, data)
            except OSError as e:
                raise PipelineError(
                    ErrorCodes.UPLOAD_FAILED,
                    "Template could not be saved",
                    template=name,
                    error=str(e),
                ) from e

        try:
            self.mirror.upload(name, data, get_mime_type(name))
        except Exception as e:
            raise PipelineError(
                ErrorCodes.UPLOAD_FAILED,
                f"Failed to upload file to storage: {e}",
                template=name,
            ) from e

        logger.info(f"Saved template {name} ({len(data)} bytes)")
        return template_from_path(target)

    def resolve(self, name: str | None) -> Template:
        """
        이름으로 저장된 템플릿 조회.

        Raises:
            PipelineError: VALIDATION_ERROR, UNSUPPORTED_FORMAT, TEMPLATE_NOT_FOUND
        """
        if not name:
            raise PipelineError(
                ErrorCodes.VALIDATION_ERROR,
                "templateName is required",
            )
        clean_name = clean_template_name(name)

        path = self.templates_dir / clean_name
        if not path.is_file():
            raise PipelineError(
                ErrorCodes.TEMPLATE_NOT_FOUND,
                "Template not found",
                template=clean_name,
            )

        return template_from_path(path)
