"""
Artifact Store: 생성 파일 저장 / 조회 / 만료 정리.

규칙:
- 타입별 디렉터리 하나에만 저장 (pdf/, excel/, docx/)
- 파일명: generated-<ms>.<ext>, 사용자 입력 사용 금지
- 다운로드 조회는 base name만 사용 (경로 탈출 방지)
- sweep: 오래된 파일 삭제, 개별 실패는 기록만 하고 계속 진행
"""

import logging
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from src.core.config import get_paths
from src.core.fileio import atomic_write_bytes
from src.core.ids import generate_artifact_stem
from src.domain.errors import ErrorCodes, PipelineError
from src.domain.schemas import (
    ArtifactType,
    CleanupPolicy,
    GeneratedArtifact,
    ResolvedArtifact,
    SweepResult,
)

logger = logging.getLogger(__name__)


def parse_artifact_type(type_tag: str) -> ArtifactType:
    """
    다운로드 type 세그먼트 검증.

    Raises:
        PipelineError: INVALID_ARTIFACT_TYPE
    """
    try:
        return ArtifactType(type_tag)
    except ValueError:
        raise PipelineError(
            ErrorCodes.INVALID_ARTIFACT_TYPE,
            "Invalid file type",
            type=type_tag,
        ) from None


class ArtifactStore:
    """
    생성 파일 저장소.

    구조:
    output-generated/
    ├── pdf/
    ├── excel/
    └── docx/

    Usage:
        store = ArtifactStore(Path("output-generated"))
        store.ensure_dirs()
        path = store.allocate(ArtifactType.EXCEL, generate_artifact_stem())
        artifact = store.describe(ArtifactType.EXCEL, path)
    """

    def __init__(self, root: Path):
        self.root = root

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ArtifactStore":
        _, output_dir = get_paths(config)
        return cls(output_dir)

    def directory_for(self, artifact_type: ArtifactType) -> Path:
        """타입별 저장 디렉터리."""
        return self.root / artifact_type.directory_name

    def ensure_dirs(self) -> None:
        """모든 타입 디렉터리 생성 (시작 시 1회)."""
        for artifact_type in ArtifactType:
            self.directory_for(artifact_type).mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # 저장
    # =========================================================================

    def allocate(self, artifact_type: ArtifactType, stem: str) -> Path:
        """
        생성 파일 경로 할당 (파일은 만들지 않음).

        Args:
            artifact_type: 파일 타입
            stem: generate_artifact_stem() 결과

        Returns:
            <타입 디렉터리>/<stem>.<ext>
        """
        directory = self.directory_for(artifact_type)
        directory.mkdir(parents=True, exist_ok=True)
        return directory / f"{stem}{artifact_type.extension}"

    def store(
        self,
        data: bytes,
        artifact_type: ArtifactType,
        stem: str | None = None,
    ) -> GeneratedArtifact:
        """
        바이트를 타입 디렉터리에 저장.

        Args:
            data: 파일 내용
            artifact_type: 파일 타입
            stem: 파일 stem (없으면 새로 생성)

        Returns:
            저장된 GeneratedArtifact
        """
        path = self.allocate(artifact_type, stem or generate_artifact_stem())
        atomic_write_bytes(path, data)
        logger.info(f"Stored {artifact_type.value} artifact: {path.name} ({len(data)} bytes)")
        return self.describe(artifact_type, path)

    def describe(self, artifact_type: ArtifactType, path: Path) -> GeneratedArtifact:
        """이미 저장된 파일의 GeneratedArtifact 생성."""
        stat = path.stat()
        return GeneratedArtifact(
            type=artifact_type,
            filename=path.name,
            created_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            size=stat.st_size,
            path=path,
        )

    # =========================================================================
    # 조회 (다운로드)
    # =========================================================================

    def resolve(self, type_tag: str, filename: str) -> ResolvedArtifact:
        """
        다운로드 요청 (type, filename) 검증 및 경로 해석.

        filename은 base name만 사용하므로 "../../etc/passwd" 는
        타입 디렉터리 안의 "passwd" 조회가 됨.

        Raises:
            PipelineError: VALIDATION_ERROR, INVALID_ARTIFACT_TYPE,
                DIRECTORY_MISSING, ARTIFACT_NOT_FOUND
        """
        if not type_tag or not filename:
            raise PipelineError(
                ErrorCodes.VALIDATION_ERROR,
                "Missing parameters",
                type=type_tag,
                filename=filename,
            )

        artifact_type = parse_artifact_type(type_tag)

        # 경로 구분자 양쪽 모두 제거 ("..\\x" 형태 포함)
        clean_name = Path(filename.replace("\\", "/")).name
        if clean_name in ("", ".", ".."):
            raise PipelineError(
                ErrorCodes.VALIDATION_ERROR,
                "Invalid filename",
                filename=filename,
            )

        target_dir = self.directory_for(artifact_type)
        if not target_dir.is_dir():
            raise PipelineError(
                ErrorCodes.DIRECTORY_MISSING,
                "Server configuration error",
                directory=str(target_dir),
            )

        file_path = target_dir / clean_name
        if not file_path.is_file():
            raise PipelineError(
                ErrorCodes.ARTIFACT_NOT_FOUND,
                "File not found",
                type=artifact_type.value,
                filename=clean_name,
            )

        return ResolvedArtifact(
            type=artifact_type,
            filename=clean_name,
            path=file_path,
            media_type=artifact_type.media_type,
            size=file_path.stat().st_size,
        )

    # =========================================================================
    # 정리 (sweep)
    # =========================================================================

    def sweep(
        self,
        policy: CleanupPolicy,
        now: float | None = None,
        dry_run: bool = False,
    ) -> SweepResult:
        """
        오래된 생성 파일 삭제.

        - max_age_seconds보다 오래된 파일 삭제 (0이면 전부 삭제)
        - 삭제 실패는 errors에 기록하고 나머지 계속 진행

        Args:
            policy: 보관 정책
            now: 기준 시각 (epoch 초, 테스트용)
            dry_run: True면 삭제 없이 대상만 집계

        Returns:
            SweepResult
        """
        result = SweepResult()
        now = time.time() if now is None else now
        max_age = policy.max_age_seconds

        for artifact_type in ArtifactType:
            directory = self.directory_for(artifact_type)
            if not directory.is_dir():
                continue

            for path in sorted(directory.iterdir()):
                if not path.is_file():
                    continue
                result.scanned_files += 1

                try:
                    stat = path.stat()
                except FileNotFoundError:
                    # 다른 sweep/요청이 먼저 삭제
                    continue

                age = now - stat.st_mtime
                if max_age > 0 and age <= max_age:
                    continue

                if dry_run:
                    logger.info(f"[DRY-RUN] Would remove {path} (age {age:.0f}s)")
                else:
                    try:
                        path.unlink()
                    except OSError as e:
                        result.errors.append(f"{path}: {e}")
                        logger.error(f"Error cleaning up file {path}: {e}")
                        continue
                    logger.info(f"Cleaned up old file: {path}")

                result.removed_files += 1
                result.removed_bytes += stat.st_size
                result.removed.append(path)

        result.finished_at = datetime.now(UTC)
        return result
