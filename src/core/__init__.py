"""
Core layer: 운영 안전 핵심 모듈.

이 모듈만 건드리면 운영사고 → 가장 보수적으로 관리

역할:
- 생성 파일 저장/조회/정리, 원자적 쓰기, 파일명 stem, 설정, 로깅
"""

from .artifacts import ArtifactStore, parse_artifact_type
from .cleanup import CleanupScheduler
from .config import get_paths, load_config
from .fileio import atomic_write_bytes
from .ids import generate_artifact_stem
from .logging import log_pipeline_error, setup_logging

__all__ = [
    # artifacts
    "ArtifactStore",
    "parse_artifact_type",
    # cleanup
    "CleanupScheduler",
    # config
    "load_config",
    "get_paths",
    # fileio
    "atomic_write_bytes",
    # ids
    "generate_artifact_stem",
    # logging
    "setup_logging",
    "log_pipeline_error",
]
