"""
Logging 설정.

- 표준 logging 모듈 사용 (모듈별 logging.getLogger(__name__))
- 포맷/레벨은 default.yaml의 logging 섹션에서 로드
- 실패는 응답 전에 항상 컨텍스트와 함께 기록
"""

import logging
from typing import Any

from src.domain.errors import PipelineError

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(config: dict[str, Any]) -> None:
    """
    루트 로거 설정.

    Args:
        config: 전체 설정 dict (logging 섹션 사용)
    """
    log_config = config.get("logging", {}) or {}
    level_name = str(log_config.get("level", "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=log_config.get("format", DEFAULT_LOG_FORMAT),
        datefmt=log_config.get("datefmt", DEFAULT_DATE_FORMAT),
    )


def log_pipeline_error(
    logger: logging.Logger,
    action: str,
    error: PipelineError,
    **context: Any,
) -> None:
    """
    PipelineError 기록 (HTTP 응답 전에 호출).

    Args:
        logger: 호출 모듈의 로거
        action: 실패한 작업 이름 (예: "upload", "generate")
        error: 발생한 에러
        **context: 추가 컨텍스트 (요청 파라미터 등)
    """
    record = {**error.to_dict(), **context}
    ctx_str = ", ".join(
        f"{k}={v!r}" for k, v in record.items() if k not in ("code", "message")
    )
    logger.error(f"{action} failed [{error.code}] {error.message} ({ctx_str})")
