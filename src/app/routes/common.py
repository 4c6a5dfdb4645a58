"""Route 공통: PipelineError → HTTPException 변환."""

import logging
from typing import Any

from fastapi import HTTPException

from src.core.logging import log_pipeline_error
from src.domain.errors import PipelineError, http_status_for


def pipeline_http_error(
    logger: logging.Logger,
    action: str,
    error: PipelineError,
    **context: Any,
) -> HTTPException:
    """에러를 기록한 뒤 응답용 HTTPException 생성 (호출부에서 raise).

    응답에는 code + message만 포함 (서버 경로 등 context는 로그에만 남김).
    """
    log_pipeline_error(logger, action, error, **context)
    return HTTPException(
        status_code=http_status_for(error.code),
        detail={"code": error.code, "message": error.message},
    )
