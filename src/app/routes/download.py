"""
Download Routes: 생성 파일 다운로드.

- GET /download/{type}/{filename} → pdf / excel / docx 디렉터리의 파일 스트리밍
- filename은 base name만 사용 (경로 탈출 불가)
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse

from src.app.routes.common import pipeline_http_error
from src.core.artifacts import ArtifactStore
from src.domain.errors import PipelineError

logger = logging.getLogger(__name__)

router = APIRouter()


def content_disposition(filename: str) -> str:
    """RFC 5987 형식 attachment 헤더."""
    return f"attachment; filename*=UTF-8''{quote(filename, safe='')}"


@router.get("/download/{file_type}/{filename:path}")
async def download_file(
    request: Request,
    file_type: str,
    filename: str,
) -> FileResponse:
    """개별 생성 파일 다운로드."""
    artifacts: ArtifactStore = request.app.state.artifact_store

    try:
        resolved = artifacts.resolve(file_type, filename)
    except PipelineError as e:
        raise pipeline_http_error(
            logger, "download", e, type=file_type, filename=filename
        ) from e

    logger.info(f"Serving {resolved.type.value}/{resolved.filename} ({resolved.size} bytes)")
    return FileResponse(
        path=resolved.path,
        media_type=resolved.media_type,
        headers={"Content-Disposition": content_disposition(resolved.filename)},
    )
