"""
Generate Routes: 문서 생성 요청.

- POST /generate → 템플릿 + formData 로 문서 생성 후 PDF 변환
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from src.app.routes.common import pipeline_http_error
from src.app.services.generation import generate_documents
from src.core.artifacts import ArtifactStore
from src.domain.errors import ErrorCodes, PipelineError
from src.render.pdf import PdfConverter
from src.templates.manager import TemplateStore

logger = logging.getLogger(__name__)

router = APIRouter()


class GenerateRequest(BaseModel):
    """생성 요청 본문."""
    model_config = ConfigDict(populate_by_name=True)

    template_name: str = Field(default="", alias="templateName")
    form_data: dict[str, Any] = Field(default_factory=dict, alias="formData")


@router.post("/generate")
async def generate(request: Request, body: GenerateRequest) -> dict[str, Any]:
    """
    문서 생성.

    Returns:
        {"success", "message", "file_type", "files": [...]}
    """
    template_store: TemplateStore = request.app.state.template_store
    artifacts: ArtifactStore = request.app.state.artifact_store
    converter: PdfConverter = request.app.state.converter

    try:
        template = template_store.resolve(body.template_name)
        result = await generate_documents(template, body.form_data, artifacts, converter)

    except PipelineError as e:
        raise pipeline_http_error(
            logger,
            "generate",
            e,
            template=body.template_name,
            fields=sorted(body.form_data),
        ) from e

    except Exception as e:
        # 예상치 못한 에러
        logger.exception(f"Unexpected error while generating from {body.template_name!r}")
        raise HTTPException(
            status_code=500,
            detail={"code": ErrorCodes.RENDER_FAILED, "message": str(e)},
        ) from e

    return result.to_dict()
