"""
Generation Service: 템플릿 + FormData → 문서 + PDF.

흐름:
1. stem 할당 (generated-<ms>), 문서와 PDF가 같은 stem 공유
2. 렌더링 (threadpool, 파일 I/O + CPU 작업)
3. PDF 변환 (soffice 자식 프로세스, await)

롤백 없음: PDF 변환 실패 시 생성된 문서는 그대로 남고 sweep이 정리함.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from starlette.concurrency import run_in_threadpool

from src.core.artifacts import ArtifactStore
from src.core.ids import generate_artifact_stem
from src.domain.schemas import ArtifactType, GeneratedArtifact, Template, TemplateFormat
from src.render.excel import render_xlsx
from src.render.pdf import PdfConverter
from src.render.word import DocxRenderer

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """생성 결과: 문서 타입 + 생성 파일 목록 (문서, PDF 순)."""
    file_type: ArtifactType
    files: list[GeneratedArtifact] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": True,
            "message": "Files generated successfully",
            "file_type": self.file_type.value,
            "files": [artifact.to_dict() for artifact in self.files],
        }


async def generate_documents(
    template: Template,
    form_data: dict[str, Any],
    artifacts: ArtifactStore,
    converter: PdfConverter,
) -> GenerationResult:
    """
    문서 생성 + PDF 변환.

    Args:
        template: 저장된 템플릿
        form_data: placeholder 이름 → 값
        artifacts: 생성 파일 저장소
        converter: PDF 변환기 (출력 디렉터리 = pdf/)

    Returns:
        GenerationResult

    Raises:
        PipelineError: 렌더링/변환 단계의 에러 그대로
    """
    stem = generate_artifact_stem()

    if template.format == TemplateFormat.XLSX:
        doc_type = ArtifactType.EXCEL
        output_path = artifacts.allocate(doc_type, stem)
        await run_in_threadpool(render_xlsx, template.path, form_data, output_path)
        document = await run_in_threadpool(artifacts.describe, doc_type, output_path)
    else:
        doc_type = ArtifactType.DOCX
        renderer = DocxRenderer(template.path)
        content = await run_in_threadpool(renderer.render_bytes, form_data)
        document = await run_in_threadpool(artifacts.store, content, doc_type, stem)

    pdf_path = await converter.convert(document.path)
    pdf = await run_in_threadpool(artifacts.describe, ArtifactType.PDF, pdf_path)

    logger.info(f"Generated {document.filename} and {pdf.filename} from {template.name}")
    return GenerationResult(file_type=doc_type, files=[document, pdf])
