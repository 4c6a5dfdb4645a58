"""
test_pipeline_flow.py - 전체 파이프라인 흐름 통합 테스트

검증 포인트:
- Upload(save) → Scan → Render → PDF 변환 → Download(resolve)
- 문서와 PDF가 같은 stem 공유
- sweep 후 다운로드 불가
"""

from pathlib import Path

import pytest
from docx import Document
from openpyxl import load_workbook

from src.app.services.generation import generate_documents
from src.core.artifacts import ArtifactStore
from src.domain.errors import ErrorCodes, PipelineError
from src.domain.schemas import ArtifactType, CleanupPolicy
from src.render.pdf import PdfConverter
from src.templates.manager import TemplateStore
from src.templates.scanner import scan_placeholders

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def pipeline_root(tmp_path: Path) -> Path:
    """파이프라인 루트 디렉터리 설정."""
    root = tmp_path / "pipeline"
    (root / "templates").mkdir(parents=True)
    return root


@pytest.fixture
def template_store(pipeline_root: Path) -> TemplateStore:
    return TemplateStore(pipeline_root / "templates")


@pytest.fixture
def artifacts(pipeline_root: Path) -> ArtifactStore:
    store = ArtifactStore(pipeline_root / "output-generated")
    store.ensure_dirs()
    return store


@pytest.fixture
def converter(artifacts: ArtifactStore, fake_soffice: Path) -> PdfConverter:
    return PdfConverter(
        artifacts.directory_for(ArtifactType.PDF),
        executable=str(fake_soffice),
        timeout_seconds=30,
    )


# =============================================================================
# Full Flow
# =============================================================================


class TestXlsxFlow:
    """XLSX 템플릿 전체 흐름."""

    @pytest.mark.asyncio
    async def test_full_flow(
        self,
        styled_xlsx_template: Path,
        template_store: TemplateStore,
        artifacts: ArtifactStore,
        converter: PdfConverter,
    ):
        # 1. 업로드 + 스캔
        template = template_store.save("quote.xlsx", styled_xlsx_template.read_bytes())
        placeholders = scan_placeholders(template.path)
        assert placeholders == ["company", "issued", "amount", "missing", "note"]

        # 2. 생성
        result = await generate_documents(
            template,
            {"company": "Acme", "issued": "2024-03-15", "amount": "1500", "note": "urgent"},
            artifacts,
            converter,
        )

        document, pdf = result.files
        assert document.type == ArtifactType.EXCEL
        assert pdf.type == ArtifactType.PDF
        assert Path(document.filename).stem == Path(pdf.filename).stem

        # 3. 내용 + 서식 유지
        wb = load_workbook(document.path)
        sheet = wb["견적"]
        assert sheet["A1"].value == "Acme"
        assert sheet["A1"].font.bold is True
        assert sheet["C1"].value == "Total: 1500 won"
        assert sheet["D1"].value == 1500
        assert sheet["E1"].value == "{{missing}}"
        assert sheet["F1"].value == "=1+1"
        assert wb["메모"]["B2"].value == "urgent"

        # 4. 다운로드 조회
        resolved = artifacts.resolve("pdf", pdf.filename)
        assert resolved.path == pdf.path
        assert resolved.media_type == "application/pdf"


class TestDocxFlow:
    """DOCX 템플릿 전체 흐름."""

    @pytest.mark.asyncio
    async def test_full_flow_with_image(
        self,
        docx_template: Path,
        png_base64: str,
        template_store: TemplateStore,
        artifacts: ArtifactStore,
        converter: PdfConverter,
    ):
        template = template_store.save("letter.docx", docx_template.read_bytes())
        assert "signature" in scan_placeholders(template.path)

        result = await generate_documents(
            template,
            {
                "name": "Kim",
                "amount": "1,500",
                "item": "Widget",
                "company": "Acme",
                "signature": {
                    "_type": "image",
                    "source": f"data:image/png;base64,{png_base64}",
                    "altText": "signature",
                },
            },
            artifacts,
            converter,
        )

        document, pdf = result.files
        assert document.type == ArtifactType.DOCX

        rendered = Document(document.path)
        assert rendered.paragraphs[0].text == "Dear Kim,"
        assert rendered.paragraphs[1].runs[-1].bold is True
        assert rendered.tables[0].cell(0, 1).text == "Widget"
        assert rendered.sections[0].header.paragraphs[0].text == "Acme"
        assert len(rendered.inline_shapes) == 1
        assert artifacts.resolve("docx", document.filename).size == document.size
        assert pdf.path.exists()


class TestSweepAfterGenerate:
    """생성 후 정리."""

    @pytest.mark.asyncio
    async def test_swept_files_cannot_be_downloaded(
        self,
        make_xlsx,
        template_store: TemplateStore,
        artifacts: ArtifactStore,
        converter: PdfConverter,
    ):
        path = make_xlsx({"S": {"A1": "{{a}}"}})
        template = template_store.save("a.xlsx", path.read_bytes())
        result = await generate_documents(template, {"a": "1"}, artifacts, converter)

        sweep = artifacts.sweep(CleanupPolicy(max_age_seconds=0))

        assert sweep.removed_files == 2
        for artifact in result.files:
            with pytest.raises(PipelineError) as exc_info:
                artifacts.resolve(artifact.type.value, artifact.filename)
            assert exc_info.value.code == ErrorCodes.ARTIFACT_NOT_FOUND
