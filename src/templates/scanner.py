"""
Placeholder 스캐너: 템플릿에서 {{name}} 목록 추출.

- XLSX: 모든 시트, 행 우선 순서
  - 문자열 값, rich text의 plain text, 수식의 캐시된 결과만 검사
- DOCX: DocxRenderer.get_placeholders 에 위임
- 결과: 중복 없는 이름 목록 (처음 등장한 순서)
"""

import logging
from pathlib import Path

from openpyxl import load_workbook
from openpyxl.cell.rich_text import CellRichText

from src.domain.constants import PLACEHOLDER_PATTERN
from src.domain.errors import ErrorCodes, PipelineError
from src.domain.schemas import TemplateFormat
from src.render.excel import TEMPLATE_LOAD_ERRORS
from src.render.word import DocxRenderer

logger = logging.getLogger(__name__)


def _cell_text(value: object) -> str | None:
    """placeholder 검사 대상 텍스트 (해당 없으면 None)."""
    if isinstance(value, str):
        return value
    if isinstance(value, CellRichText):
        return str(value)
    return None


def scan_xlsx_placeholders(template_path: Path) -> list[str]:
    """
    XLSX 템플릿의 placeholder 추출.

    data_only=True 로 로드하므로 수식 셀은 마지막 계산 결과로 검사됨.

    Raises:
        PipelineError: TEMPLATE_INVALID
    """
    try:
        workbook = load_workbook(template_path, data_only=True, rich_text=True)
    except TEMPLATE_LOAD_ERRORS as e:
        raise PipelineError(
            ErrorCodes.TEMPLATE_INVALID,
            "Template could not be opened as XLSX",
            template=str(template_path),
            error=str(e),
        ) from e

    names: list[str] = []
    try:
        for worksheet in workbook.worksheets:
            for row in worksheet.iter_rows():
                for cell in row:
                    text = _cell_text(cell.value)
                    if not text:
                        continue
                    for match in PLACEHOLDER_PATTERN.finditer(text):
                        name = match.group(1)
                        if name not in names:
                            names.append(name)
    finally:
        workbook.close()
    return names


def scan_placeholders(template_path: Path) -> list[str]:
    """
    템플릿 형식에 맞는 placeholder 목록 추출.

    Args:
        template_path: 업로드된 템플릿 경로

    Returns:
        placeholder 이름 목록 (등장 순서, 중복 없음, 비어 있지 않음)

    Raises:
        PipelineError: UNSUPPORTED_FORMAT, NO_PLACEHOLDERS_FOUND, TEMPLATE_INVALID
    """
    template_format = TemplateFormat.from_path(template_path)
    if template_format is None:
        raise PipelineError(
            ErrorCodes.UNSUPPORTED_FORMAT,
            "Unsupported file format. Please upload a .docx or .xlsx file.",
            template=template_path.name,
        )

    if template_format == TemplateFormat.XLSX:
        names = scan_xlsx_placeholders(template_path)
    else:
        names = DocxRenderer(template_path).get_placeholders()

    if not names:
        raise PipelineError(
            ErrorCodes.NO_PLACEHOLDERS_FOUND,
            "No placeholders found in template. "
            "Make sure your template has placeholders in the format {{placeholder}}",
            template=template_path.name,
        )

    logger.info(f"Found {len(names)} unique placeholders in {template_path.name}")
    return names
