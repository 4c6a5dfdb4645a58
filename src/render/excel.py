"""
Excel (XLSX) 렌더러: openpyxl 기반.

{{name}} placeholder 치환 + 서식 보존:
- 템플릿을 두 번 로드 (원본 참조용 + 작업용)
- 원본 참조본은 절대 수정하지 않음
- 값 치환 후 셀 스타일은 항상 원본 셀 스타일의 복사본으로 덮어씀
- 시트 단위: 행/열 크기, 시트 속성, 페이지 설정 복원
- 워크북 단위: 문서 속성, 뷰 상태 복원
"""

import logging
import math
import zipfile
from copy import copy, deepcopy
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from openpyxl import load_workbook
from openpyxl.cell.cell import Cell, MergedCell
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from src.domain.constants import (
    IMAGE_FIELD_TYPE,
    ISO_DATE_PREFIX_PATTERN,
    PLACEHOLDER_PATTERN,
)
from src.domain.errors import ErrorCodes, PipelineError

logger = logging.getLogger(__name__)

# 템플릿 구조를 읽지 못한 경우 (zip 손상, OOXML 아님 등)
TEMPLATE_LOAD_ERRORS = (
    InvalidFileException,
    zipfile.BadZipFile,
    KeyError,
    ValueError,
    TypeError,
)


# =============================================================================
# Value Coercion
# =============================================================================

def _parse_iso_date(text: str) -> datetime | None:
    """YYYY-MM-DD 로 시작하는 문자열 → naive datetime (UTC 기준)."""
    for candidate in (text, text[:10]):
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            continue
        if parsed.tzinfo is not None:
            # Excel은 timezone을 지원하지 않음
            parsed = parsed.astimezone(UTC).replace(tzinfo=None)
        return parsed
    return None


def _parse_number(text: str) -> int | float | None:
    """문자열 전체가 유한한 숫자면 int/float, 아니면 None."""
    stripped = text.strip()
    # int()/float()는 아라비아-인도 숫자, 전각 숫자도 받아들임 → ASCII만 숫자로 취급
    if not stripped or not stripped.isascii() or "_" in stripped:
        return None
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_value(value: Any) -> Any:
    """
    FormData 값 → 셀 값 타입 변환.

    규칙 (문자열만 변환):
    - YYYY-MM-DD 로 시작 → datetime
    - 공백이 아니고 전체가 숫자 → int/float
    - 그 외 → 원래 값 그대로
    """
    if isinstance(value, str):
        if ISO_DATE_PREFIX_PATTERN.match(value):
            parsed = _parse_iso_date(value)
            if parsed is not None:
                return parsed
        number = _parse_number(value)
        if number is not None:
            return number
    return value


def _is_image_value(value: Any) -> bool:
    return isinstance(value, dict) and value.get("_type") == IMAGE_FIELD_TYPE


def _text_form(value: Any) -> str:
    """문장 중간에 들어갈 값의 텍스트 형태."""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


def substitute_text(text: str, data: dict[str, Any]) -> Any:
    """
    셀 문자열의 placeholder 치환.

    - 셀 전체가 placeholder 하나면 변환된 값 (날짜/숫자/문자열) 반환
    - 다른 텍스트와 섞여 있으면 텍스트 형태로 치환한 문자열 반환
    - data에 없는 (또는 None인) placeholder는 원문 그대로 유지

    Args:
        text: 원본 셀 문자열
        data: placeholder 이름 → 값

    Returns:
        새 셀 값
    """
    whole = PLACEHOLDER_PATTERN.fullmatch(text)
    if whole:
        name = whole.group(1)
        value = data.get(name)
        if value is None or _is_image_value(value):
            if value is not None:
                logger.warning(f"Image value for '{name}' is not supported in XLSX; token kept")
            return text
        return coerce_value(value)

    def _replace(match: Any) -> str:
        name = match.group(1)
        value = data.get(name)
        if value is None or _is_image_value(value):
            return match.group(0)
        return _text_form(value)

    return PLACEHOLDER_PATTERN.sub(_replace, text)


# =============================================================================
# Style Restoration
# =============================================================================

def copy_cell_style(source: Cell, target: Cell | MergedCell) -> None:
    """원본 셀 스타일을 복사본으로 대상 셀에 덮어쓰기."""
    target.font = copy(source.font)
    target.fill = copy(source.fill)
    target.border = copy(source.border)
    target.alignment = copy(source.alignment)
    target.protection = copy(source.protection)
    target.number_format = source.number_format


def restore_sheet_layout(reference: Worksheet, worksheet: Worksheet) -> None:
    """
    시트 단위 구조 복원.

    - 행: 높이, 숨김, outline level
    - 열: 너비, 숨김
    - 시트 속성, 시트 서식, 페이지 설정/여백/인쇄 옵션
    """
    for index, ref_row in reference.row_dimensions.items():
        row = worksheet.row_dimensions[index]
        row.height = ref_row.height
        row.hidden = ref_row.hidden
        row.outlineLevel = ref_row.outlineLevel

    for key, ref_col in reference.column_dimensions.items():
        column = worksheet.column_dimensions[key]
        column.width = ref_col.width
        column.hidden = ref_col.hidden

    worksheet.sheet_properties = deepcopy(reference.sheet_properties)
    worksheet.sheet_format = deepcopy(reference.sheet_format)
    worksheet.page_margins = deepcopy(reference.page_margins)
    worksheet.print_options = deepcopy(reference.print_options)

    # PrintPageSetup은 워크시트를 참조하므로 속성 단위로 복사
    for attr in reference.page_setup.__attrs__:
        setattr(worksheet.page_setup, attr, getattr(reference.page_setup, attr))


def restore_workbook_state(reference: Workbook, workbook: Workbook) -> None:
    """워크북 단위 문서 속성 + 뷰 상태 복원."""
    workbook.properties = deepcopy(reference.properties)
    workbook.views = deepcopy(reference.views)


# =============================================================================
# Renderer
# =============================================================================

class ExcelRenderer:
    """
    Excel 문서 렌더러.

    Usage:
        renderer = ExcelRenderer(template_path)
        renderer.render(data, output_path)
    """

    def __init__(self, template_path: Path):
        """
        Args:
            template_path: XLSX 템플릿 파일 경로

        Raises:
            PipelineError: TEMPLATE_NOT_FOUND
        """
        if not template_path.exists():
            raise PipelineError(
                ErrorCodes.TEMPLATE_NOT_FOUND,
                "Template not found",
                path=str(template_path),
            )

        self.template_path = template_path

    def _load_pair(self) -> tuple[Workbook, Workbook]:
        """
        템플릿을 독립된 두 workbook으로 로드.

        Returns:
            (reference, working)

        Raises:
            PipelineError: STYLE_COPY_FAILED
        """
        try:
            reference = load_workbook(self.template_path, rich_text=True)
            working = load_workbook(self.template_path, rich_text=True)
        except TEMPLATE_LOAD_ERRORS as e:
            raise PipelineError(
                ErrorCodes.STYLE_COPY_FAILED,
                "Template structure could not be parsed",
                template=str(self.template_path),
                error=str(e),
            ) from e
        return reference, working

    def render(
        self,
        data: dict[str, Any],
        output_path: Path,
    ) -> Path:
        """
        템플릿에 데이터를 채워 Excel 문서 생성.

        Args:
            data: placeholder 이름 → 값
            output_path: 출력 파일 경로

        Returns:
            저장된 파일 경로

        Raises:
            PipelineError: STYLE_COPY_FAILED, RENDER_FAILED
        """
        reference, workbook = self._load_pair()

        try:
            # 날짜는 ISO 타입 셀로 저장 (원본 number_format과 무관하게 날짜 유지)
            workbook.iso_dates = True

            replaced = 0
            for index, worksheet in enumerate(workbook.worksheets):
                ref_sheet = reference.worksheets[index]
                replaced += self._fill_sheet(ref_sheet, worksheet, data)
                restore_sheet_layout(ref_sheet, worksheet)

            restore_workbook_state(reference, workbook)

            # 저장
            output_path.parent.mkdir(parents=True, exist_ok=True)
            workbook.save(output_path)

            logger.info(
                f"Rendered XLSX {self.template_path.name} → {output_path.name} "
                f"({replaced} cells substituted)"
            )
            return output_path

        except PipelineError:
            raise
        except Exception as e:
            raise PipelineError(
                ErrorCodes.RENDER_FAILED,
                "Excel rendering failed",
                template=str(self.template_path),
                error=str(e),
            ) from e

    def _fill_sheet(
        self,
        reference: Worksheet,
        worksheet: Worksheet,
        data: dict[str, Any],
    ) -> int:
        """시트 내 모든 셀 치환 + 스타일 복원. 치환된 셀 수 반환."""
        replaced = 0
        for row in worksheet.iter_rows():
            for cell in row:
                source = reference.cell(row=cell.row, column=cell.column)

                if (
                    not isinstance(cell, MergedCell)
                    and cell.data_type != "f"
                    and isinstance(cell.value, str)
                    and PLACEHOLDER_PATTERN.search(cell.value)
                ):
                    new_value = substitute_text(cell.value, data)
                    if new_value != cell.value:
                        cell.value = new_value
                        replaced += 1

                # 값 변경 여부와 무관하게 항상 원본 스타일로 덮어씀
                copy_cell_style(source, cell)
        return replaced


def render_xlsx(
    template_path: Path,
    data: dict[str, Any],
    output_path: Path,
) -> Path:
    """
    Excel 문서 생성 (간편 함수).

    Args:
        template_path: XLSX 템플릿 파일 경로
        data: placeholder 이름 → 값
        output_path: 출력 파일 경로

    Returns:
        저장된 파일 경로
    """
    renderer = ExcelRenderer(template_path)
    return renderer.render(data, output_path)
