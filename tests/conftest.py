"""
Pytest fixtures for the docfill tests.

테스트 구성:
- 템플릿은 tmp_path 안에서 openpyxl / python-docx 로 직접 생성
- PDF 변환기는 가짜 soffice 스크립트로 대체
"""

import base64
import stat
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml
from docx import Document
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

# 1x1 PNG
PNG_1X1_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)

FAKE_SOFFICE_SCRIPT = """#!/bin/sh
# soffice 인자 형식: --headless --norestore --convert-to <fmt> --outdir <dir> <input>
outdir=""
input=""
while [ $# -gt 0 ]; do
  case "$1" in
    --convert-to) shift 2 ;;
    --outdir) outdir="$2"; shift 2 ;;
    --*) shift ;;
    *) input="$1"; shift ;;
  esac
done
name=$(basename "$input")
echo "%PDF-1.4 fake" > "$outdir/${name%.*}.pdf"
echo "convert $input -> $outdir"
"""


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# Template Fixtures
# =============================================================================

@pytest.fixture
def png_base64() -> str:
    """이미지 필드용 base64 PNG."""
    return PNG_1X1_BASE64


@pytest.fixture
def png_bytes() -> bytes:
    return base64.b64decode(PNG_1X1_BASE64)


@pytest.fixture
def make_xlsx(tmp_path: Path) -> Callable[..., Path]:
    """
    XLSX 템플릿 생성 함수.

    Usage:
        path = make_xlsx({"Sheet1": {"A1": "{{name}}"}})
    """

    def _make(sheets: dict[str, dict[str, Any]], name: str = "template.xlsx") -> Path:
        wb = Workbook()
        wb.remove(wb.active)
        for title, cells in sheets.items():
            ws = wb.create_sheet(title)
            for address, value in cells.items():
                ws[address] = value
        path = tmp_path / name
        wb.save(path)
        return path

    return _make


@pytest.fixture
def styled_xlsx_template(tmp_path: Path) -> Path:
    """
    서식이 있는 XLSX 템플릿.

    - 견적: A1 {{company}} (굵게, 배경색, 테두리), B1 {{issued}} (날짜 서식),
      C1 문장 안의 {{amount}}, D1 {{amount}} 단독, E1 {{missing}}, F1 수식
    - 메모: A1 {{company}} 중복, B2 {{note}}
    - 열 너비, 행 높이, 가로 방향 페이지
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "견적"

    ws["A1"] = "{{company}}"
    ws["A1"].font = Font(name="Arial", bold=True, size=14, color="FF0000")
    ws["A1"].fill = PatternFill("solid", start_color="FFFF00")
    ws["A1"].border = Border(bottom=Side(style="thin"))
    ws["A1"].alignment = Alignment(horizontal="center", wrap_text=True)

    ws["B1"] = "{{issued}}"
    ws["B1"].number_format = "yyyy-mm-dd"

    ws["C1"] = "Total: {{amount}} won"
    ws["D1"] = "{{amount}}"
    ws["D1"].number_format = "#,##0"
    ws["E1"] = "{{missing}}"
    ws["F1"] = "=1+1"

    ws.column_dimensions["A"].width = 30
    ws.row_dimensions[1].height = 25
    ws.page_setup.orientation = "landscape"

    notes = wb.create_sheet("메모")
    notes["A1"] = "{{company}}"
    notes["B2"] = "{{note}}"

    path = tmp_path / "quote.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def docx_template(tmp_path: Path) -> Path:
    """
    DOCX 템플릿.

    - 본문: 인사말 {{name}}, 금액 {{amount}}, 서명 {{signature}}
    - 표: {{name}} 중복, {{item}}
    - 머리글: {{company}}
    """
    doc = Document()
    doc.add_paragraph("Dear {{name}},")
    paragraph = doc.add_paragraph("Amount: ")
    paragraph.add_run("{{amount}}").bold = True
    doc.add_paragraph("Signed: {{signature}}")

    table = doc.add_table(rows=1, cols=2)
    table.cell(0, 0).text = "{{name}}"
    table.cell(0, 1).text = "{{item}}"

    doc.sections[0].header.paragraphs[0].text = "{{company}}"

    path = tmp_path / "letter.docx"
    doc.save(path)
    return path


# =============================================================================
# Converter Fixtures
# =============================================================================

@pytest.fixture
def fake_soffice(tmp_path: Path) -> Path:
    """<outdir>/<stem>.pdf 를 만드는 가짜 soffice."""
    script = tmp_path / "bin" / "soffice"
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text(FAKE_SOFFICE_SCRIPT, encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


@pytest.fixture
def app_config(tmp_path: Path, fake_soffice: Path, monkeypatch: pytest.MonkeyPatch) -> dict:
    """
    tmp_path 기반 설정 파일을 만들고 DOCFILL_CONFIG 로 지정.

    FastAPI lifespan이 이 설정을 로드함.
    """
    config = {
        "paths": {
            "templates_dir": str(tmp_path / "templates"),
            "output_dir": str(tmp_path / "output-generated"),
        },
        "cleanup": {"max_age_hours": 1, "interval_hours": 12},
        "converter": {
            "executable": str(fake_soffice),
            "timeout_seconds": 30,
            "grace_seconds": 1.0,
            "filters": {".docx": "writer_pdf_Export"},
        },
        "upload": {"max_size_mb": 1},
        "logging": {"level": "DEBUG"},
    }
    config_path = tmp_path / "config.yaml"
    config_path.write_text(yaml.safe_dump(config, allow_unicode=True), encoding="utf-8")
    monkeypatch.setenv("DOCFILL_CONFIG", str(config_path))
    return config
