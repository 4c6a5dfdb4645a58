"""
test_word.py - Word (DOCX) 렌더러 테스트

검증:
- placeholder 추출 (본문 → 표 → 머리글, 중복 제거)
- 값 치환 + run 서식 유지 (여러 run에 걸친 placeholder 포함)
- {{due-date}}, {{customer.name}} 같은 이름은 키 하나로 조회
- 없는 값은 placeholder 그대로
- 이미지 필드 정규화 + 인라인 이미지 삽입
"""

import io
from pathlib import Path

import pytest
from docx import Document
from docx.shared import Emu

from src.domain.errors import ErrorCodes, PipelineError
from src.domain.schemas import ImageField
from src.render.word import (
    DocxRenderer,
    normalize_image_field,
    normalize_image_fields,
    render_docx,
)

# =============================================================================
# Helpers
# =============================================================================


def _load(content: bytes):
    return Document(io.BytesIO(content))


def _body_text(document) -> list[str]:
    return [p.text for p in document.paragraphs]


# =============================================================================
# normalize_image_fields
# =============================================================================


class TestNormalizeImageFields:
    """이미지 필드 정규화 테스트."""

    def test_defaults(self, png_base64: str, png_bytes: bytes):
        image = normalize_image_field("logo", {"_type": "image", "source": png_base64})

        assert image == ImageField(
            source=png_bytes,
            format="png",
            width=150,
            height=100,
            alt_text="logo",
            transparency_percent=0,
        )

    def test_explicit_values(self, png_base64: str):
        image = normalize_image_field(
            "logo",
            {
                "_type": "image",
                "source": png_base64,
                "format": "JPG",
                "width": "80",
                "height": 40,
                "altText": "회사 로고",
                "transparencyPercent": 25,
            },
        )

        assert image.format == "jpeg"
        assert (image.width, image.height) == (80, 40)
        assert image.alt_text == "회사 로고"
        assert image.transparency_percent == 25

    def test_data_uri_format(self, png_base64: str, png_bytes: bytes):
        image = normalize_image_field(
            "photo", {"_type": "image", "source": f"data:image/gif;base64,{png_base64}"}
        )

        assert image.source == png_bytes
        assert image.format == "gif"

    def test_non_image_values_pass_through(self, png_base64: str):
        data = {
            "name": "Kim",
            "meta": {"_type": "other"},
            "logo": {"_type": "image", "source": png_base64},
        }

        result = normalize_image_fields(data)

        assert result["name"] == "Kim"
        assert result["meta"] == {"_type": "other"}
        assert isinstance(result["logo"], ImageField)
        # 원본은 그대로
        assert isinstance(data["logo"], dict)

    @pytest.mark.parametrize(
        "value",
        [
            {"_type": "image"},
            {"_type": "image", "source": "!!!"},
            {"_type": "image", "source": "iVBORw0KGgo=", "format": "tiff"},
            {"_type": "image", "source": "iVBORw0KGgo=", "width": "wide"},
        ],
    )
    def test_invalid_image_fields(self, value):
        with pytest.raises(PipelineError) as exc_info:
            normalize_image_field("logo", value)

        assert exc_info.value.code == ErrorCodes.VALIDATION_ERROR


# =============================================================================
# get_placeholders
# =============================================================================


class TestGetPlaceholders:
    """placeholder 추출 테스트."""

    def test_order_and_duplicates(self, docx_template: Path):
        names = DocxRenderer(docx_template).get_placeholders()

        assert names == ["name", "amount", "signature", "item", "company"]

    def test_hyphenated_and_dotted_names(self, tmp_path: Path):
        doc = Document()
        doc.add_paragraph("Due: {{due-date}} / {{ customer.name }} / {{due-date}}")
        path = tmp_path / "names.docx"
        doc.save(path)

        assert DocxRenderer(path).get_placeholders() == ["due-date", "customer.name"]

    def test_name_split_across_runs(self, tmp_path: Path):
        doc = Document()
        paragraph = doc.add_paragraph("{{due-")
        paragraph.add_run("date}}").bold = True
        path = tmp_path / "split.docx"
        doc.save(path)

        assert DocxRenderer(path).get_placeholders() == ["due-date"]

    def test_plain_name_with_space(self, tmp_path: Path):
        doc = Document()
        doc.add_paragraph("{{first name}}")
        path = tmp_path / "space.docx"
        doc.save(path)

        assert DocxRenderer(path).get_placeholders() == ["first name"]

    def test_corrupt_template(self, tmp_path: Path):
        broken = tmp_path / "broken.docx"
        broken.write_bytes(b"not a zip file")

        with pytest.raises(PipelineError) as exc_info:
            DocxRenderer(broken).get_placeholders()

        assert exc_info.value.code == ErrorCodes.TEMPLATE_INVALID

    def test_missing_template(self, tmp_path: Path):
        with pytest.raises(PipelineError) as exc_info:
            DocxRenderer(tmp_path / "nope.docx")

        assert exc_info.value.code == ErrorCodes.TEMPLATE_NOT_FOUND


# =============================================================================
# render
# =============================================================================

DATA = {
    "name": "Kim",
    "amount": "1,500",
    "item": "Widget",
    "company": "Acme",
}


class TestDocxRenderer:
    """렌더링 테스트."""

    def test_body_table_and_header(self, docx_template: Path):
        document = _load(DocxRenderer(docx_template).render_bytes(DATA))

        assert _body_text(document) == ["Dear Kim,", "Amount: 1,500", "Signed: {{signature}}"]
        row = document.tables[0].rows[0]
        assert [cell.text for cell in row.cells] == ["Kim", "Widget"]
        assert document.sections[0].header.paragraphs[0].text == "Acme"

    def test_run_formatting_kept(self, docx_template: Path):
        document = _load(DocxRenderer(docx_template).render_bytes(DATA))

        amount_run = document.paragraphs[1].runs[1]
        assert amount_run.text == "1,500"
        assert amount_run.bold is True

    def test_placeholder_split_across_runs(self, tmp_path: Path):
        doc = Document()
        paragraph = doc.add_paragraph("Hello ")
        paragraph.add_run("{{na")
        paragraph.add_run("me}}").italic = True
        paragraph.add_run("!")
        path = tmp_path / "split.docx"
        doc.save(path)

        document = _load(DocxRenderer(path).render_bytes({"name": "Lee"}))

        assert document.paragraphs[0].text == "Hello Lee!"

    def test_empty_data_is_identity(self, docx_template: Path):
        document = _load(DocxRenderer(docx_template).render_bytes({}))

        assert _body_text(document) == _body_text(Document(docx_template))

    def test_hyphenated_and_dotted_names(self, tmp_path: Path):
        doc = Document()
        doc.add_paragraph("Due: {{due-date}}|{{ customer.name }}|{{ first name }}")
        path = tmp_path / "names.docx"
        doc.save(path)
        renderer = DocxRenderer(path)
        values = {"due-date": "2024-05-01", "customer.name": "Park", "first name": "Ann"}

        # 추출된 이름 그대로 값을 채우면 렌더링 성공
        data = {name: values[name] for name in renderer.get_placeholders()}
        content = renderer.render_bytes(data)

        assert _load(content).paragraphs[0].text == "Due: 2024-05-01|Park|Ann"

    def test_missing_named_value_keeps_token(self, tmp_path: Path):
        doc = Document()
        doc.add_paragraph("{{ customer.name }} {{due-date}}")
        path = tmp_path / "nested.docx"
        doc.save(path)

        content = DocxRenderer(path).render_bytes({"customer": {"name": "Park"}})

        assert _load(content).paragraphs[0].text == "{{ customer.name }} {{due-date}}"

    def test_special_characters_in_values(self, docx_template: Path):
        content = DocxRenderer(docx_template).render_bytes({"name": "Kim & Lee <Co>"})

        assert _load(content).paragraphs[0].text == "Dear Kim & Lee <Co>,"

    def test_image_inserted(self, docx_template: Path, png_base64: str):
        data = {
            **DATA,
            "signature": {"_type": "image", "source": png_base64, "altText": "서명"},
        }

        document = _load(DocxRenderer(docx_template).render_bytes(data))

        assert document.paragraphs[2].text == "Signed: "
        shapes = document.inline_shapes
        assert len(shapes) == 1
        assert shapes[0].width == Emu(150 * 9525)
        assert shapes[0].height == Emu(100 * 9525)
        assert shapes[0]._inline.docPr.get("descr") == "서명"

    def test_image_transparency(self, docx_template: Path, png_base64: str):
        data = {
            "signature": {
                "_type": "image",
                "source": png_base64,
                "transparencyPercent": 40,
            },
        }

        document = _load(DocxRenderer(docx_template).render_bytes(data))

        alpha = document.inline_shapes[0]._inline.xpath(".//a:alphaModFix")
        assert len(alpha) == 1
        assert alpha[0].get("amt") == "60000"

    def test_render_writes_file(self, docx_template: Path, tmp_path: Path):
        output = render_docx(docx_template, DATA, tmp_path / "out" / "letter.docx")

        assert output.exists()
        assert Document(output).paragraphs[0].text == "Dear Kim,"

    def test_template_not_modified(self, docx_template: Path):
        original = docx_template.read_bytes()

        DocxRenderer(docx_template).render_bytes(DATA)

        assert docx_template.read_bytes() == original
