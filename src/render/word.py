"""
Word (DOCX) 렌더러: docxtpl 기반.

- placeholder: {{name}}, name은 '}'를 제외한 임의 문자열 (예: {{due-date}}, {{customer.name}})
- docxtpl이 run 경계에 걸친 태그를 합친 뒤, 각 토큰을 이름 조회 호출로 바꿔서 렌더링
  → Jinja2 표현식으로 해석하지 않음 ({{due-date}} 는 뺄셈이 아닌 이름 하나)
- 템플릿 문서는 사용자 업로드 → SandboxedEnvironment + autoescape
- 이미지 필드: base64 → bytes 정규화 후 InlineImage로 삽입
- data에 없는 placeholder는 원문 그대로 유지
"""

import base64
import binascii
import html
import io
import logging
import re
import urllib.parse
import zipfile
from pathlib import Path
from typing import Any

from docx.opc.exceptions import PackageNotFoundError
from docx.oxml import OxmlElement
from docx.shared import Emu
from docxtpl import DocxTemplate, InlineImage
from jinja2 import TemplateSyntaxError
from jinja2.sandbox import SandboxedEnvironment

from src.domain.constants import (
    DEFAULT_IMAGE_FORMAT,
    DEFAULT_IMAGE_HEIGHT,
    DEFAULT_IMAGE_TRANSPARENCY,
    DEFAULT_IMAGE_WIDTH,
    EMU_PER_PIXEL,
    IMAGE_FIELD_TYPE,
    IMAGE_FORMATS,
    PLACEHOLDER_PATTERN,
)
from src.domain.errors import ErrorCodes, PipelineError
from src.domain.schemas import ImageField

logger = logging.getLogger(__name__)

_jinja_env = SandboxedEnvironment(autoescape=True)

# 렌더링 컨텍스트의 조회 함수 이름 (사용자 placeholder와 겹치지 않는 이름)
FIELD_LOOKUP = "__docfill_field__"

TEMPLATE_LOAD_ERRORS = (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError)


# =============================================================================
# Image Normalization
# =============================================================================

def _decode_base64(payload: str, field_name: str) -> bytes:
    """base64 텍스트 → bytes (padding 보정)."""
    data = "".join(payload.split())
    padding = len(data) % 4
    if padding:
        data += "=" * (4 - padding)
    try:
        decoded = base64.b64decode(data, validate=False)
    except (binascii.Error, ValueError) as e:
        raise PipelineError(
            ErrorCodes.VALIDATION_ERROR,
            f"Image '{field_name}' is not valid base64",
            field=field_name,
        ) from e
    if not decoded:
        raise PipelineError(
            ErrorCodes.VALIDATION_ERROR,
            f"Image '{field_name}' is empty",
            field=field_name,
        )
    return decoded


def _split_image_source(source: Any, field_name: str) -> tuple[bytes, str | None]:
    """
    전송 형식 → (bytes, data URI의 형식).

    지원: data:image/png;base64,..., base64 텍스트, bytes
    """
    if isinstance(source, bytes | bytearray):
        return bytes(source), None
    if not isinstance(source, str) or not source.strip():
        raise PipelineError(
            ErrorCodes.VALIDATION_ERROR,
            f"Image '{field_name}' has no source",
            field=field_name,
        )

    text = source.strip()
    if text.startswith("data:"):
        header, _, payload = text.partition(",")
        mime = header[5:].split(";")[0].lower()
        fmt = mime.split("/")[-1] if mime.startswith("image/") else None
        if ";base64" in header:
            return _decode_base64(payload, field_name), fmt
        return urllib.parse.unquote_to_bytes(payload), fmt

    return _decode_base64(text, field_name), None


def _as_int(value: Any, default: int, field_name: str, attr: str) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise PipelineError(
            ErrorCodes.VALIDATION_ERROR,
            f"Image '{field_name}' has invalid {attr}",
            field=field_name,
            value=str(value),
        ) from None


def normalize_image_field(name: str, value: dict[str, Any]) -> ImageField:
    """
    이미지 필드 1개 정규화.

    - source: base64 / data URI → bytes
    - format: 명시값 > data URI 형식 > png
    - width/height: 기본 150x100 (px), transparency: 기본 0
    - alt text: 기본 placeholder 이름

    Raises:
        PipelineError: VALIDATION_ERROR
    """
    source, uri_format = _split_image_source(value.get("source"), name)

    fmt = str(value.get("format") or uri_format or DEFAULT_IMAGE_FORMAT).lower()
    fmt = fmt.removeprefix("image/")
    if fmt not in IMAGE_FORMATS:
        raise PipelineError(
            ErrorCodes.VALIDATION_ERROR,
            f"Image '{name}' has unsupported format",
            field=name,
            format=fmt,
        )

    return ImageField(
        source=source,
        format="jpeg" if fmt == "jpg" else fmt,
        width=_as_int(value.get("width"), DEFAULT_IMAGE_WIDTH, name, "width"),
        height=_as_int(value.get("height"), DEFAULT_IMAGE_HEIGHT, name, "height"),
        alt_text=str(value.get("altText") or name),
        transparency_percent=_as_int(
            value.get("transparencyPercent"), DEFAULT_IMAGE_TRANSPARENCY, name, "transparencyPercent"
        ),
    )


def normalize_image_fields(data: dict[str, Any]) -> dict[str, Any]:
    """
    FormData의 이미지 필드만 ImageField로 변환 (나머지는 그대로).

    Args:
        data: placeholder 이름 → 값

    Returns:
        새 dict (원본 data는 수정하지 않음)
    """
    normalized: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict) and value.get("_type") == IMAGE_FIELD_TYPE:
            image = normalize_image_field(key, value)
            logger.info(
                f"Image processed: {key} (format={image.format}, size={len(image.source)}, "
                f"{image.width}x{image.height})"
            )
            normalized[key] = image
        else:
            normalized[key] = value
    return normalized




# =============================================================================
# docxtpl Integration
# =============================================================================

class FormTemplate(DocxTemplate):
    """
    placeholder 토큰을 이름 조회 호출로 바꾸는 DocxTemplate.

    docxtpl의 patch_xml (태그 안 XML 제거, 따옴표 정리) 뒤에
    {{name}} → {{ __docfill_field__(<index>) }} 로 치환하고,
    (이름, 원문 토큰)을 tokens에 등장 순서대로 기록.
    """

    def __init__(self, template_file: str | Path):
        super().__init__(str(template_file))
        self.tokens: list[tuple[str, str]] = []

    def patch_xml(self, src_xml: str) -> str:
        patched = super().patch_xml(src_xml)
        return PLACEHOLDER_PATTERN.sub(self._rewrite_token, patched)

    def _rewrite_token(self, match: re.Match[str]) -> str:
        name = html.unescape(match.group(1)).strip()
        self.tokens.append((name, html.unescape(match.group(0))))
        return "{{ %s(%d) }}" % (FIELD_LOOKUP, len(self.tokens) - 1)


class FormImage(InlineImage):
    """대체 텍스트 + 투명도를 지원하는 InlineImage."""

    def __init__(self, tpl: DocxTemplate, image: ImageField):
        super().__init__(
            tpl,
            io.BytesIO(image.source),
            width=Emu(image.width * EMU_PER_PIXEL),
            height=Emu(image.height * EMU_PER_PIXEL),
        )
        self.alt_text = image.alt_text
        self.transparency_percent = image.transparency_percent

    def _insert_image(self) -> str:
        inline = self.tpl.current_rendering_part.new_pic_inline(
            self.image_descriptor,
            self.width,
            self.height,
        )
        inline.docPr.set("descr", self.alt_text)

        if self.transparency_percent:
            alpha = max(0, min(100, 100 - self.transparency_percent)) * 1000
            for blip in inline.xpath(".//a:blip"):
                alpha_mod = OxmlElement("a:alphaModFix")
                alpha_mod.set("amt", str(alpha))
                blip.append(alpha_mod)

        # 현재 w:t / w:r 을 닫고 그림 run을 넣은 뒤 다시 열기
        return (
            "</w:t></w:r><w:r><w:drawing>%s</w:drawing></w:r><w:r>"
            '<w:t xml:space="preserve">' % inline.xml
        )


# =============================================================================
# Renderer
# =============================================================================

class DocxRenderer:
    """
    Word 문서 렌더러.

    Usage:
        renderer = DocxRenderer(template_path)
        renderer.get_placeholders()
        renderer.render(data, output_path)
    """

    def __init__(self, template_path: Path):
        """
        Args:
            template_path: DOCX 템플릿 파일 경로

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

    def _load_template(self) -> FormTemplate:
        """템플릿 로드 (호출마다 새 문서)."""
        template = FormTemplate(self.template_path)
        try:
            template.init_docx()
        except TEMPLATE_LOAD_ERRORS as e:
            raise PipelineError(
                ErrorCodes.TEMPLATE_INVALID,
                "Template could not be opened as DOCX",
                template=str(self.template_path),
                error=str(e),
            ) from e
        return template

    def _syntax_error(self, error: TemplateSyntaxError) -> PipelineError:
        return PipelineError(
            ErrorCodes.TEMPLATE_INVALID,
            "Template contains an invalid tag",
            template=str(self.template_path),
            error=str(error),
        )

    def get_placeholders(self) -> list[str]:
        """
        템플릿에서 사용된 placeholder 목록 추출.

        docxtpl의 태그 파싱 (본문 → 머리글 → 바닥글) 결과를 사용.

        Returns:
            placeholder 이름 목록 (등장 순서, 중복 없음)

        Raises:
            PipelineError: TEMPLATE_INVALID
        """
        template = self._load_template()
        try:
            template.get_undeclared_template_variables(jinja_env=_jinja_env)
        except TemplateSyntaxError as e:
            raise self._syntax_error(e) from e

        names: list[str] = []
        for name, _ in template.tokens:
            if name and name not in names:
                names.append(name)
        return names

    def render_bytes(self, data: dict[str, Any]) -> bytes:
        """
        템플릿에 데이터를 채운 DOCX 바이트 생성.

        Args:
            data: placeholder 이름 → 값 (이미지 필드는 정규화 전 형식)

        Returns:
            DOCX 파일 내용

        Raises:
            PipelineError: VALIDATION_ERROR, TEMPLATE_INVALID, RENDER_FAILED
        """
        context = normalize_image_fields(data)
        template = self._load_template()

        def lookup(index: int) -> Any:
            name, token = template.tokens[index]
            value = context.get(name)
            if value is None:
                return token
            if isinstance(value, ImageField):
                return FormImage(template, value)
            return value

        try:
            template.render({FIELD_LOOKUP: lookup}, jinja_env=_jinja_env, autoescape=True)

            buffer = io.BytesIO()
            template.save(buffer)

            filled = sum(1 for name, _ in template.tokens if context.get(name) is not None)
            logger.info(f"Rendered DOCX {self.template_path.name} ({filled} placeholders)")
            return buffer.getvalue()

        except TemplateSyntaxError as e:
            raise self._syntax_error(e) from e
        except PipelineError:
            raise
        except Exception as e:
            raise PipelineError(
                ErrorCodes.RENDER_FAILED,
                "Word rendering failed",
                template=str(self.template_path),
                error=str(e),
            ) from e

    def render(self, data: dict[str, Any], output_path: Path) -> Path:
        """
        템플릿에 데이터를 채워 Word 문서 생성.

        Returns:
            저장된 파일 경로
        """
        content = self.render_bytes(data)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(content)
        return output_path


def render_docx(
    template_path: Path,
    data: dict[str, Any],
    output_path: Path,
) -> Path:
    """
    Word 문서 생성 (간편 함수).

    Args:
        template_path: DOCX 템플릿 파일 경로
        data: placeholder 이름 → 값
        output_path: 출력 파일 경로

    Returns:
        저장된 파일 경로
    """
    renderer = DocxRenderer(template_path)
    return renderer.render(data, output_path)
