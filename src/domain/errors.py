"""
Error definitions for the document pipeline.

규칙:
- 조용한 실패 금지 → PipelineError로 명시적 실패
- 모든 실패는 에러 코드 + 컨텍스트로 기록
- HTTP 상태 코드는 에러 코드에서 결정 (http_status_for)
"""

from typing import Any


class PipelineError(Exception):
    """
    파이프라인 처리 중 발생하는 에러.

    즉시 중단이 필요한 경우에 사용:
    - 지원하지 않는 템플릿 형식 / placeholder 없음
    - 템플릿 파싱 실패
    - PDF 변환 실패
    - 다운로드 대상 없음

    Usage:
        raise PipelineError("CONVERSION_FAILED", "PDF was not created", input=str(path))
    """

    def __init__(self, code: str, message: str | None = None, **context: Any) -> None:
        self.code = code
        self.message = message or code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        head = f"[{self.code}] {self.message}" if self.message != self.code else f"[{self.code}]"
        return f"{head} {ctx_str}" if ctx_str else head

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수. 새 코드 추가 시 HTTP_STATUS_BY_CODE에도 추가."""

    # === Request ===
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # === Template ===
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_INVALID = "TEMPLATE_INVALID"
    UNSUPPORTED_FORMAT = "UNSUPPORTED_FORMAT"
    NO_PLACEHOLDERS_FOUND = "NO_PLACEHOLDERS_FOUND"
    UPLOAD_FAILED = "UPLOAD_FAILED"

    # === Render ===
    STYLE_COPY_FAILED = "STYLE_COPY_FAILED"
    RENDER_FAILED = "RENDER_FAILED"
    CONVERSION_FAILED = "CONVERSION_FAILED"

    # === Download ===
    INVALID_ARTIFACT_TYPE = "INVALID_ARTIFACT_TYPE"
    DIRECTORY_MISSING = "DIRECTORY_MISSING"
    ARTIFACT_NOT_FOUND = "ARTIFACT_NOT_FOUND"


HTTP_STATUS_BY_CODE = {
    ErrorCodes.VALIDATION_ERROR: 400,
    ErrorCodes.INVALID_ARTIFACT_TYPE: 400,
    ErrorCodes.TEMPLATE_NOT_FOUND: 404,
    ErrorCodes.ARTIFACT_NOT_FOUND: 404,
    # 템플릿 내용 문제는 사용자 입력 오류가 아닌 처리 실패로 취급
    ErrorCodes.TEMPLATE_INVALID: 500,
    ErrorCodes.UNSUPPORTED_FORMAT: 500,
    ErrorCodes.NO_PLACEHOLDERS_FOUND: 500,
    ErrorCodes.UPLOAD_FAILED: 500,
    ErrorCodes.STYLE_COPY_FAILED: 500,
    ErrorCodes.RENDER_FAILED: 500,
    ErrorCodes.CONVERSION_FAILED: 500,
    ErrorCodes.DIRECTORY_MISSING: 500,
}


def http_status_for(code: str) -> int:
    """에러 코드 → HTTP 상태 코드 (알 수 없는 코드는 500)."""
    return HTTP_STATUS_BY_CODE.get(code, 500)
