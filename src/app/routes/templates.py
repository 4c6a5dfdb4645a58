"""
Templates Routes: 템플릿 업로드 + placeholder 추출.

- GET /        → 업로드 화면 (업로드 → 입력 폼 → 생성 → 다운로드 링크)
- POST /upload → 템플릿 저장 + placeholder 목록 반환
"""

import logging
from typing import Any

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse
from starlette.concurrency import run_in_threadpool

from src.app.routes.common import pipeline_http_error
from src.domain.errors import ErrorCodes, PipelineError
from src.templates.manager import TemplateStore
from src.templates.scanner import scan_placeholders

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Page Routes (HTML)
# =============================================================================

INDEX_HTML = """
<!DOCTYPE html>
<html lang="ko">
<head>
    <meta charset="UTF-8">
    <title>문서 생성</title>
</head>
<body>
    <h1>템플릿으로 문서 생성</h1>

    <form id="upload-form">
        <input type="file" name="template" accept=".docx,.xlsx" required>
        <button type="submit">업로드</button>
    </form>

    <form id="data-form" hidden>
        <div id="fields"></div>
        <button type="submit">생성</button>
    </form>

    <p id="status"></p>
    <ul id="downloads"></ul>

    <script>
    let templateName = null;
    const status = document.getElementById("status");

    function showError(body) {
        const detail = body && body.detail;
        status.textContent = (detail && detail.message) || "요청 실패";
    }

    document.getElementById("upload-form").addEventListener("submit", async (event) => {
        event.preventDefault();
        const response = await fetch("/upload", {method: "POST", body: new FormData(event.target)});
        const body = await response.json();
        if (!response.ok) { showError(body); return; }

        templateName = body.template_name;
        const fields = document.getElementById("fields");
        fields.innerHTML = "";
        for (const name of body.placeholders) {
            const label = document.createElement("label");
            label.textContent = name + " ";
            const input = document.createElement("input");
            input.name = name;
            label.appendChild(input);
            fields.appendChild(label);
            fields.appendChild(document.createElement("br"));
        }
        document.getElementById("data-form").hidden = false;
        status.textContent = body.placeholders.length + "개의 placeholder";
    });

    document.getElementById("data-form").addEventListener("submit", async (event) => {
        event.preventDefault();
        const formData = Object.fromEntries(new FormData(event.target).entries());
        const response = await fetch("/generate", {
            method: "POST",
            headers: {"Content-Type": "application/json"},
            body: JSON.stringify({templateName, formData}),
        });
        const body = await response.json();
        if (!response.ok) { showError(body); return; }

        const list = document.getElementById("downloads");
        list.innerHTML = "";
        for (const file of body.files) {
            const item = document.createElement("li");
            const link = document.createElement("a");
            link.href = file.download_url;
            link.textContent = file.filename;
            item.appendChild(link);
            list.appendChild(item);
        }
        status.textContent = body.message;
    });
    </script>
</body>
</html>
"""


@router.get("/", response_class=HTMLResponse)
async def index_page(request: Request) -> HTMLResponse:
    """업로드 화면."""
    return HTMLResponse(content=INDEX_HTML)


# =============================================================================
# API Routes
# =============================================================================

@router.post("/upload")
async def upload_template(
    request: Request,
    template: UploadFile | None = File(None),
) -> dict[str, Any]:
    """
    템플릿 업로드.

    같은 이름의 템플릿은 덮어씀.

    Returns:
        {"success", "template_name", "file_type", "placeholders"}
    """
    template_store: TemplateStore = request.app.state.template_store
    filename = template.filename if template else None

    try:
        if template is None:
            raise PipelineError(ErrorCodes.VALIDATION_ERROR, "No file uploaded")

        content = await template.read()
        saved = await run_in_threadpool(template_store.save, filename, content)
        placeholders = await run_in_threadpool(scan_placeholders, saved.path)

    except PipelineError as e:
        raise pipeline_http_error(logger, "upload", e, filename=filename) from e

    except Exception as e:
        logger.exception(f"Unexpected error while processing template {filename!r}")
        raise HTTPException(
            status_code=500,
            detail={"code": ErrorCodes.UPLOAD_FAILED, "message": str(e)},
        ) from e

    return {
        "success": True,
        "template_name": saved.name,
        "file_type": saved.format.value,
        "placeholders": placeholders,
    }
