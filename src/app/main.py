"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn src.app.main:app --reload
- 프로덕션: uvicorn src.app.main:app --host 0.0.0.0 --port 3000
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

# Routes
from src.app.routes import download, generate, templates
from src.core.artifacts import ArtifactStore
from src.core.cleanup import CleanupScheduler
from src.core.config import load_config
from src.core.logging import setup_logging
from src.domain.schemas import ArtifactType, CleanupPolicy
from src.render.pdf import PdfConverter
from src.templates.manager import TemplateStore

logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: 설정 로드, 저장소 디렉터리 생성, cleanup 시작 (즉시 1회 sweep)
    종료 시: cleanup 태스크 중지
    """
    # Startup
    config = load_config()
    setup_logging(config)

    artifact_store = ArtifactStore.from_config(config)
    artifact_store.ensure_dirs()

    template_store = TemplateStore.from_config(config)
    template_store.templates_dir.mkdir(parents=True, exist_ok=True)

    app.state.config = config
    app.state.template_store = template_store
    app.state.artifact_store = artifact_store
    app.state.converter = PdfConverter.from_config(
        config, artifact_store.directory_for(ArtifactType.PDF)
    )
    app.state.cleanup = CleanupScheduler(artifact_store, CleanupPolicy.from_config(config))
    app.state.cleanup.start()

    logger.info(
        f"Templates: {template_store.templates_dir}, output: {artifact_store.root}"
    )

    yield

    # Shutdown
    await app.state.cleanup.stop()


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Docfill",
    description="DOCX/XLSX 템플릿 placeholder 채우기 → PDF 변환 → 다운로드",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Routes
# =============================================================================

app.include_router(templates.router, tags=["Templates"])
app.include_router(generate.router, tags=["Generate"])
app.include_router(download.router, tags=["Download"])


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=3000,
        reload=True,
    )
