"""
E2E 테스트 공통 fixture.

- app_config (tests/conftest.py) 로 tmp_path 기반 설정 + 가짜 soffice 사용
- TestClient 진입 시 lifespan 실행 (디렉터리 생성, cleanup 시작)
"""

from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.app.main import app


@pytest.fixture
def client(app_config: dict) -> Generator[TestClient, None, None]:
    """FastAPI TestClient (임시 디렉터리 설정)."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def output_root(app_config: dict) -> Path:
    return Path(app_config["paths"]["output_dir"])


@pytest.fixture
def templates_root(app_config: dict) -> Path:
    return Path(app_config["paths"]["templates_dir"])
