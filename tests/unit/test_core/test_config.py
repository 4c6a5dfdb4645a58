"""
test_config.py - 설정 로드 테스트
"""

from pathlib import Path

import pytest

from src.core.config import CONFIG_ENV_VAR, PROJECT_ROOT, get_paths, load_config, resolve_path


class TestLoadConfig:
    """load_config 함수 테스트."""

    def test_project_default(self, monkeypatch: pytest.MonkeyPatch, default_config: dict):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

        config = load_config()

        assert config == default_config
        assert config["cleanup"]["max_age_hours"] == 1
        assert config["converter"]["filters"][".docx"] == "writer_pdf_Export"

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        path = tmp_path / "custom.yaml"
        path.write_text("cleanup:\n  max_age_hours: 3\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

        assert load_config() == {"cleanup": {"max_age_hours": 3}}

    def test_missing_file(self, tmp_path: Path):
        assert load_config(tmp_path / "none.yaml") == {}

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == {}


class TestPaths:
    """경로 해석 테스트."""

    def test_relative_resolves_against_project_root(self):
        assert resolve_path("templates") == (PROJECT_ROOT / "templates").resolve()

    def test_absolute_kept(self, tmp_path: Path):
        assert resolve_path(tmp_path / "x") == (tmp_path / "x").resolve()

    def test_get_paths_defaults(self):
        templates_dir, output_dir = get_paths({})

        assert templates_dir == (PROJECT_ROOT / "templates").resolve()
        assert output_dir == (PROJECT_ROOT / "output-generated").resolve()
