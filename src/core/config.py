"""
설정 로드: default.yaml

- 기본 경로: 프로젝트 루트의 default.yaml
- DOCFILL_CONFIG 환경 변수로 다른 파일 지정 가능
- 상대 경로는 프로젝트 루트 기준으로 해석
"""

import os
from pathlib import Path
from typing import Any

import yaml

PROJECT_ROOT = Path(__file__).parent.parent.parent
CONFIG_ENV_VAR = "DOCFILL_CONFIG"


def load_config(config_path: Path | None = None) -> dict[str, Any]:
    """설정 파일 로드 (없으면 빈 dict)."""
    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        config_path = Path(env_path) if env_path else PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[str, Any] = yaml.safe_load(f) or {}
        return data


def resolve_path(value: str | Path, root: Path = PROJECT_ROOT) -> Path:
    """설정 값의 경로를 절대 경로로 변환."""
    path = Path(value)
    if not path.is_absolute():
        path = root / path
    return path.resolve()


def get_paths(config: dict[str, Any]) -> tuple[Path, Path]:
    """
    템플릿 / 생성 파일 루트 경로.

    Returns:
        (templates_dir, output_dir)
    """
    paths = config.get("paths", {}) or {}
    templates_dir = resolve_path(paths.get("templates_dir", "templates"))
    output_dir = resolve_path(paths.get("output_dir", "output-generated"))
    return templates_dir, output_dir
