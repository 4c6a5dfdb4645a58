"""
ID 생성: 생성 파일 stem

규칙:
- 파일명은 generated-<밀리초 타임스탬프> 형식
- 사용자 입력은 절대 포함하지 않음
- 같은 프로세스 안에서는 단조 증가 (같은 밀리초 충돌 방지)
"""

import threading
import time

from src.domain.constants import ARTIFACT_FILENAME_PREFIX

_lock = threading.Lock()
_last_ms = 0


def current_millis() -> int:
    """현재 시각 (epoch 밀리초)."""
    return time.time_ns() // 1_000_000


def generate_artifact_stem(now_ms: int | None = None) -> str:
    """
    생성 파일 stem 생성.

    포맷: generated-{epoch_ms}
    같은 밀리초에 두 번 호출되면 다음 밀리초 값을 사용.
    다른 프로세스와의 충돌은 방지하지 않음.

    Args:
        now_ms: 기준 시각 (테스트용, 기본: 현재 시각)

    Returns:
        확장자 없는 파일명
    """
    global _last_ms

    millis = current_millis() if now_ms is None else now_ms
    with _lock:
        if millis <= _last_ms:
            millis = _last_ms + 1
        _last_ms = millis

    return f"{ARTIFACT_FILENAME_PREFIX}{millis}"
