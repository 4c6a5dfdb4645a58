#!/usr/bin/env python3
"""
purge_generated.py - 생성 파일 보관 정책 기반 정리 스크립트

default.yaml의 cleanup.max_age_hours 설정에 따라
output-generated/{pdf,excel,docx} 의 오래된 파일을 정리.
서버의 주기 정리와 같은 ArtifactStore.sweep 을 사용.

사용법:
    # 기본 실행 (dry-run)
    python scripts/purge_generated.py

    # 실제 삭제
    python scripts/purge_generated.py --execute

    # 보관 시간 지정 (0이면 전부 삭제)
    python scripts/purge_generated.py --max-age-hours 0 --execute

    # cron 예시 (매시 정각)
    0 * * * * cd /path/to/project && python scripts/purge_generated.py --execute >> /var/log/purge_generated.log 2>&1
"""

import argparse
import logging
from pathlib import Path

from src.core.artifacts import ArtifactStore
from src.core.config import load_config
from src.core.logging import setup_logging
from src.domain.schemas import CleanupPolicy

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="생성 파일 보관 정책 기반 정리 스크립트",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="실제 삭제 실행 (기본: dry-run)",
    )
    parser.add_argument(
        "--max-age-hours",
        type=float,
        default=None,
        help="보관 시간 (기본: default.yaml의 cleanup.max_age_hours)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="설정 파일 경로 (기본: default.yaml)",
    )

    args = parser.parse_args(argv)

    config = load_config(Path(args.config) if args.config else None)
    setup_logging(config)

    policy = CleanupPolicy.from_config(config)
    if args.max_age_hours is not None:
        policy.max_age_seconds = args.max_age_hours * 3600

    store = ArtifactStore.from_config(config)
    logger.info(f"보관 정책: {policy.max_age_seconds / 3600:g}시간, 대상: {store.root}")

    if not args.execute:
        logger.info("=" * 50)
        logger.info("DRY-RUN 모드 (실제 삭제 없음)")
        logger.info("실제 실행: --execute 옵션 추가")
        logger.info("=" * 50)

    result = store.sweep(policy, dry_run=not args.execute)

    # 결과 출력
    logger.info("=" * 50)
    logger.info("Purge 결과:")
    logger.info(f"  스캔: {result.scanned_files} files")
    logger.info(
        f"  정리: {result.removed_files} files ({result.removed_bytes / (1024 * 1024):.2f} MB)"
    )
    if result.errors:
        logger.warning(f"  에러: {len(result.errors)}개")
        for err in result.errors[:5]:  # 최대 5개만 출력
            logger.warning(f"    - {err}")

    return 0 if not result.errors else 1


if __name__ == "__main__":
    exit(main())
