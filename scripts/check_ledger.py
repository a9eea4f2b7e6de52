"""
원장 정합성 검사

원장에서 집계를 다시 계산해 계좌 누적 합계/일자 버킷과 비교.
불일치가 있으면 종료 코드 1.

사용법:
    python -m scripts.check_ledger
    python -m scripts.check_ledger --account 3
    python -m scripts.check_ledger --config config/settings.yaml
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings, SettingsLoadError, load_settings
from core.ledger.consistency import ConsistencyChecker, DriftInfo
from core.ledger.errors import RecordNotFoundError
from core.logging import setup_ledger_logging

logger = logging.getLogger(__name__)


async def check_ledger(settings: Settings, account_id: int | None = None) -> dict[int, list[DriftInfo]]:
    """정합성 검사 실행

    Args:
        settings: 설정
        account_id: 지정 시 해당 계좌만 검사

    Returns:
        계좌 ID → 불일치 목록 (불일치 없는 계좌 제외)
    """
    async with SQLiteAdapter(settings.db_path, busy_timeout_ms=settings.busy_timeout_ms) as db:
        checker = ConsistencyChecker(db)

        if account_id is None:
            return await checker.check_all()

        drifts = await checker.check_account(account_id)
        return {account_id: drifts} if drifts else {}


def print_report(report: dict[int, list[DriftInfo]]) -> None:
    if not report:
        print("OK - 모든 집계가 원장과 일치합니다")
        return

    print(f"DRIFT - {len(report)}개 계좌 불일치")
    for account_id, drifts in report.items():
        print(f"\n[account {account_id}]")
        for drift in drifts:
            print(f"  - {drift.kind.value}: {drift.description}")


def main() -> int:
    parser = argparse.ArgumentParser(description="원장 정합성 검사")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="settings.yaml 경로 (기본: config/settings.yaml)",
    )
    parser.add_argument(
        "--account",
        type=int,
        default=None,
        help="검사할 계좌 ID (기본: 전체)",
    )
    args = parser.parse_args()

    try:
        settings = load_settings(args.config)
    except SettingsLoadError as e:
        print(f"설정 로드 실패: {e}", file=sys.stderr)
        return 1

    setup_ledger_logging("check_ledger", settings)

    try:
        report = asyncio.run(check_ledger(settings, args.account))
    except RecordNotFoundError as e:
        print(f"계좌를 찾을 수 없습니다: {e}", file=sys.stderr)
        return 1

    print_report(report)
    return 1 if report else 0


if __name__ == "__main__":
    sys.exit(main())
