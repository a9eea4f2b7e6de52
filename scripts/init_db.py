"""
원장 DB 스키마 생성

사용법:
    python -m scripts.init_db
    python -m scripts.init_db --config config/settings.yaml
"""

import argparse
import asyncio
import logging
from pathlib import Path

# 프로젝트 루트를 Python 경로에 추가
import sys
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.config.loader import Settings, SettingsLoadError, load_settings
from core.logging import setup_ledger_logging

logger = logging.getLogger(__name__)


async def init_db(settings: Settings) -> None:
    """settings의 DB 경로에 스키마 생성 (이미 있으면 유지)"""
    async with SQLiteAdapter(settings.db_path, busy_timeout_ms=settings.busy_timeout_ms) as db:
        await init_schema(db)

        for table in ("accounts", "transactions", "statistics"):
            exists = await db.table_exists(table)
            logger.info(f"  {table}: {'OK' if exists else 'MISSING'}")

    logger.info(f"DB 준비 완료: {settings.db_path}")


def main() -> int:
    parser = argparse.ArgumentParser(description="원장 DB 스키마 생성")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="settings.yaml 경로 (기본: config/settings.yaml)",
    )
    args = parser.parse_args()

    try:
        settings = load_settings(args.config)
    except SettingsLoadError as e:
        print(f"설정 로드 실패: {e}", file=sys.stderr)
        return 1

    setup_ledger_logging("init_db", settings)

    asyncio.run(init_db(settings))
    return 0


if __name__ == "__main__":
    sys.exit(main())
