"""
Statistic 저장소

statistics 테이블 (계좌별 일자 버킷) 처리.
버킷은 해당 일자 첫 원장 항목과 함께 생성되고 삭제되지 않는다.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date, datetime, timezone
from typing import TYPE_CHECKING

from core.ledger.errors import EditConflictError, RecordNotFoundError
from core.ledger.models import Statistic
from core.ledger.versioned import VersionedStore

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


STATISTIC_COLUMNS = "account_id, date, earning, spending, created_at, version"


class StatisticStore(VersionedStore):
    """Statistic 저장소

    Args:
        db: SQLite 어댑터
    """

    table = "statistics"
    entity = "statistic"

    def __init__(self, db: SQLiteAdapter):
        super().__init__(db)

    async def find_by_date(self, account_id: int, day: date) -> Statistic | None:
        """버킷 조회 (없으면 None)

        None은 "새 버킷을 만들어야 함"을 뜻하는 정상 결과.
        """
        row = await self.db.fetchone(
            f"""
            SELECT {STATISTIC_COLUMNS}
            FROM statistics
            WHERE account_id = ? AND date = ?
            """,
            (account_id, day.isoformat()),
        )

        return Statistic.from_row(row) if row else None

    async def get_by_date(self, account_id: int, day: date) -> Statistic:
        """버킷 조회

        Raises:
            RecordNotFoundError: 해당 일자 버킷이 없는 경우
        """
        stat = await self.find_by_date(account_id, day)
        if stat is None:
            raise RecordNotFoundError(self.entity, (account_id, day.isoformat()))
        return stat

    async def insert(self, stat: Statistic) -> Statistic:
        """버킷 생성 (version=1)

        Raises:
            EditConflictError: 같은 (account_id, date) 버킷이 이미 있는 경우
        """
        created_at = datetime.now(timezone.utc)

        try:
            await self.db.execute(
                """
                INSERT INTO statistics (
                    account_id, date, earning, spending, created_at, version
                ) VALUES (?, ?, ?, ?, ?, 1)
                """,
                (
                    stat.account_id,
                    stat.date.isoformat(),
                    str(stat.earning),
                    str(stat.spending),
                    created_at.isoformat(),
                ),
            )
        except sqlite3.IntegrityError as e:
            # 없다고 읽은 버킷을 다른 작업이 먼저 만든 경우 (버전 0 기대와 충돌)
            if "UNIQUE" not in str(e):
                raise
            logger.warning(f"statistic 버킷 생성 충돌: key={stat.key}")
            raise EditConflictError(self.entity, stat.key, 0) from e

        stat.created_at = created_at
        stat.version = 1

        logger.debug(f"Statistic bucket created: {stat.key}")
        return stat

    async def update(self, stat: Statistic) -> int:
        """버킷 갱신 (버전 비교)

        Returns:
            새 버전 (stat.version에도 반영)

        Raises:
            EditConflictError: 버전이 다른 경우
        """
        stat.version = await self._compare_and_swap(
            {
                "earning": str(stat.earning),
                "spending": str(stat.spending),
            },
            {"account_id": stat.account_id, "date": stat.date.isoformat()},
            stat.version,
        )
        return stat.version

    async def list_range(
        self,
        account_id: int,
        after: date,
        before: date,
    ) -> list[Statistic]:
        """기간 내 버킷 목록 (date ∈ [after, before), 날짜 오름차순)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {STATISTIC_COLUMNS}
            FROM statistics
            WHERE account_id = ? AND date >= ? AND date < ?
            ORDER BY date ASC
            """,
            (account_id, after.isoformat(), before.isoformat()),
        )

        return [Statistic.from_row(row) for row in rows]

    async def list_all(self, account_id: int) -> list[Statistic]:
        """계좌의 전체 버킷 (정합성 검사용)"""
        rows = await self.db.fetchall(
            f"""
            SELECT {STATISTIC_COLUMNS}
            FROM statistics
            WHERE account_id = ?
            ORDER BY date ASC
            """,
            (account_id,),
        )

        return [Statistic.from_row(row) for row in rows]
