"""
버전 레코드 (낙관적 락)

원장 항목, 계좌, 통계 버킷 저장소가 공통으로 쓰는 CAS(compare-and-swap) 갱신.
UPDATE ... SET ..., version = version + 1 WHERE <키> AND version = <예상 버전>
영향받은 행이 없으면 EditConflictError.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from core.ledger.errors import EditConflictError, RecordNotFoundError

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


class VersionedStore:
    """버전 컬럼을 가진 테이블 저장소 기본 클래스

    하위 클래스는 table, entity를 지정.
    테이블/컬럼 이름은 코드 상수만 사용 (사용자 입력 금지).

    Args:
        db: SQLite 어댑터 (단위 작업 안에서는 트랜잭션 중인 어댑터)
    """

    table: str = ""
    entity: str = "record"

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def _compare_and_swap(
        self,
        assignments: dict[str, Any],
        key: dict[str, Any],
        expected_version: int,
    ) -> int:
        """버전 비교 후 갱신

        Args:
            assignments: 갱신할 컬럼 → 값
            key: 레코드 키 컬럼 → 값
            expected_version: 호출자가 읽은 버전

        Returns:
            새 버전 (expected_version + 1)

        Raises:
            EditConflictError: 레코드가 없거나 버전이 다른 경우
        """
        set_clause = ", ".join(f"{column} = ?" for column in assignments)
        where_clause = " AND ".join(f"{column} = ?" for column in key)

        cursor = await self.db.execute(
            f"""
            UPDATE {self.table}
            SET {set_clause}, version = version + 1
            WHERE {where_clause} AND version = ?
            """,
            (*assignments.values(), *key.values(), expected_version),
        )

        if cursor.rowcount == 0:
            logger.warning(
                f"{self.entity} 버전 충돌: key={_format_key(key)}, "
                f"expected_version={expected_version}"
            )
            raise EditConflictError(self.entity, _format_key(key), expected_version)

        return expected_version + 1

    async def _delete_where(self, key: dict[str, Any]) -> None:
        """키가 일치하는 행 삭제

        Raises:
            RecordNotFoundError: 일치하는 행이 없는 경우
        """
        where_clause = " AND ".join(f"{column} = ?" for column in key)

        cursor = await self.db.execute(
            f"DELETE FROM {self.table} WHERE {where_clause}",
            tuple(key.values()),
        )

        if cursor.rowcount == 0:
            raise RecordNotFoundError(self.entity, _format_key(key))


def _format_key(key: dict[str, Any]) -> Any:
    if len(key) == 1:
        return next(iter(key.values()))
    return tuple(key.values())
