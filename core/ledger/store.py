"""
Ledger 저장소

원장 항목(transactions 테이블) 저장 및 조회.
계좌/통계 집계 갱신은 TransactionCoordinator가 같은 단위 작업 안에서 수행.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, ClassVar, Iterable

from core.constants import SortFields
from core.ledger.errors import RecordNotFoundError
from core.ledger.filters import Filters
from core.ledger.models import ZERO, LedgerEntry, encode_tags
from core.ledger.versioned import VersionedStore
from core.types import EntryKind

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


TRANSACTION_COLUMNS = """
    id, user_id, account_id, type, title, description,
    tags, amount, payday, created_at, version
"""

# TEXT로 저장된 금액은 숫자로 정렬
_SORT_EXPRESSIONS = {"amount": "CAST(amount AS REAL)"}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _check_amount(entry: LedgerEntry) -> None:
    if entry.amount <= ZERO:
        raise ValueError(f"amount must be positive: {entry.amount}")


class LedgerStore(VersionedStore):
    """Ledger 저장소

    원장 항목 CRUD와 필터/페이징/정렬 목록 조회.

    Args:
        db: SQLite 어댑터
    """

    table = "transactions"
    entity = "transaction"
    sort_fields: ClassVar[tuple[str, ...]] = SortFields.TRANSACTIONS

    def __init__(self, db: SQLiteAdapter):
        super().__init__(db)

    async def insert(self, entry: LedgerEntry) -> LedgerEntry:
        """원장 항목 저장

        entry에 id, created_at, version(=1)을 할당.

        Args:
            entry: 저장할 항목

        Returns:
            같은 entry 객체

        Raises:
            ValueError: 금액이 0 이하인 경우
        """
        _check_amount(entry)

        created_at = datetime.now(timezone.utc)

        cursor = await self.db.execute(
            """
            INSERT INTO transactions (
                user_id, account_id, type, title, description,
                tags, amount, payday, created_at, version
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, 1)
            """,
            (
                entry.user_id,
                entry.account_id,
                entry.kind.value,
                entry.title,
                entry.description,
                entry.tags_json,
                str(entry.amount),
                entry.payday.isoformat(),
                created_at.isoformat(),
            ),
        )

        entry.id = cursor.lastrowid
        entry.created_at = created_at
        entry.version = 1

        logger.debug(f"Saved transaction: {entry.id}")
        return entry

    async def get(self, entry_id: int) -> LedgerEntry:
        """원장 항목 단건 조회

        Raises:
            RecordNotFoundError: 항목이 없는 경우
        """
        row = await self.db.fetchone(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE id = ?",
            (entry_id,),
        )

        if not row:
            raise RecordNotFoundError(self.entity, entry_id)

        return LedgerEntry.from_row(row)

    async def update(self, entry: LedgerEntry) -> int:
        """원장 항목 갱신 (버전 비교)

        변경 가능 필드: type, title, description, tags, amount, payday.

        Returns:
            새 버전 (entry.version에도 반영)

        Raises:
            EditConflictError: 저장된 버전과 entry.version이 다른 경우
            ValueError: 금액이 0 이하인 경우
        """
        _check_amount(entry)

        entry.version = await self._compare_and_swap(
            {
                "type": entry.kind.value,
                "title": entry.title,
                "description": entry.description,
                "tags": entry.tags_json,
                "amount": str(entry.amount),
                "payday": entry.payday.isoformat(),
            },
            {"id": entry.id},
            entry.version,
        )
        return entry.version

    async def delete(self, entry_id: int, user_id: int) -> None:
        """원장 항목 삭제 (ID와 소유자가 모두 일치해야 함)

        Raises:
            RecordNotFoundError: 일치하는 항목이 없는 경우
        """
        await self._delete_where({"id": entry_id, "user_id": user_id})

    async def list_by_owner(
        self,
        user_id: int,
        title: str = "",
        tags: Iterable[str] = (),
        date_from: date | None = None,
        date_to: date | None = None,
        filters: Filters | None = None,
    ) -> list[LedgerEntry]:
        """사용자별 원장 항목 목록

        Args:
            user_id: 소유 사용자 ID
            title: 제목 검색어 (모든 단어가 제목에 포함되어야 함, 빈 값은 전체)
            tags: 태그 필터 (항목 태그가 이 집합을 모두 포함해야 함, 빈 값은 전체)
            date_from: 시작일 (포함)
            date_to: 종료일 (미포함)
            filters: 페이징/정렬

        Returns:
            원장 항목 목록
        """
        filters = filters or Filters()

        sql = f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE user_id = ?"
        params: list[Any] = [user_id]

        # casefold: 연결마다 등록되는 SQL 함수 (유니코드 대소문자 무시)
        for word in title.casefold().split():
            sql += " AND casefold(title) LIKE ? ESCAPE '\\'"
            params.append(f"%{_escape_like(word)}%")

        wanted_tags = sorted(set(tags))
        if wanted_tags:
            sql += """
                AND NOT EXISTS (
                    SELECT 1 FROM json_each(?) AS wanted
                    WHERE wanted.value NOT IN (
                        SELECT value FROM json_each(transactions.tags)
                    )
                )
            """
            params.append(encode_tags(wanted_tags))

        sql, params = self._append_date_range(sql, params, date_from, date_to)

        order_by = filters.order_by(self.sort_fields, _SORT_EXPRESSIONS)
        sql += f" ORDER BY {order_by} LIMIT ? OFFSET ?"
        params.extend([filters.limit, filters.offset])

        rows = await self.db.fetchall(sql, tuple(params))
        return [LedgerEntry.from_row(row) for row in rows]

    async def list_by_account(
        self,
        account_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
        filters: Filters | None = None,
    ) -> list[LedgerEntry]:
        """계좌별 원장 항목 목록

        Args:
            account_id: 계좌 ID
            date_from: 시작일 (포함)
            date_to: 종료일 (미포함)
            filters: 페이징/정렬

        Returns:
            원장 항목 목록
        """
        filters = filters or Filters()

        sql = f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE account_id = ?"
        params: list[Any] = [account_id]

        sql, params = self._append_date_range(sql, params, date_from, date_to)

        order_by = filters.order_by(self.sort_fields, _SORT_EXPRESSIONS)
        sql += f" ORDER BY {order_by} LIMIT ? OFFSET ?"
        params.extend([filters.limit, filters.offset])

        rows = await self.db.fetchall(sql, tuple(params))
        return [LedgerEntry.from_row(row) for row in rows]

    async def sum_by_kind(
        self,
        account_id: int,
        payday: date | None = None,
    ) -> dict[EntryKind, Decimal]:
        """계좌의 종류별 금액 합계 (원장에서 재계산)

        Args:
            account_id: 계좌 ID
            payday: 지정 시 해당 일자 항목만 합산
        """
        totals = {EntryKind.INCOME: ZERO, EntryKind.EXPENSE: ZERO}

        sql = "SELECT type, amount FROM transactions WHERE account_id = ?"
        params: list[Any] = [account_id]
        if payday is not None:
            sql += " AND payday = ?"
            params.append(payday.isoformat())

        rows = await self.db.fetchall(sql, tuple(params))
        for kind, amount in rows:
            totals[EntryKind(kind)] += Decimal(amount)

        return totals

    async def daily_sums(
        self,
        account_id: int,
    ) -> dict[date, dict[EntryKind, Decimal]]:
        """계좌의 일자별/종류별 금액 합계 (원장에서 재계산)"""
        sums: dict[date, dict[EntryKind, Decimal]] = defaultdict(
            lambda: {EntryKind.INCOME: ZERO, EntryKind.EXPENSE: ZERO}
        )

        rows = await self.db.fetchall(
            "SELECT payday, type, amount FROM transactions WHERE account_id = ?",
            (account_id,),
        )
        for payday, kind, amount in rows:
            sums[date.fromisoformat(payday)][EntryKind(kind)] += Decimal(amount)

        return dict(sums)

    @staticmethod
    def _append_date_range(
        sql: str,
        params: list[Any],
        date_from: date | None,
        date_to: date | None,
    ) -> tuple[str, list[Any]]:
        """반개구간 [date_from, date_to) 조건 추가"""
        if date_from is not None:
            sql += " AND payday >= ?"
            params.append(date_from.isoformat())

        if date_to is not None:
            sql += " AND payday < ?"
            params.append(date_to.isoformat())

        return sql, params
