"""
Account 저장소

accounts 테이블 CRUD 처리.
누적 합계(total_income / total_expense)는 원장 변경과 같은 단위 작업 안에서만 갱신.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, ClassVar

from core.constants import SortFields
from core.ledger.errors import RecordNotFoundError
from core.ledger.filters import Filters
from core.ledger.models import Account
from core.ledger.versioned import VersionedStore

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


ACCOUNT_COLUMNS = """
    id, owner_id, title, description, total_income, total_expense,
    currency, created_at, version
"""


class AccountStore(VersionedStore):
    """Account 저장소

    Args:
        db: SQLite 어댑터
    """

    table = "accounts"
    entity = "account"
    sort_fields: ClassVar[tuple[str, ...]] = SortFields.ACCOUNTS

    def __init__(self, db: SQLiteAdapter):
        super().__init__(db)

    async def insert(self, account: Account) -> Account:
        """계좌 생성

        account에 id, created_at, version(=1)을 할당.
        """
        created_at = datetime.now(timezone.utc)

        cursor = await self.db.execute(
            """
            INSERT INTO accounts (
                owner_id, title, description, total_income, total_expense,
                currency, created_at, version
            ) VALUES (?, ?, ?, ?, ?, ?, ?, 1)
            """,
            (
                account.owner_id,
                account.title,
                account.description,
                str(account.total_income),
                str(account.total_expense),
                account.currency,
                created_at.isoformat(),
            ),
        )

        account.id = cursor.lastrowid
        account.created_at = created_at
        account.version = 1

        logger.info(f"Account created: {account.id} (owner={account.owner_id})")
        return account

    async def get(self, account_id: int) -> Account:
        """계좌 조회

        Raises:
            RecordNotFoundError: 계좌가 없는 경우
        """
        row = await self.db.fetchone(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE id = ?",
            (account_id,),
        )

        if not row:
            raise RecordNotFoundError(self.entity, account_id)

        return Account.from_row(row)

    async def update(self, account: Account) -> int:
        """계좌 전체 스냅샷 갱신 (버전 비교)

        부분 필드 갱신 없음. 호출자는 항상 읽어온 전체 스냅샷을 전달.

        Returns:
            새 버전 (account.version에도 반영)

        Raises:
            EditConflictError: 버전이 다른 경우
        """
        account.version = await self._compare_and_swap(
            {
                "title": account.title,
                "description": account.description,
                "total_income": str(account.total_income),
                "total_expense": str(account.total_expense),
                "currency": account.currency,
            },
            {"id": account.id},
            account.version,
        )
        return account.version

    async def delete(self, account_id: int, owner_id: int) -> None:
        """계좌 삭제 (소유자 일치 필요, 원장 항목/버킷은 CASCADE)

        Raises:
            RecordNotFoundError: 일치하는 계좌가 없는 경우
        """
        await self._delete_where({"id": account_id, "owner_id": owner_id})
        logger.info(f"Account deleted: {account_id} (owner={owner_id})")

    async def list_by_owner(
        self,
        owner_id: int,
        filters: Filters | None = None,
    ) -> list[Account]:
        """소유자별 계좌 목록"""
        filters = filters or Filters()

        rows = await self.db.fetchall(
            f"""
            SELECT {ACCOUNT_COLUMNS}
            FROM accounts
            WHERE owner_id = ?
            ORDER BY {filters.order_by(self.sort_fields)}
            LIMIT ? OFFSET ?
            """,
            (owner_id, filters.limit, filters.offset),
        )

        return [Account.from_row(row) for row in rows]

    async def list_ids(self) -> list[int]:
        """전체 계좌 ID (정합성 검사용)"""
        rows = await self.db.fetchall("SELECT id FROM accounts ORDER BY id")
        return [row[0] for row in rows]
