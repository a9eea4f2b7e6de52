"""
원장 통합 테스트 공통 fixture

단위 작업은 호출마다 전용 연결을 열기 때문에 메모리 DB 대신 임시 파일 DB 사용.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Awaitable, Callable

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter, init_schema
from core.ledger.account_store import AccountStore
from core.ledger.coordinator import TransactionCoordinator
from core.ledger.models import Account, LedgerEntry
from core.ledger.statistic_store import StatisticStore
from core.ledger.store import LedgerStore
from core.types import EntryKind

OWNER_ID = 1


@pytest_asyncio.fixture
async def db_path(tmp_path: Path) -> Path:
    """스키마가 생성된 임시 DB 파일"""
    path = tmp_path / "test_ledger.db"
    async with SQLiteAdapter(path) as adapter:
        await init_schema(adapter)
    return path


@pytest_asyncio.fixture
async def db(db_path: Path) -> SQLiteAdapter:
    """검증/준비용 연결 (autocommit)"""
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    yield adapter

    await adapter.close()


@pytest.fixture
def ledger_store(db: SQLiteAdapter) -> LedgerStore:
    """LedgerStore 인스턴스"""
    return LedgerStore(db)


@pytest.fixture
def account_store(db: SQLiteAdapter) -> AccountStore:
    """AccountStore 인스턴스"""
    return AccountStore(db)


@pytest.fixture
def statistic_store(db: SQLiteAdapter) -> StatisticStore:
    """StatisticStore 인스턴스"""
    return StatisticStore(db)


@pytest.fixture
def coordinator(db_path: Path) -> TransactionCoordinator:
    """TransactionCoordinator 인스턴스"""
    return TransactionCoordinator(db_path, busy_timeout_ms=3000, tx_timeout_sec=5.0)


@pytest.fixture
def make_account(account_store: AccountStore) -> Callable[..., Awaitable[Account]]:
    """계좌 생성 헬퍼"""

    async def _make(title: str = "생활비", owner_id: int = OWNER_ID, currency: str = "USD") -> Account:
        return await account_store.insert(
            Account(owner_id=owner_id, title=title, currency=currency)
        )

    return _make


@pytest.fixture
def new_entry() -> Callable[..., LedgerEntry]:
    """저장 전 원장 항목 생성 헬퍼"""

    def _new(
        account: Account,
        kind: EntryKind = EntryKind.INCOME,
        amount: str = "100",
        payday: date = date(2024, 1, 5),
        title: str = "월급",
        tags: tuple[str, ...] = (),
    ) -> LedgerEntry:
        return LedgerEntry(
            user_id=account.owner_id,
            account_id=account.id,
            kind=kind,
            title=title,
            amount=Decimal(amount),
            payday=payday,
            tags=frozenset(tags),
        )

    return _new
