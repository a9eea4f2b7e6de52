"""
단위 작업 (Unit of Work)

원장 항목 + 계좌 + 통계 버킷 쓰기를 하나의 트랜잭션으로 묶는다.
호출마다 전용 연결을 열고 BEGIN IMMEDIATE로 시작하며,
제한 시간 안에 끝나지 않거나 예외가 나면 전부 롤백한다.

오류 정리:
- RecordNotFoundError, EditConflictError: 그대로 전달
- 제한 시간 초과: TransactionTimeoutError
- 그 외 DB/IO 오류: StorageFailureError
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.constants import Defaults
from core.ledger.account_store import AccountStore
from core.ledger.errors import StorageFailureError, TransactionTimeoutError
from core.ledger.statistic_store import StatisticStore
from core.ledger.store import LedgerStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork:
    """트랜잭션 중인 연결에 묶인 저장소 묶음

    Attributes:
        db: 트랜잭션 중인 어댑터
        transactions: 원장 항목 저장소
        accounts: 계좌 저장소
        statistics: 통계 버킷 저장소
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.transactions = LedgerStore(db)
        self.accounts = AccountStore(db)
        self.statistics = StatisticStore(db)


@asynccontextmanager
async def open_unit_of_work(
    db_path: Path | str,
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
) -> AsyncIterator[UnitOfWork]:
    """전용 연결에서 트랜잭션을 열고 UnitOfWork 제공

    블록이 정상 종료되면 커밋, 예외(취소 포함)면 롤백 후 연결 종료.
    """
    async with SQLiteAdapter(db_path, busy_timeout_ms=busy_timeout_ms) as db:
        async with db.transaction():
            yield UnitOfWork(db)


async def run_unit_of_work(
    operation: str,
    work: Callable[[UnitOfWork], Awaitable[T]],
    db_path: Path | str,
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
    timeout_sec: float = Defaults.TX_TIMEOUT_SEC,
) -> T:
    """work를 하나의 단위 작업으로 실행

    Args:
        operation: 로그/오류 메시지용 작업 이름
        work: UnitOfWork를 받아 쓰기를 수행하는 코루틴 함수
        db_path: DB 파일 경로
        busy_timeout_ms: SQLite 잠금 대기 시간
        timeout_sec: 단위 작업 제한 시간

    Returns:
        work의 반환값 (커밋 이후)

    Raises:
        RecordNotFoundError, EditConflictError: 그대로 전달
        TransactionTimeoutError: 제한 시간 초과
        StorageFailureError: 그 외 저장소 오류
    """

    async def _run() -> T:
        async with open_unit_of_work(db_path, busy_timeout_ms) as uow:
            return await work(uow)

    try:
        return await asyncio.wait_for(_run(), timeout=timeout_sec)
    except asyncio.TimeoutError as e:
        logger.error(f"{operation} 제한 시간 초과 ({timeout_sec}s) - 롤백")
        raise TransactionTimeoutError(operation, timeout_sec) from e
    except (sqlite3.Error, OSError) as e:
        logger.error(f"{operation} 저장소 오류 - 롤백: {e}")
        raise StorageFailureError(f"{operation} failed: {e}") from e
