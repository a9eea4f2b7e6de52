"""
SQLite 어댑터

WAL 모드로 SQLite 연결 관리.
여러 단위 작업(Unit of Work)이 동시에 접근 가능하도록 설정.

트랜잭션은 autocommit 연결 위에서 BEGIN IMMEDIATE로 명시적으로 시작.
쓰기 잠금을 트랜잭션 시작 시점에 잡으므로 동시 쓰기는 직렬화되고,
경쟁에서 진 쪽은 버전 비교(CAS)에서 충돌을 감지한다.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

from core.constants import Defaults

logger = logging.getLogger(__name__)


def _casefold(value: str | None) -> str | None:
    # SQLite lower()는 ASCII만 처리
    if value is None:
        return None
    return value.casefold()


async def create_connection(
    db_path: Path | str,
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
) -> aiosqlite.Connection:
    """SQLite 연결 생성 (WAL 모드, autocommit)

    유니코드 대소문자 무시 비교용 casefold(text) SQL 함수를 등록한다.

    Args:
        db_path: DB 파일 경로
        busy_timeout_ms: 잠금 대기 시간 (밀리초)

    Returns:
        aiosqlite 연결 객체
    """
    # pathlib.Path를 문자열로 변환
    db_path_str = str(db_path)

    # 디렉토리가 없으면 생성
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    # isolation_level=None: 트랜잭션 경계는 SQLiteAdapter.transaction()이 관리
    conn = await aiosqlite.connect(db_path_str, isolation_level=None)

    # WAL 모드 설정
    await conn.execute("PRAGMA journal_mode=WAL")

    # 동시 접근 설정
    await conn.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)}")

    # 외래 키 제약 활성화
    await conn.execute("PRAGMA foreign_keys=ON")

    await conn.create_function("casefold", 1, _casefold, deterministic=True)

    logger.debug("SQLite 연결 생성", extra={"db_path": db_path_str})

    return conn


class SQLiteAdapter:
    """SQLite 어댑터

    WAL 모드로 SQLite 연결 관리.
    쓰기 트랜잭션과 읽기 스냅샷 컨텍스트 매니저 제공.

    Args:
        db_path: DB 파일 경로
        busy_timeout_ms: 잠금 대기 시간 (밀리초)

    사용 예시:
    ```python
    adapter = SQLiteAdapter(db_path)
    await adapter.connect()

    async with adapter.transaction():
        await adapter.execute("INSERT INTO ...")

    await adapter.close()
    ```
    """

    def __init__(
        self,
        db_path: Path | str,
        busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
    ):
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self._conn: aiosqlite.Connection | None = None

    @property
    def is_connected(self) -> bool:
        """연결 상태 확인"""
        return self._conn is not None

    @property
    def in_transaction(self) -> bool:
        """트랜잭션 진행 중 여부"""
        return self._conn is not None and self._conn.in_transaction

    async def connect(self) -> None:
        """연결 생성"""
        if self._conn is not None:
            return

        self._conn = await create_connection(self.db_path, self.busy_timeout_ms)

    async def close(self) -> None:
        """연결 종료"""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.debug("SQLite 연결 종료")

    async def execute(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> aiosqlite.Cursor:
        """SQL 실행"""
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if parameters:
            return await self._conn.execute(sql, parameters)
        return await self._conn.execute(sql)

    async def fetchone(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> tuple[Any, ...] | None:
        """단일 행 조회"""
        cursor = await self.execute(sql, parameters)
        return await cursor.fetchone()

    async def fetchall(
        self,
        sql: str,
        parameters: tuple[Any, ...] | None = None,
    ) -> list[tuple[Any, ...]]:
        """전체 행 조회"""
        cursor = await self.execute(sql, parameters)
        return list(await cursor.fetchall())

    async def commit(self) -> None:
        """커밋 (진행 중인 트랜잭션이 없으면 무시)"""
        if self._conn is not None:
            await self._conn.commit()

    async def rollback(self) -> None:
        """롤백 (진행 중인 트랜잭션이 없으면 무시)"""
        if self._conn is not None:
            await self._conn.rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLiteAdapter"]:
        """트랜잭션 컨텍스트 매니저

        BEGIN IMMEDIATE로 시작, 성공 시 커밋, 예외(취소 포함) 시 롤백.

        사용 예시:
        ```python
        async with adapter.transaction() as db:
            await db.execute("INSERT INTO ...")
            # 성공 시 자동 커밋
        ```
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if self._conn.in_transaction:
            raise RuntimeError("Transaction already in progress")

        await self._conn.execute("BEGIN IMMEDIATE")

        try:
            yield self
            await self._conn.commit()
        except BaseException:
            # asyncio 취소(타임아웃)도 롤백 대상
            try:
                await self._conn.rollback()
            except aiosqlite.Error as rollback_error:
                logger.error(f"롤백 실패: {rollback_error}")
            raise

    @asynccontextmanager
    async def snapshot(self) -> AsyncIterator["SQLiteAdapter"]:
        """읽기 스냅샷 컨텍스트 매니저

        BEGIN(DEFERRED)으로 시작해 블록 안의 모든 SELECT가 같은 시점의
        데이터를 본다 (WAL). 쓰기 잠금은 잡지 않는다.
        """
        if self._conn is None:
            raise RuntimeError("Not connected to database")

        if self._conn.in_transaction:
            raise RuntimeError("Transaction already in progress")

        await self._conn.execute("BEGIN")

        try:
            yield self
        finally:
            await self._conn.rollback()

    async def table_exists(self, table_name: str) -> bool:
        """테이블 존재 여부 확인"""
        result = await self.fetchone(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (table_name,),
        )
        return result is not None


    # -------------------------------------------------------------------------
    # 컨텍스트 매니저
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


async def init_schema(adapter: SQLiteAdapter) -> None:
    """스키마 초기화 (테이블 생성)

    CREATE IF NOT EXISTS 패턴으로 여러 번 호출해도 안전.

    Args:
        adapter: 연결된 SQLiteAdapter
    """
    # accounts (계좌 + 누적 합계 집계)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS accounts (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            owner_id         INTEGER NOT NULL,
            title            TEXT NOT NULL,
            description      TEXT NOT NULL DEFAULT '',
            total_income     TEXT NOT NULL DEFAULT '0',
            total_expense    TEXT NOT NULL DEFAULT '0',
            currency         TEXT NOT NULL,
            created_at       TEXT NOT NULL,
            version          INTEGER NOT NULL DEFAULT 1
        )
    """)

    # transactions (원장 항목)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS transactions (
            id               INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id          INTEGER NOT NULL,
            account_id       INTEGER NOT NULL,
            type             TEXT NOT NULL CHECK (type IN ('income', 'expense')),
            title            TEXT NOT NULL,
            description      TEXT NOT NULL DEFAULT '',
            tags             TEXT NOT NULL DEFAULT '[]',
            amount           TEXT NOT NULL,
            payday           TEXT NOT NULL,
            created_at       TEXT NOT NULL,
            version          INTEGER NOT NULL DEFAULT 1,
            FOREIGN KEY (account_id) REFERENCES accounts(id) ON DELETE CASCADE
        )
    """)

    # statistics (계좌별 일자 버킷 집계)
    await adapter.execute("""
        CREATE TABLE IF NOT EXISTS statistics (
            account_id       INTEGER NOT NULL,
            date             TEXT NOT NULL,
            earning          TEXT NOT NULL DEFAULT '0',
            spending         TEXT NOT NULL DEFAULT '0',
            created_at       TEXT NOT NULL,
            version          INTEGER NOT NULL DEFAULT 1,
            UNIQUE(account_id, date),
            FOREIGN KEY (account_id) REFERENCES accounts(id) ON DELETE CASCADE
        )
    """)

    # 인덱스 생성
    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_user_payday
        ON transactions(user_id, payday)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_transactions_account_payday
        ON transactions(account_id, payday)
    """)

    await adapter.execute("""
        CREATE INDEX IF NOT EXISTS ix_accounts_owner
        ON accounts(owner_id)
    """)

    await adapter.commit()

    logger.info("스키마 초기화 완료")
