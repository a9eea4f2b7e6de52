"""
SQLite 어댑터 테스트

SQLiteAdapter 및 관련 함수 테스트.
"""

import asyncio
import sqlite3
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import (
    SQLiteAdapter,
    create_connection,
    init_schema,
)


class TestCreateConnection:
    """create_connection 테스트"""

    @pytest.mark.asyncio
    async def test_create_connection(self, tmp_path: Path) -> None:
        """연결 생성"""
        db_path = tmp_path / "test.db"

        conn = await create_connection(db_path)

        assert conn is not None

        # WAL 모드 확인
        cursor = await conn.execute("PRAGMA journal_mode")
        row = await cursor.fetchone()
        assert row[0].upper() == "WAL"

        await conn.close()

    @pytest.mark.asyncio
    async def test_pragmas(self, tmp_path: Path) -> None:
        """busy_timeout, foreign_keys 설정"""
        conn = await create_connection(tmp_path / "test.db", busy_timeout_ms=1234)

        cursor = await conn.execute("PRAGMA busy_timeout")
        assert (await cursor.fetchone())[0] == 1234

        cursor = await conn.execute("PRAGMA foreign_keys")
        assert (await cursor.fetchone())[0] == 1

        await conn.close()

    @pytest.mark.asyncio
    async def test_autocommit_connection(self, tmp_path: Path) -> None:
        """트랜잭션은 명시적으로만 시작"""
        conn = await create_connection(tmp_path / "test.db")

        await conn.execute("CREATE TABLE t (id INTEGER)")
        await conn.execute("INSERT INTO t (id) VALUES (1)")

        assert conn.in_transaction is False

        await conn.close()

    @pytest.mark.asyncio
    async def test_casefold_function(self, tmp_path: Path) -> None:
        """casefold SQL 함수 - 비ASCII 대소문자도 처리"""
        conn = await create_connection(tmp_path / "test.db")

        cursor = await conn.execute("SELECT casefold('École STRASSE'), casefold(NULL)")
        assert await cursor.fetchone() == ("école strasse", None)

        await conn.close()

    @pytest.mark.asyncio
    async def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """부모 디렉토리 생성"""
        db_path = tmp_path / "subdir" / "test.db"

        conn = await create_connection(db_path)

        assert db_path.parent.exists()

        await conn.close()


class TestSQLiteAdapter:
    """SQLiteAdapter 테스트"""

    @pytest_asyncio.fixture
    async def adapter(self, tmp_path: Path) -> SQLiteAdapter:
        """어댑터 픽스처"""
        db_path = tmp_path / "test.db"
        adapter = SQLiteAdapter(db_path)
        await adapter.connect()
        yield adapter
        await adapter.close()

    @pytest.mark.asyncio
    async def test_connect_and_close(self, tmp_path: Path) -> None:
        """연결 및 종료"""
        db_path = tmp_path / "test.db"
        adapter = SQLiteAdapter(db_path)

        assert adapter.is_connected is False

        await adapter.connect()
        assert adapter.is_connected is True

        await adapter.close()
        assert adapter.is_connected is False

    @pytest.mark.asyncio
    async def test_execute_without_connection(self, tmp_path: Path) -> None:
        """연결 전 실행은 RuntimeError"""
        adapter = SQLiteAdapter(tmp_path / "test.db")

        with pytest.raises(RuntimeError):
            await adapter.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_execute(self, adapter: SQLiteAdapter) -> None:
        """SQL 실행"""
        await adapter.execute(
            "CREATE TABLE test (id INTEGER PRIMARY KEY, name TEXT)"
        )
        await adapter.execute(
            "INSERT INTO test (name) VALUES (?)",
            ("테스트",),
        )

        row = await adapter.fetchone("SELECT name FROM test WHERE id = 1")
        assert row[0] == "테스트"

    @pytest.mark.asyncio
    async def test_fetchall(self, adapter: SQLiteAdapter) -> None:
        """전체 조회"""
        await adapter.execute("CREATE TABLE items (value TEXT)")
        for value in ("C", "A", "B"):
            await adapter.execute("INSERT INTO items (value) VALUES (?)", (value,))

        rows = await adapter.fetchall("SELECT value FROM items ORDER BY value")

        assert isinstance(rows, list)
        assert [r[0] for r in rows] == ["A", "B", "C"]

    @pytest.mark.asyncio
    async def test_transaction_commit(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 커밋"""
        await adapter.execute("CREATE TABLE tx_test (id INTEGER)")

        async with adapter.transaction() as conn:
            assert conn.in_transaction is True
            await conn.execute("INSERT INTO tx_test (id) VALUES (1)")
            await conn.execute("INSERT INTO tx_test (id) VALUES (2)")

        assert adapter.in_transaction is False
        rows = await adapter.fetchall("SELECT id FROM tx_test")
        assert len(rows) == 2

    @pytest.mark.asyncio
    async def test_transaction_rollback(self, adapter: SQLiteAdapter) -> None:
        """트랜잭션 롤백"""
        await adapter.execute("CREATE TABLE tx_test2 (id INTEGER)")

        with pytest.raises(ValueError):
            async with adapter.transaction() as conn:
                await conn.execute("INSERT INTO tx_test2 (id) VALUES (1)")
                raise ValueError("의도적 에러")

        assert adapter.in_transaction is False
        rows = await adapter.fetchall("SELECT id FROM tx_test2")
        assert len(rows) == 0

    @pytest.mark.asyncio
    async def test_transaction_rollback_on_cancel(self, adapter: SQLiteAdapter) -> None:
        """취소(타임아웃)도 롤백"""
        await adapter.execute("CREATE TABLE tx_test3 (id INTEGER)")

        async def slow_write() -> None:
            async with adapter.transaction() as conn:
                await conn.execute("INSERT INTO tx_test3 (id) VALUES (1)")
                await asyncio.sleep(10)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(slow_write(), timeout=0.05)

        assert adapter.in_transaction is False
        rows = await adapter.fetchall("SELECT id FROM tx_test3")
        assert len(rows) == 0

    @pytest.mark.asyncio
    async def test_nested_transaction_rejected(self, adapter: SQLiteAdapter) -> None:
        """중첩 트랜잭션 거부"""
        async with adapter.transaction():
            with pytest.raises(RuntimeError, match="already in progress"):
                async with adapter.transaction():
                    pass

    @pytest.mark.asyncio
    async def test_immediate_lock_blocks_second_writer(self, tmp_path: Path) -> None:
        """BEGIN IMMEDIATE - 다른 연결의 쓰기 트랜잭션 시작 차단"""
        db_path = tmp_path / "lock.db"

        async with SQLiteAdapter(db_path) as first, SQLiteAdapter(
            db_path, busy_timeout_ms=0
        ) as second:
            async with first.transaction():
                with pytest.raises(sqlite3.OperationalError, match="locked"):
                    async with second.transaction():
                        pass

    @pytest.mark.asyncio
    async def test_snapshot_isolates_reads(self, tmp_path: Path) -> None:
        """읽기 스냅샷 - 다른 연결의 커밋은 스냅샷 종료 후에 보임"""
        db_path = tmp_path / "snapshot.db"

        async with SQLiteAdapter(db_path) as reader, SQLiteAdapter(db_path) as writer:
            await writer.execute("CREATE TABLE snap (id INTEGER)")
            await writer.execute("INSERT INTO snap (id) VALUES (1)")

            async with reader.snapshot():
                assert reader.in_transaction is True
                assert len(await reader.fetchall("SELECT id FROM snap")) == 1

                async with writer.transaction():
                    await writer.execute("INSERT INTO snap (id) VALUES (2)")

                assert len(await reader.fetchall("SELECT id FROM snap")) == 1

            assert reader.in_transaction is False
            assert len(await reader.fetchall("SELECT id FROM snap")) == 2

    @pytest.mark.asyncio
    async def test_snapshot_inside_transaction_rejected(self, adapter: SQLiteAdapter) -> None:
        """쓰기 트랜잭션 안에서 스냅샷 거부"""
        async with adapter.transaction():
            with pytest.raises(RuntimeError, match="already in progress"):
                async with adapter.snapshot():
                    pass

    @pytest.mark.asyncio
    async def test_table_exists(self, adapter: SQLiteAdapter) -> None:
        """테이블 존재 확인"""
        assert await adapter.table_exists("nonexistent") is False

        await adapter.execute("CREATE TABLE existing (id INTEGER)")

        assert await adapter.table_exists("existing") is True

    @pytest.mark.asyncio
    async def test_context_manager(self, tmp_path: Path) -> None:
        """컨텍스트 매니저"""
        db_path = tmp_path / "ctx_test.db"

        async with SQLiteAdapter(db_path) as adapter:
            assert adapter.is_connected is True
            await adapter.execute("CREATE TABLE ctx (id INTEGER)")

        # 컨텍스트 종료 후 연결 해제 확인
        assert adapter.is_connected is False


class TestInitSchema:
    """init_schema 테스트"""

    @pytest.mark.asyncio
    async def test_init_schema_creates_tables(self, tmp_path: Path) -> None:
        """스키마 초기화 - 테이블 생성"""
        async with SQLiteAdapter(tmp_path / "schema_test.db") as adapter:
            await init_schema(adapter)

            assert await adapter.table_exists("accounts") is True
            assert await adapter.table_exists("transactions") is True
            assert await adapter.table_exists("statistics") is True

    @pytest.mark.asyncio
    async def test_init_schema_idempotent(self, tmp_path: Path) -> None:
        """스키마 초기화 멱등성 (여러 번 실행 가능)"""
        async with SQLiteAdapter(tmp_path / "idempotent_test.db") as adapter:
            await init_schema(adapter)
            await init_schema(adapter)

            assert await adapter.table_exists("transactions") is True

    @pytest.mark.asyncio
    async def test_version_columns(self, tmp_path: Path) -> None:
        """모든 테이블에 version 컬럼"""
        async with SQLiteAdapter(tmp_path / "version_test.db") as adapter:
            await init_schema(adapter)

            for table in ("accounts", "transactions", "statistics"):
                rows = await adapter.fetchall(f"PRAGMA table_info({table})")
                assert "version" in [row[1] for row in rows], table

    @pytest.mark.asyncio
    async def test_statistic_key_unique(self, tmp_path: Path) -> None:
        """(account_id, date) UNIQUE 제약조건"""
        async with SQLiteAdapter(tmp_path / "unique_test.db") as adapter:
            await init_schema(adapter)

            await adapter.execute(
                "INSERT INTO accounts (owner_id, title, currency, created_at) "
                "VALUES (1, 'main', 'USD', '2024-01-01T00:00:00+00:00')"
            )
            insert_bucket = (
                "INSERT INTO statistics (account_id, date, created_at) "
                "VALUES (1, '2024-01-05', '2024-01-05T00:00:00+00:00')"
            )
            await adapter.execute(insert_bucket)

            with pytest.raises(aiosqlite.IntegrityError):
                await adapter.execute(insert_bucket)

    @pytest.mark.asyncio
    async def test_transaction_type_check(self, tmp_path: Path) -> None:
        """transactions.type은 income/expense만 허용"""
        async with SQLiteAdapter(tmp_path / "check_test.db") as adapter:
            await init_schema(adapter)

            await adapter.execute(
                "INSERT INTO accounts (owner_id, title, currency, created_at) "
                "VALUES (1, 'main', 'USD', '2024-01-01T00:00:00+00:00')"
            )

            with pytest.raises(aiosqlite.IntegrityError):
                await adapter.execute(
                    "INSERT INTO transactions (user_id, account_id, type, title, "
                    "amount, payday, created_at) VALUES "
                    "(1, 1, 'transfer', 'x', '1', '2024-01-01', '2024-01-01')"
                )
