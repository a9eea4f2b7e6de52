"""
원장 트랜잭션 코디네이터

원장 항목 생성/수정/삭제와 계좌 누적 합계, 일자 버킷 갱신을
하나의 단위 작업으로 처리한다.

- 동시성 제어는 행 단위 버전 비교(낙관적 락)만 사용
- 충돌 시 전체 롤백 후 EditConflictError, 재시도는 호출자 책임
- 호출자 객체는 커밋 성공 후에만 변경된다 (실패 시 DB와 객체 모두 이전 상태)

사용 예시:
```python
coordinator = TransactionCoordinator.from_settings(settings)

account = await accounts.get(account_id)
bucket = await statistics.find_by_date(account_id, payday)

entry = LedgerEntry(
    user_id=user_id,
    account_id=account_id,
    kind=EntryKind.INCOME,
    title="월급",
    amount=Decimal("100"),
    payday=payday,
)
bucket = await coordinator.create(entry, account, bucket)
```
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Awaitable, Callable, TypeVar

from core.config.loader import Settings
from core.constants import Defaults
from core.ledger.errors import EditConflictError, RecordNotFoundError
from core.ledger.models import Account, LedgerEntry, Statistic, copy_into
from core.ledger.unit_of_work import UnitOfWork, run_unit_of_work
from core.types import EntryKind

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionCoordinator:
    """원장 + 집계 원자적 갱신

    Args:
        db_path: DB 파일 경로
        busy_timeout_ms: SQLite 잠금 대기 시간
        tx_timeout_sec: 단위 작업 제한 시간
    """

    def __init__(
        self,
        db_path: Path | str,
        busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS,
        tx_timeout_sec: float = Defaults.TX_TIMEOUT_SEC,
    ):
        self.db_path = Path(db_path)
        self.busy_timeout_ms = busy_timeout_ms
        self.tx_timeout_sec = tx_timeout_sec

    @classmethod
    def from_settings(cls, settings: Settings) -> TransactionCoordinator:
        """Settings로 생성"""
        return cls(
            db_path=settings.db_path,
            busy_timeout_ms=settings.busy_timeout_ms,
            tx_timeout_sec=settings.tx_timeout_sec,
        )

    # =========================================================================
    # 생성
    # =========================================================================

    async def create(
        self,
        entry: LedgerEntry,
        account: Account,
        statistic: Statistic | None = None,
    ) -> Statistic:
        """원장 항목 생성

        1. 항목 저장
        2. 계좌 누적 합계에 금액 가산 (CAS)
        3. 버킷이 없으면(None) 새로 생성, 있으면 금액 가산 (CAS)

        Args:
            entry: 새 항목 (커밋 후 id, created_at, version 할당)
            account: 항목의 계좌 스냅샷
            statistic: (계좌, entry.payday) 버킷 스냅샷, 없으면 None

        Returns:
            항목이 반영된 버킷 (statistic이 주어졌으면 같은 객체)

        Raises:
            ValueError: 계좌/버킷이 항목과 맞지 않는 경우
            EditConflictError: 버전 충돌
            StorageFailureError: 저장소 오류
        """
        _check_account(entry, account)
        if statistic is not None:
            _check_bucket(statistic, entry.account_id, entry.payday)

        staged_entry = replace(entry)
        staged_account = replace(account)
        staged_bucket = replace(statistic) if statistic is not None else None

        async def work(uow: UnitOfWork) -> Statistic:
            await uow.transactions.insert(staged_entry)

            staged_account.add(staged_entry.kind, staged_entry.amount)
            await uow.accounts.update(staged_account)

            return await _add_to_bucket(
                uow,
                staged_bucket,
                staged_entry.account_id,
                staged_entry.payday,
                staged_entry.kind,
                staged_entry.amount,
            )

        bucket = await self._run("create_transaction", work)

        copy_into(entry, staged_entry)
        copy_into(account, staged_account)

        logger.info(
            f"Transaction created: id={entry.id}, account={entry.account_id}, "
            f"{entry.kind.value} {entry.amount} on {entry.payday.isoformat()}"
        )

        if statistic is None:
            return bucket
        copy_into(statistic, bucket)
        return statistic

    # =========================================================================
    # 수정
    # =========================================================================

    async def update(
        self,
        new_entry: LedgerEntry,
        old_entry: LedgerEntry,
        account: Account,
        old_statistic: Statistic,
    ) -> Statistic | None:
        """원장 항목 수정

        이전 일자 버킷(메모리)에 다음 순서로 변화량을 반영한 뒤 저장:
        a. 금액 변경: 이전 종류의 버킷 필드/계좌 합계에서 (이전 금액 - 새 금액) 차감
        b. 종류 변경: 새 금액을 이전 종류에서 빼고 새 종류에 더함
        c. 일자 변경: 이전 일자 버킷의 새 종류 필드에서 새 금액을 빼고
           새 일자 버킷을 찾거나 만들어 더함

        저장 순서: 항목(CAS) → 계좌(CAS) → 이전 일자 버킷(CAS) → 새 일자 버킷(생성 또는 CAS)

        Args:
            new_entry: 변경된 항목 (version은 읽었을 때의 버전)
            old_entry: 변경 전 항목
            account: 계좌 스냅샷
            old_statistic: 변경 전 일자(old_entry.payday)의 버킷 스냅샷

        Returns:
            일자가 바뀐 경우 새 일자 버킷, 아니면 None

        Raises:
            ValueError: 인자들이 서로 맞지 않는 경우
            EditConflictError: 버전 충돌
            StorageFailureError: 저장소 오류
        """
        if new_entry.id != old_entry.id:
            raise ValueError(
                f"entry id mismatch: new={new_entry.id}, old={old_entry.id}"
            )
        if (new_entry.account_id, new_entry.user_id) != (
            old_entry.account_id,
            old_entry.user_id,
        ):
            raise ValueError(f"entry {old_entry.id}: account and owner are immutable")
        _check_account(old_entry, account)
        _check_bucket(old_statistic, old_entry.account_id, old_entry.payday)

        staged_entry = replace(new_entry)
        staged_account = replace(account)
        staged_old_bucket = replace(old_statistic)

        old_kind = old_entry.kind
        new_kind = new_entry.kind
        amount = new_entry.amount

        # a. 금액 변경 (아직 이전 종류 기준)
        if amount != old_entry.amount:
            diff = old_entry.amount - amount
            staged_old_bucket.add(old_kind, -diff)
            staged_account.add(old_kind, -diff)

        # b. 종류 변경 (새 금액을 이전 종류 → 새 종류로 이동)
        if new_kind != old_kind:
            staged_old_bucket.add(old_kind, -amount)
            staged_old_bucket.add(new_kind, amount)
            staged_account.add(old_kind, -amount)
            staged_account.add(new_kind, amount)

        # c. 일자 변경 (이전 일자 버킷에서 빼고 새 일자 버킷에 더함)
        date_moved = new_entry.payday != old_entry.payday
        if date_moved:
            staged_old_bucket.add(new_kind, -amount)

        async def work(uow: UnitOfWork) -> Statistic | None:
            await uow.transactions.update(staged_entry)
            await uow.accounts.update(staged_account)
            await uow.statistics.update(staged_old_bucket)

            if not date_moved:
                return None

            existing = await uow.statistics.find_by_date(
                staged_entry.account_id, staged_entry.payday
            )
            return await _add_to_bucket(
                uow,
                existing,
                staged_entry.account_id,
                staged_entry.payday,
                new_kind,
                amount,
            )

        new_bucket = await self._run("update_transaction", work)

        copy_into(new_entry, staged_entry)
        copy_into(account, staged_account)
        copy_into(old_statistic, staged_old_bucket)

        logger.info(
            f"Transaction updated: id={new_entry.id}, version={new_entry.version}, "
            f"{old_kind.value} {old_entry.amount} on {old_entry.payday.isoformat()} -> "
            f"{new_kind.value} {amount} on {new_entry.payday.isoformat()}"
        )

        return new_bucket

    # =========================================================================
    # 삭제
    # =========================================================================

    async def delete(
        self,
        entry: LedgerEntry,
        account: Account,
        statistic: Statistic,
    ) -> None:
        """원장 항목 삭제

        1. 항목 삭제 (ID + 소유자 일치)
        2. 계좌 누적 합계에서 금액 차감 (CAS)
        3. 버킷에서 금액 차감 (CAS, 0이 되어도 버킷 유지)

        Raises:
            ValueError: 계좌/버킷이 항목과 맞지 않는 경우
            RecordNotFoundError: 삭제 대상 없음
            EditConflictError: 버전 충돌
            StorageFailureError: 저장소 오류
        """
        _check_account(entry, account)
        _check_bucket(statistic, entry.account_id, entry.payday)

        staged_account = replace(account)
        staged_bucket = replace(statistic)

        async def work(uow: UnitOfWork) -> None:
            await uow.transactions.delete(entry.id, entry.user_id)

            staged_account.add(entry.kind, -entry.amount)
            await uow.accounts.update(staged_account)

            staged_bucket.add(entry.kind, -entry.amount)
            await uow.statistics.update(staged_bucket)

        await self._run("delete_transaction", work)

        copy_into(account, staged_account)
        copy_into(statistic, staged_bucket)

        logger.info(
            f"Transaction deleted: id={entry.id}, account={entry.account_id}, "
            f"{entry.kind.value} {entry.amount} on {entry.payday.isoformat()}"
        )

    # =========================================================================
    # 내부
    # =========================================================================

    async def _run(
        self,
        operation: str,
        work: Callable[[UnitOfWork], Awaitable[T]],
    ) -> T:
        try:
            return await run_unit_of_work(
                operation,
                work,
                db_path=self.db_path,
                busy_timeout_ms=self.busy_timeout_ms,
                timeout_sec=self.tx_timeout_sec,
            )
        except EditConflictError as e:
            logger.warning(f"{operation} 버전 충돌 - 롤백: {e}")
            raise
        except RecordNotFoundError as e:
            logger.warning(f"{operation} 대상 없음 - 롤백: {e}")
            raise


async def _add_to_bucket(
    uow: UnitOfWork,
    bucket: Statistic | None,
    account_id: int,
    day: date,
    kind: EntryKind,
    amount: Decimal,
) -> Statistic:
    """버킷 찾기-또는-생성 후 금액 가산

    bucket이 None이면 (account_id, day) 버킷을 새로 만들어 저장,
    아니면 기존 버킷에 가산 후 CAS 갱신.
    """
    if bucket is None:
        bucket = Statistic(account_id=account_id, date=day)
        bucket.add(kind, amount)
        await uow.statistics.insert(bucket)
    else:
        bucket.add(kind, amount)
        await uow.statistics.update(bucket)
    return bucket


def _check_account(entry: LedgerEntry, account: Account) -> None:
    if entry.account_id != account.id:
        raise ValueError(
            f"account mismatch: entry.account_id={entry.account_id}, account.id={account.id}"
        )


def _check_bucket(statistic: Statistic, account_id: int, day: date) -> None:
    if (statistic.account_id, statistic.date) != (account_id, day):
        raise ValueError(
            f"statistic bucket mismatch: got {statistic.key}, "
            f"expected {(account_id, day.isoformat())}"
        )
