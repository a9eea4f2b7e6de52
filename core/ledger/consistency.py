"""
원장 정합성 검사

원장(transactions)에서 집계를 다시 계산해 계좌 누적 합계와
일자 버킷이 일치하는지 확인한다. 읽기 전용이며 복구는 하지 않는다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from core.ledger.account_store import AccountStore
from core.ledger.models import ZERO
from core.ledger.statistic_store import StatisticStore
from core.ledger.store import LedgerStore
from core.types import DriftKind, EntryKind

if TYPE_CHECKING:
    from adapters.db.sqlite_adapter import SQLiteAdapter

logger = logging.getLogger(__name__)


@dataclass
class DriftInfo:
    """불일치 정보"""
    kind: DriftKind
    account_id: int
    date: date | None  # statistic 버킷인 경우만
    expected: dict[str, str]  # 원장에서 재계산한 값
    actual: dict[str, str]  # 저장된 집계 값
    description: str


def _figures(income: Decimal, expense: Decimal) -> dict[str, str]:
    return {EntryKind.INCOME.value: str(income), EntryKind.EXPENSE.value: str(expense)}


class ConsistencyChecker:
    """원장 ↔ 집계 정합성 검사기

    Args:
        db: SQLite 어댑터 (읽기 전용 연결이면 충분)
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db
        self.transactions = LedgerStore(db)
        self.accounts = AccountStore(db)
        self.statistics = StatisticStore(db)

    async def check_account(self, account_id: int) -> list[DriftInfo]:
        """계좌 하나 검사

        1. 계좌 누적 합계 == 원장 종류별 합계
        2. 모든 버킷 earning/spending == 해당 일자 원장 종류별 합계
        3. 원장 항목이 있는데 버킷이 없는 일자

        모든 조회는 하나의 읽기 스냅샷 안에서 수행 (검사 중 커밋된 변경은 보지 않음).

        Raises:
            RecordNotFoundError: 계좌가 없는 경우
        """
        async with self.db.snapshot():
            account = await self.accounts.get(account_id)
            totals = await self.transactions.sum_by_kind(account_id)
            daily = await self.transactions.daily_sums(account_id)
            buckets = await self.statistics.list_all(account_id)

        drifts: list[DriftInfo] = []
        expected_income = totals[EntryKind.INCOME]
        expected_expense = totals[EntryKind.EXPENSE]

        if (account.total_income, account.total_expense) != (
            expected_income,
            expected_expense,
        ):
            drifts.append(
                DriftInfo(
                    kind=DriftKind.ACCOUNT,
                    account_id=account_id,
                    date=None,
                    expected=_figures(expected_income, expected_expense),
                    actual=_figures(account.total_income, account.total_expense),
                    description=(
                        f"Account totals mismatch: expected income={expected_income}, "
                        f"expense={expected_expense}, actual income={account.total_income}, "
                        f"expense={account.total_expense}"
                    ),
                )
            )

        seen: set[date] = set()

        for bucket in buckets:
            seen.add(bucket.date)
            sums = daily.get(bucket.date, {})
            earning = sums.get(EntryKind.INCOME, ZERO)
            spending = sums.get(EntryKind.EXPENSE, ZERO)

            if (bucket.earning, bucket.spending) != (earning, spending):
                drifts.append(
                    DriftInfo(
                        kind=DriftKind.STATISTIC,
                        account_id=account_id,
                        date=bucket.date,
                        expected=_figures(earning, spending),
                        actual=_figures(bucket.earning, bucket.spending),
                        description=(
                            f"Statistic mismatch on {bucket.date.isoformat()}: "
                            f"expected earning={earning}, spending={spending}, "
                            f"actual earning={bucket.earning}, spending={bucket.spending}"
                        ),
                    )
                )

        # 원장 항목은 있는데 버킷이 없는 일자
        for day in sorted(set(daily) - seen):
            sums = daily[day]
            drifts.append(
                DriftInfo(
                    kind=DriftKind.STATISTIC,
                    account_id=account_id,
                    date=day,
                    expected=_figures(sums[EntryKind.INCOME], sums[EntryKind.EXPENSE]),
                    actual={},
                    description=f"Statistic bucket missing on {day.isoformat()}",
                )
            )

        for drift in drifts:
            logger.warning(f"Drift detected: {drift.description} (account={account_id})")

        return drifts

    async def check_all(self) -> dict[int, list[DriftInfo]]:
        """전체 계좌 검사

        Returns:
            불일치가 있는 계좌 ID → DriftInfo 목록 (일치하면 포함하지 않음)
        """
        report: dict[int, list[DriftInfo]] = {}

        account_ids = await self.accounts.list_ids()
        for account_id in account_ids:
            drifts = await self.check_account(account_id)
            if drifts:
                report[account_id] = drifts

        logger.info(
            f"Consistency check done: {len(account_ids)} accounts, "
            f"{len(report)} with drift"
        )
        return report
