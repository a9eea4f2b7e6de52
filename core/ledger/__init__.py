"""
가계부 원장 시스템

원장 항목(수입/지출)과 파생 집계(계좌 누적 합계, 계좌별 일자 버킷)를
낙관적 락으로 일관되게 유지한다.

사용 예시:
```python
from core.ledger import TransactionCoordinator, LedgerEntry, open_unit_of_work

coordinator = TransactionCoordinator.from_settings(settings)

async with open_unit_of_work(settings.db_path) as uow:
    account = await uow.accounts.get(account_id)
    bucket = await uow.statistics.find_by_date(account_id, payday)

entry = LedgerEntry(
    user_id=user_id,
    account_id=account_id,
    kind=EntryKind.EXPENSE,
    title="점심",
    amount=Decimal("12.50"),
    payday=payday,
)
bucket = await coordinator.create(entry, account, bucket)
```
"""

from core.ledger.account_store import AccountStore
from core.ledger.consistency import ConsistencyChecker, DriftInfo
from core.ledger.coordinator import TransactionCoordinator
from core.ledger.errors import (
    EditConflictError,
    LedgerError,
    RecordNotFoundError,
    StorageFailureError,
    TransactionTimeoutError,
)
from core.ledger.filters import Filters
from core.ledger.models import Account, LedgerEntry, Statistic
from core.ledger.statistic_store import StatisticStore
from core.ledger.store import LedgerStore
from core.ledger.unit_of_work import UnitOfWork, open_unit_of_work, run_unit_of_work

__all__ = [
    # 핵심 클래스
    "TransactionCoordinator",
    "ConsistencyChecker",
    "DriftInfo",
    # 저장소
    "LedgerStore",
    "AccountStore",
    "StatisticStore",
    "UnitOfWork",
    "open_unit_of_work",
    "run_unit_of_work",
    # 모델
    "LedgerEntry",
    "Account",
    "Statistic",
    "Filters",
    # 예외
    "LedgerError",
    "RecordNotFoundError",
    "EditConflictError",
    "StorageFailureError",
    "TransactionTimeoutError",
]
