"""
원장 도메인 모델

LedgerEntry (transactions 테이블), Account (accounts), Statistic (statistics).
금액은 모두 Decimal이며 DB에는 TEXT로 저장.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

from core.types import EntryKind

ZERO = Decimal("0")


def _parse_ts(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def encode_tags(tags: Iterable[str]) -> str:
    """태그 집합을 DB 저장용 JSON 배열로 변환 (정렬, 중복 제거)"""
    return json.dumps(sorted(set(tags)), ensure_ascii=False)


@dataclass
class LedgerEntry:
    """원장 항목 (수입/지출 1건)

    Attributes:
        user_id: 소유 사용자 ID
        account_id: 소속 계좌 ID
        kind: 수입/지출
        title: 제목
        amount: 금액 (항상 양수)
        payday: 거래일
        description: 설명
        tags: 태그 집합 (순서 무관)
        id: DB 할당 ID (insert 전에는 None)
        created_at: 생성 시각 (UTC)
        version: 낙관적 락 버전 (insert 시 1)
    """

    user_id: int
    account_id: int
    kind: EntryKind
    title: str
    amount: Decimal
    payday: date
    description: str = ""
    tags: frozenset[str] = field(default_factory=frozenset)
    id: int | None = None
    created_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        self.kind = EntryKind(self.kind)
        self.amount = Decimal(str(self.amount))
        self.tags = frozenset(self.tags)

    @property
    def tags_json(self) -> str:
        """DB 저장용 태그 JSON (정렬된 배열)"""
        return encode_tags(self.tags)

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> LedgerEntry:
        """DB 행에서 생성 (TRANSACTION_COLUMNS 순서)"""
        return cls(
            id=row[0],
            user_id=row[1],
            account_id=row[2],
            kind=EntryKind(row[3]),
            title=row[4],
            description=row[5] or "",
            tags=frozenset(json.loads(row[6]) if row[6] else []),
            amount=Decimal(row[7]),
            payday=date.fromisoformat(row[8]),
            created_at=_parse_ts(row[9]),
            version=row[10],
        )


@dataclass
class Account:
    """계좌

    total_income / total_expense는 원장에서 파생되는 누적 합계.
    원장 변경의 부수 효과로만 갱신된다.
    """

    owner_id: int
    title: str
    currency: str
    description: str = ""
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    id: int | None = None
    created_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        self.total_income = Decimal(str(self.total_income))
        self.total_expense = Decimal(str(self.total_expense))

    def total_for(self, kind: EntryKind) -> Decimal:
        """종류별 누적 합계"""
        if kind is EntryKind.INCOME:
            return self.total_income
        return self.total_expense

    def add(self, kind: EntryKind, amount: Decimal) -> None:
        """종류에 해당하는 누적 합계에 금액 가산 (음수면 차감)"""
        if kind is EntryKind.INCOME:
            self.total_income += amount
        else:
            self.total_expense += amount

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> Account:
        """DB 행에서 생성 (ACCOUNT_COLUMNS 순서)"""
        return cls(
            id=row[0],
            owner_id=row[1],
            title=row[2],
            description=row[3] or "",
            total_income=Decimal(row[4]),
            total_expense=Decimal(row[5]),
            currency=row[6],
            created_at=_parse_ts(row[7]),
            version=row[8],
        )


@dataclass
class Statistic:
    """계좌별 일자 버킷

    (account_id, date) 복합 키. 해당 일자 첫 항목이 생길 때 만들어지고
    합계가 0이 되어도 삭제하지 않는다.
    """

    account_id: int
    date: date
    earning: Decimal = ZERO
    spending: Decimal = ZERO
    created_at: datetime | None = None
    version: int = 0

    def __post_init__(self) -> None:
        self.earning = Decimal(str(self.earning))
        self.spending = Decimal(str(self.spending))

    @property
    def key(self) -> tuple[int, str]:
        return (self.account_id, self.date.isoformat())

    def value_for(self, kind: EntryKind) -> Decimal:
        """종류별 버킷 값"""
        if kind is EntryKind.INCOME:
            return self.earning
        return self.spending

    def add(self, kind: EntryKind, amount: Decimal) -> None:
        """종류에 해당하는 필드에 금액 가산 (음수면 차감)"""
        if kind is EntryKind.INCOME:
            self.earning += amount
        else:
            self.spending += amount

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> Statistic:
        """DB 행에서 생성 (STATISTIC_COLUMNS 순서)"""
        return cls(
            account_id=row[0],
            date=date.fromisoformat(row[1]),
            earning=Decimal(row[2]),
            spending=Decimal(row[3]),
            created_at=_parse_ts(row[4]),
            version=row[5],
        )


def copy_into(target: Any, source: Any) -> None:
    """source의 모든 필드 값을 target에 복사 (같은 dataclass 타입)

    커밋 성공 후 스테이징 사본의 값을 호출자 객체에 반영할 때 사용.
    """
    for f in fields(source):
        setattr(target, f.name, getattr(source, f.name))
