"""
목록 조회 필터 (Pydantic)

페이지/개수/정렬 검증. 허용 정렬 컬럼은 각 저장소가 고정 화이트리스트로
갖고 있으며 SQL에는 화이트리스트에 있는 컬럼 이름만 들어간다.
"""

import re

from pydantic import BaseModel, Field, field_validator

from core.constants import Defaults

_SORT_PATTERN = re.compile(r"-?[a-z_]+")


class Filters(BaseModel):
    """페이징/정렬 필터

    sort는 컬럼 이름, '-' 접두사면 내림차순.
    컬럼 허용 여부는 order_by()에서 저장소의 화이트리스트로 확인.
    """

    page: int = Field(default=Defaults.PAGE, gt=0, description="페이지 번호 (1부터)")
    limit: int = Field(
        default=Defaults.PAGE_LIMIT,
        gt=0,
        lt=Defaults.MAX_PAGE_LIMIT,
        description="페이지당 개수",
    )
    sort: str = Field(default="id", description="정렬 키 (예: payday, -payday)")

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("sort")
    @classmethod
    def _check_sort(cls, value: str) -> str:
        if not _SORT_PATTERN.fullmatch(value):
            raise ValueError(f"invalid sort value: {value!r}")
        return value

    @property
    def sort_column(self) -> str:
        return self.sort.removeprefix("-")

    @property
    def sort_direction(self) -> str:
        if self.sort.startswith("-"):
            return "DESC"
        return "ASC"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def order_by(
        self,
        allowed: tuple[str, ...],
        expressions: dict[str, str] | None = None,
    ) -> str:
        """ORDER BY 절 (id 오름차순으로 동순위 정리)

        Args:
            allowed: 허용 정렬 컬럼 (저장소별 화이트리스트)
            expressions: 컬럼별 정렬 식 (예: TEXT로 저장된 금액은 CAST)

        Raises:
            ValueError: sort 컬럼이 allowed에 없는 경우
        """
        if self.sort_column not in allowed:
            raise ValueError(
                f"invalid sort value: {self.sort!r} (allowed: {', '.join(allowed)})"
            )
        if self.sort_column == "id":
            return f"id {self.sort_direction}"
        column = (expressions or {}).get(self.sort_column, self.sort_column)
        return f"{column} {self.sort_direction}, id ASC"
