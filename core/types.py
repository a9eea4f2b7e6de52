"""
타입 정의 모듈

Enum 등 핵심 타입 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class EntryKind(str, Enum):
    """원장 항목 종류 (수입 / 지출)

    금액은 항상 양수이며 방향은 종류로만 표현.
    """

    INCOME = "income"
    EXPENSE = "expense"


class DriftKind(str, Enum):
    """정합성 검사에서 불일치가 발견된 집계 종류"""

    ACCOUNT = "account"
    STATISTIC = "statistic"
