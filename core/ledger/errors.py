"""
원장 예외 정의

호출자는 RecordNotFoundError / EditConflictError를 구분해 처리하고,
그 외 저장소 오류는 모두 StorageFailureError로 받는다.
"""

from typing import Any


class LedgerError(Exception):
    """원장 예외 기본 클래스"""

    pass


class RecordNotFoundError(LedgerError):
    """조회/삭제 대상 레코드 없음

    Attributes:
        entity: 엔티티 이름 (transaction, account, statistic)
        key: 조회 키
    """

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class EditConflictError(LedgerError):
    """버전 비교(CAS) 실패 - 읽은 이후 다른 작업이 레코드를 변경함

    Attributes:
        entity: 엔티티 이름
        key: 레코드 키
        expected_version: 호출자가 보유한 버전
    """

    def __init__(self, entity: str, key: Any, expected_version: int | None = None):
        self.entity = entity
        self.key = key
        self.expected_version = expected_version
        super().__init__(
            f"{entity} edit conflict: {key} (expected version {expected_version})"
        )


class StorageFailureError(LedgerError):
    """저장소 오류 (연결, 제약 조건 위반 등 버전 충돌 외 모든 실패)"""

    pass


class TransactionTimeoutError(StorageFailureError):
    """단위 작업이 제한 시간을 초과함"""

    def __init__(self, operation: str, timeout_sec: float):
        self.operation = operation
        self.timeout_sec = timeout_sec
        super().__init__(f"{operation} timed out after {timeout_sec}s")
