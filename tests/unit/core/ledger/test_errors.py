"""
원장 예외 테스트
"""

import pytest

from core.ledger.errors import (
    EditConflictError,
    LedgerError,
    RecordNotFoundError,
    StorageFailureError,
    TransactionTimeoutError,
)


class TestErrorHierarchy:
    """예외 계층"""

    @pytest.mark.parametrize(
        "error",
        [
            RecordNotFoundError("transaction", 1),
            EditConflictError("account", 1, 3),
            StorageFailureError("disk full"),
            TransactionTimeoutError("update_transaction", 5.0),
        ],
    )
    def test_all_are_ledger_errors(self, error: LedgerError) -> None:
        """모두 LedgerError로 처리 가능"""
        assert isinstance(error, LedgerError)

    def test_timeout_is_storage_failure(self) -> None:
        """제한 시간 초과는 저장소 오류의 한 종류"""
        assert issubclass(TransactionTimeoutError, StorageFailureError)

    def test_conflict_is_not_storage_failure(self) -> None:
        """버전 충돌은 저장소 오류와 구분"""
        assert not issubclass(EditConflictError, StorageFailureError)
        assert not issubclass(RecordNotFoundError, StorageFailureError)


class TestErrorAttributes:
    """예외 속성/메시지"""

    def test_not_found(self) -> None:
        error = RecordNotFoundError("statistic", (1, "2024-01-05"))

        assert error.entity == "statistic"
        assert error.key == (1, "2024-01-05")
        assert "statistic not found" in str(error)

    def test_edit_conflict(self) -> None:
        error = EditConflictError("account", 7, 2)

        assert error.entity == "account"
        assert error.key == 7
        assert error.expected_version == 2
        assert "expected version 2" in str(error)

    def test_timeout(self) -> None:
        error = TransactionTimeoutError("create_transaction", 0.5)

        assert error.operation == "create_transaction"
        assert error.timeout_sec == 0.5
        assert "timed out after 0.5s" in str(error)
