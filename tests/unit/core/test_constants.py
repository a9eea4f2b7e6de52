"""
core/constants.py 테스트

모든 경로가 pathlib.Path 타입이고, 상수가 정상적으로 접근 가능한지 확인
"""

from pathlib import Path

from core.constants import (
    PROJECT_ROOT,
    Defaults,
    Paths,
    SortFields,
)


class TestProjectRoot:
    """PROJECT_ROOT 테스트"""

    def test_project_root_is_path(self) -> None:
        """PROJECT_ROOT가 Path 타입인지 확인"""
        assert isinstance(PROJECT_ROOT, Path)

    def test_project_root_is_absolute(self) -> None:
        """PROJECT_ROOT가 절대 경로인지 확인"""
        assert PROJECT_ROOT.is_absolute()

    def test_project_root_contains_core_directory(self) -> None:
        """PROJECT_ROOT에 core 디렉토리가 있는지 확인"""
        core_dir = PROJECT_ROOT / "core"
        assert core_dir.exists()


class TestDefaults:
    """Defaults 테스트"""

    def test_busy_timeout_shorter_than_tx_timeout(self) -> None:
        """잠금 대기 시간은 단위 작업 제한 시간보다 짧아야 함"""
        assert Defaults.BUSY_TIMEOUT_MS / 1000 < Defaults.TX_TIMEOUT_SEC

    def test_tx_timeout(self) -> None:
        """단위 작업 제한 시간 기본값"""
        assert Defaults.TX_TIMEOUT_SEC == 5.0

    def test_page_limits(self) -> None:
        """페이징 기본값이 상한 이내"""
        assert Defaults.PAGE >= 1
        assert 0 < Defaults.PAGE_LIMIT < Defaults.MAX_PAGE_LIMIT


class TestPaths:
    """Paths 테스트"""

    def test_all_paths_are_path_type(self) -> None:
        """모든 경로가 Path 타입"""
        for name in ("CONFIG_DIR", "DATA_DIR", "LOGS_DIR", "SETTINGS_FILE", "DB_FILE"):
            assert isinstance(getattr(Paths, name), Path), name

    def test_paths_under_project_root(self) -> None:
        """모든 경로가 프로젝트 루트 아래"""
        assert Paths.SETTINGS_FILE.parent == Paths.CONFIG_DIR
        assert Paths.DB_FILE.parent == Paths.DATA_DIR
        assert Paths.CONFIG_DIR.parent == PROJECT_ROOT


class TestSortFields:
    """SortFields 테스트"""

    def test_id_always_allowed(self) -> None:
        """id 정렬은 항상 허용"""
        assert "id" in SortFields.TRANSACTIONS
        assert "id" in SortFields.ACCOUNTS

    def test_transactions(self) -> None:
        """원장 항목 정렬 컬럼"""
        assert set(SortFields.TRANSACTIONS) == {"id", "title", "payday", "amount"}
