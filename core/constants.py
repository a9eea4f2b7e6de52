"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class Defaults:
    """기본값 상수

    settings.yaml에 값이 없을 때 사용.
    """

    # 트랜잭션 단위 작업 제한 시간 (초)
    TX_TIMEOUT_SEC: float = 5.0

    # SQLite 잠금 대기 시간 (밀리초, TX_TIMEOUT_SEC보다 짧아야 함)
    BUSY_TIMEOUT_MS: int = 3000

    LOG_LEVEL: str = "INFO"

    # 목록 조회 페이징
    PAGE: int = 1
    PAGE_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 100


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    DB_FILE: Path = DATA_DIR / "ledger.db"


class SortFields:
    """목록 조회 시 허용되는 정렬 컬럼 (화이트리스트)

    '-' 접두사는 내림차순.
    """

    TRANSACTIONS: tuple[str, ...] = ("id", "title", "payday", "amount")
    ACCOUNTS: tuple[str, ...] = ("id", "title", "currency", "created_at")
