"""
원장 프로세스 로깅 설정

init_db / check_ledger 스크립트와 TransactionCoordinator를 띄우는 애플리케이션이
같은 형식으로 로그를 남기도록 루트 로거를 구성한다.
- 콘솔: settings.yaml의 logging.level
- 파일: logs/<프로세스>.log (매일 자정 롤링)

코디네이터는 커밋된 변경을 INFO, 충돌/대상 없음 롤백을 WARNING으로 남기고
정합성 검사기는 불일치 하나마다 WARNING을 남긴다.

사용법:
    from core.logging import setup_ledger_logging
    setup_ledger_logging("check_ledger", settings)
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from core.config.loader import Settings
from core.constants import Paths


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_BACKUP_COUNT = 7  # 최대 7일치 파일 유지

# aiosqlite는 쿼리마다 executing/completed 로그를 남김
NOISY_LOGGERS = [
    "aiosqlite",
    "asyncio",
]


def setup_logging(
    process_name: str,
    console_level: int = logging.INFO,
    file_level: int = logging.INFO,
    log_dir: Path | None = None,
) -> logging.Logger:
    """루트 로거에 콘솔 + 일별 파일 핸들러 설정

    다시 호출하면 기존 핸들러를 닫고 교체한다.

    Args:
        process_name: 로그 파일 이름 ("init_db", "check_ledger" 등)
        console_level: 콘솔 로그 레벨
        file_level: 파일 로그 레벨
        log_dir: 로그 디렉토리 (None이면 Paths.LOGS_DIR)

    Returns:
        설정된 루트 Logger
    """
    if log_dir is None:
        log_dir = Paths.LOGS_DIR

    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"{process_name}.log"

    root_logger = logging.getLogger()
    root_logger.setLevel(min(console_level, file_level))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    file_handler = TimedRotatingFileHandler(
        filename=log_file,
        when="midnight",
        interval=1,
        backupCount=LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"  # check_ledger.log.2024-01-05
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    root_logger.info(
        f"로깅 초기화 완료: {process_name} "
        f"(콘솔 {logging.getLevelName(console_level)}, 파일 {log_file})"
    )

    return root_logger


def setup_ledger_logging(
    process_name: str,
    settings: Settings,
    log_dir: Path | None = None,
) -> logging.Logger:
    """settings.yaml의 logging.level로 로깅 설정

    파일에는 최소 INFO까지 남겨 콘솔 레벨을 올려도 변경 이력은 유지된다.
    """
    level = parse_level(settings.log_level)
    return setup_logging(
        process_name,
        console_level=level,
        file_level=min(level, logging.INFO),
        log_dir=log_dir,
    )


def parse_level(level_name: str) -> int:
    """레벨 이름을 logging 레벨 값으로 변환

    알 수 없는 이름이면 INFO.
    """
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO
