"""
설정 로더

settings.yaml 로드 및 DB/원장 설정 생성
"""

from dataclasses import dataclass
from pathlib import Path

import yaml

from core.constants import PROJECT_ROOT, Defaults, Paths


@dataclass(frozen=True)
class Settings:
    """애플리케이션 설정 (settings.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    db_path: Path
    busy_timeout_ms: int = Defaults.BUSY_TIMEOUT_MS
    tx_timeout_sec: float = Defaults.TX_TIMEOUT_SEC
    log_level: str = Defaults.LOG_LEVEL


class SettingsLoadError(Exception):
    """Settings 로드 실패 예외"""

    pass


def load_settings(path: Path | None = None) -> Settings:
    """settings.yaml 파일 로드

    database.path가 상대 경로면 PROJECT_ROOT 기준으로 해석.
    선택 항목이 없으면 Defaults 값 사용.

    Args:
        path: settings.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 인스턴스

    Raises:
        SettingsLoadError: 파일이 없거나 형식이 잘못된 경우
    """
    if path is None:
        path = Paths.SETTINGS_FILE

    if not path.exists():
        raise SettingsLoadError(f"settings.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise SettingsLoadError(f"settings.yaml 파싱 실패: {e}") from e

    if data is None:
        raise SettingsLoadError("settings.yaml이 비어 있습니다")

    if not isinstance(data, dict):
        raise SettingsLoadError("settings.yaml 최상위는 매핑이어야 합니다")

    database = data.get("database") or {}
    ledger = data.get("ledger") or {}
    logging_config = data.get("logging") or {}

    db_path_value = database.get("path")
    db_path = Path(db_path_value) if db_path_value else Paths.DB_FILE
    if not db_path.is_absolute():
        db_path = PROJECT_ROOT / db_path

    try:
        busy_timeout_ms = int(database.get("busy_timeout_ms", Defaults.BUSY_TIMEOUT_MS))
        tx_timeout_sec = float(ledger.get("tx_timeout_sec", Defaults.TX_TIMEOUT_SEC))
    except (TypeError, ValueError) as e:
        raise SettingsLoadError(f"settings.yaml 숫자 항목이 잘못되었습니다: {e}") from e

    if busy_timeout_ms < 0:
        raise SettingsLoadError(
            f"database.busy_timeout_ms는 0 이상이어야 합니다: {busy_timeout_ms}"
        )
    if tx_timeout_sec <= 0:
        raise SettingsLoadError(
            f"ledger.tx_timeout_sec는 0보다 커야 합니다: {tx_timeout_sec}"
        )

    log_level = str(logging_config.get("level", Defaults.LOG_LEVEL)).upper()

    return Settings(
        db_path=db_path,
        busy_timeout_ms=busy_timeout_ms,
        tx_timeout_sec=tx_timeout_sec,
        log_level=log_level,
    )

