from __future__ import annotations

from dataclasses import dataclass
import os

from .utils import parse_bool

MAX_SHOWN_COUNT = 4
SHOW_TIP_DELAY_MS = 200
LAST_UPDATE_THRESHOLD_HOURS = 24

URLBAR_PROVIDER_NAME = "tips"
TELEMETRY_SCALARS_NAME = "urlbarTipsExperiment"
TELEMETRY_SCALARS_SHOWN_COUNT_NAME = f"{TELEMETRY_SCALARS_NAME}.tipShownCount"
STORAGE_KEY_SHOWN_COUNT = "tipsShownCount"


@dataclass(frozen=True)
class Config:
    sqlite_path: str
    log_level: str
    study_active: bool
    study_branch: str
    temporary_install: bool
    max_shown_count: int = MAX_SHOWN_COUNT
    show_tip_delay_sec: float = SHOW_TIP_DELAY_MS / 1000.0
    last_update_threshold_sec: int = LAST_UPDATE_THRESHOLD_HOURS * 3600
    provider_name: str = URLBAR_PROVIDER_NAME
    storage_key: str = STORAGE_KEY_SHOWN_COUNT


def load_config() -> Config:
    db_path = os.getenv("DB_PATH", "").strip()
    if not db_path:
        db_path = "./data/urlbar_tips.db"
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    study_active = parse_bool(os.getenv("STUDY_ACTIVE", "false"), False)
    study_branch = os.getenv("STUDY_BRANCH", "").strip().lower()
    temporary_install = parse_bool(os.getenv("TEMPORARY_INSTALL", "false"), False)

    max_shown_count = max(0, int(os.getenv("MAX_SHOWN_COUNT", str(MAX_SHOWN_COUNT))))
    show_tip_delay_ms = max(0, int(os.getenv("SHOW_TIP_DELAY_MS", str(SHOW_TIP_DELAY_MS))))
    last_update_threshold_sec = (
        int(os.getenv("LAST_UPDATE_THRESHOLD_HOURS", str(LAST_UPDATE_THRESHOLD_HOURS))) * 3600
    )

    return Config(
        sqlite_path=db_path,
        log_level=log_level,
        study_active=study_active,
        study_branch=study_branch,
        temporary_install=temporary_install,
        max_shown_count=max_shown_count,
        show_tip_delay_sec=show_tip_delay_ms / 1000.0,
        last_update_threshold_sec=last_update_threshold_sec,
    )
