from urlbar_tips.config import load_config


def test_defaults(monkeypatch):
    for name in (
        "DB_PATH",
        "LOG_LEVEL",
        "STUDY_ACTIVE",
        "STUDY_BRANCH",
        "TEMPORARY_INSTALL",
        "MAX_SHOWN_COUNT",
        "SHOW_TIP_DELAY_MS",
        "LAST_UPDATE_THRESHOLD_HOURS",
    ):
        monkeypatch.delenv(name, raising=False)

    config = load_config()

    assert config.sqlite_path == "./data/urlbar_tips.db"
    assert config.log_level == "INFO"
    assert config.study_active is False
    assert config.max_shown_count == 4
    assert config.show_tip_delay_sec == 0.2
    assert config.last_update_threshold_sec == 24 * 3600
    assert config.provider_name == "tips"
    assert config.storage_key == "tipsShownCount"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DB_PATH", "/tmp/tips.db")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("STUDY_ACTIVE", "yes")
    monkeypatch.setenv("STUDY_BRANCH", " Treatment ")
    monkeypatch.setenv("SHOW_TIP_DELAY_MS", "0")
    monkeypatch.setenv("LAST_UPDATE_THRESHOLD_HOURS", "1")

    config = load_config()

    assert config.sqlite_path == "/tmp/tips.db"
    assert config.log_level == "DEBUG"
    assert config.study_active is True
    assert config.study_branch == "treatment"
    assert config.show_tip_delay_sec == 0
    assert config.last_update_threshold_sec == 3600
