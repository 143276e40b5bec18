from flashreview.application.config import AppConfig, resolve_config
from flashreview.application.factory import struggling_policy


def test_defaults(mock_home):
    config = AppConfig()

    assert config.default_session_limit == 20
    assert config.session_ttl_seconds == 3600
    assert config.struggling_consecutive_failures == 3
    assert config.database_url.startswith("sqlite+aiosqlite:///")
    assert str(mock_home) in config.database_url


def test_env_overrides(mock_home, monkeypatch):
    monkeypatch.setenv("FLASHREVIEW_PORT", "9000")
    monkeypatch.setenv("FLASHREVIEW_DEFAULT_SESSION_LIMIT", "0")

    config = AppConfig()

    assert config.port == 9000
    assert config.default_session_limit is None


def test_toml_file_is_read(mock_home, monkeypatch):
    (mock_home / ".flashreview.toml").write_text(
        'host = "0.0.0.0"\nport = 9100\nstruggling_recovery_streak = 2\n'
    )
    monkeypatch.setenv("FLASHREVIEW_PORT", "9200")

    config = AppConfig()

    assert config.host == "0.0.0.0"
    assert config.port == 9200  # env wins over the file
    assert struggling_policy(config).recovery_streak == 2


def test_resolve_config_ignores_none(mock_home):
    config = resolve_config({"port": None, "database_url": "sqlite+aiosqlite:///:memory:"})

    assert config.port == 8777
    assert config.database_url == "sqlite+aiosqlite:///:memory:"
