"""Tests for configuration loading and precedence."""

import pytest

from vcstream.config.settings import ConfigurationError, Settings


@pytest.mark.unit
def test_defaults() -> None:
    settings = Settings()

    assert settings.logging.level == "INFO"
    assert settings.logging.format == "auto"
    assert settings.http.max_connections == 100
    assert settings.http.http2 is False


@pytest.mark.unit
def test_toml_values_are_applied(tmp_path) -> None:
    cfg = tmp_path / "vcstream.toml"
    cfg.write_text(
        """
    [logging]
    level = "debug"

    [http]
    max_connections = 5
    """,
        encoding="utf-8",
    )

    settings = Settings.from_config(config_path=cfg)

    assert settings.logging.level == "DEBUG"
    assert settings.http.max_connections == 5


@pytest.mark.unit
def test_env_overrides_toml(tmp_path, monkeypatch) -> None:
    cfg = tmp_path / "vcstream.toml"
    cfg.write_text(
        """
    [http]
    max_connections = 5
    """,
        encoding="utf-8",
    )

    monkeypatch.setenv("HTTP__MAX_CONNECTIONS", "9")

    settings = Settings.from_config(config_path=cfg)
    assert settings.http.max_connections == 9  # env > toml


@pytest.mark.unit
def test_overrides_beat_env(monkeypatch) -> None:
    monkeypatch.setenv("LOGGING__LEVEL", "INFO")

    settings = Settings.from_config(config_path=None, logging={"level": "warning"})
    assert settings.logging.level == "WARNING"  # overrides > env


@pytest.mark.unit
def test_config_path_from_environment(tmp_path, monkeypatch) -> None:
    cfg = tmp_path / "custom.toml"
    cfg.write_text('[logging]\nformat = "json"\n', encoding="utf-8")
    monkeypatch.setenv("VCSTREAM_CONFIG", str(cfg))

    settings = Settings.from_config()
    assert settings.logging.format == "json"


@pytest.mark.unit
def test_invalid_toml_raises(tmp_path) -> None:
    cfg = tmp_path / "broken.toml"
    cfg.write_text("[logging\nlevel = ", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid TOML syntax"):
        Settings.from_config(config_path=cfg)


@pytest.mark.unit
def test_unsupported_format_raises(tmp_path) -> None:
    cfg = tmp_path / "settings.yaml"
    cfg.write_text("logging: {}", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Unsupported config file format"):
        Settings.from_config(config_path=cfg)


@pytest.mark.unit
def test_invalid_log_level_rejected() -> None:
    with pytest.raises(ValueError, match="Invalid log level"):
        Settings(logging={"level": "LOUD"})


@pytest.mark.unit
@pytest.mark.parametrize(
    ("fmt", "is_tty", "expected"),
    [("auto", True, False), ("auto", False, True), ("json", True, True), ("console", False, False)],
)
def test_log_format_resolution(fmt: str, is_tty: bool, expected: bool) -> None:
    settings = Settings(logging={"format": fmt})

    assert settings.logging.use_json(is_tty) is expected


@pytest.mark.unit
def test_unknown_toml_key_raises_configuration_error(tmp_path) -> None:
    cfg = tmp_path / "vcstream.toml"
    cfg.write_text("[http]\nmax_connection = 5\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="http.max_connection"):
        Settings.from_config(config_path=cfg)


@pytest.mark.unit
def test_invalid_toml_value_raises_configuration_error(tmp_path) -> None:
    cfg = tmp_path / "vcstream.toml"
    cfg.write_text('[http]\nmax_connections = "many"\n', encoding="utf-8")

    with pytest.raises(ConfigurationError, match="http.max_connections"):
        Settings.from_config(config_path=cfg)


@pytest.mark.unit
def test_invalid_override_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="logging.level"):
        Settings.from_config(config_path=None, logging={"level": "LOUD"})
