from __future__ import annotations

from pathlib import Path

import pytest

from restsdk.settings import CONFIG_ENV_VAR, DispatcherSettings, build_dispatcher, load_config


def _write_config(path: Path, body: str) -> Path:
    path.write_text(body, encoding="utf-8")
    return path


def test_load_config_reads_dispatcher_section(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "config.toml",
        """
[dispatcher]
host = "http://api.test"
timeout = 2.5

[dispatcher.headers]
Accept = "application/json"
X-Retries = 0
""",
    )

    settings = load_config(path)

    assert settings == DispatcherSettings(
        host="http://api.test",
        timeout=2.5,
        default_headers={"Accept": "application/json", "X-Retries": "0"},
    )


def test_load_config_uses_env_var(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = _write_config(tmp_path / "env.toml", '[dispatcher]\nhost = "http://env.test"\n')
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    settings = load_config()

    assert settings.host == "http://env.test"
    assert settings.timeout == 10.0
    assert settings.default_headers == {}


def test_zero_timeout_disables_limit(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path / "config.toml", '[dispatcher]\nhost = "http://api.test"\ntimeout = 0\n'
    )
    assert load_config(path).timeout is None


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.toml")


def test_missing_host(tmp_path: Path) -> None:
    path = _write_config(tmp_path / "config.toml", "[dispatcher]\ntimeout = 1\n")
    with pytest.raises(ValueError, match="host"):
        load_config(path)


def test_build_dispatcher_applies_settings() -> None:
    settings = DispatcherSettings(host="http://api.test", timeout=3, default_headers={"A": "1"})

    with build_dispatcher(settings) as dispatcher:
        assert dispatcher.host == "http://api.test"
        assert dispatcher.timeout == 3
        assert dispatcher.default_headers == {"A": "1"}
