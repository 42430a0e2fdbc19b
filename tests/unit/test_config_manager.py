import time
from pathlib import Path

import pytest

from thenutils.utils import config_manager
from thenutils.utils.config_manager import (
    ConfigurationFileError,
    ConfigurationValidationError,
    get_config,
    get_config_manager,
    reload_config,
)


def test_defaults_when_nothing_is_configured():
    cfg = get_config()

    assert cfg.logging.level == "INFO"
    assert cfg.logging.enable_file_logging is False
    assert cfg.filesystem.copy_chunk_size == 64 * 1024
    assert cfg.process.default_timeout is None
    assert cfg.features.filesystem and cfg.features.process


def test_global_file_is_loaded(tmp_path, monkeypatch):
    home = tmp_path / "home"
    (home / ".thenutils").mkdir(parents=True)
    (home / ".thenutils" / "config.yaml").write_text(
        "logging:\n  level: DEBUG\nfilesystem:\n  copy_chunk_size: 4096\n"
    )
    monkeypatch.setenv("HOME", str(home))

    cfg = get_config()

    assert cfg.logging.level == "DEBUG"
    assert cfg.filesystem.copy_chunk_size == 4096


def test_project_file_overrides_global(tmp_path, monkeypatch):
    home = tmp_path / "home"
    (home / ".thenutils").mkdir(parents=True)
    (home / ".thenutils" / "config.yaml").write_text("process:\n  default_encoding: latin-1\n  shell: /bin/sh\n")
    monkeypatch.setenv("HOME", str(home))
    project = tmp_path / "project"
    (project / ".thenutils").mkdir(parents=True)
    (project / ".thenutils" / "config.yaml").write_text("process:\n  default_encoding: ascii\n")

    get_config_manager().set_project_root(project)
    cfg = get_config()

    assert cfg.process.default_encoding == "ascii"
    assert cfg.process.shell == "/bin/sh"


def test_environment_overrides_files(tmp_path, monkeypatch):
    project = tmp_path / "project"
    (project / ".thenutils").mkdir(parents=True)
    (project / ".thenutils" / "config.yaml").write_text("logging:\n  level: WARNING\n")
    monkeypatch.setenv("THENUTILS_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("THENUTILS_LOG_FORMAT", "json")
    monkeypatch.setenv("THENUTILS_PROCESS_TIMEOUT", "2.5")
    monkeypatch.setenv("THENUTILS_ENABLE_PROCESS", "false")

    get_config_manager().set_project_root(project)
    cfg = get_config()

    assert cfg.logging.level == "ERROR"
    assert cfg.logging.enable_structured_logging is True
    assert cfg.process.default_timeout == 2.5
    assert cfg.features.process is False


def test_invalid_yaml_raises_file_error(tmp_path, monkeypatch):
    home = tmp_path / "home"
    (home / ".thenutils").mkdir(parents=True)
    (home / ".thenutils" / "config.yaml").write_text("logging: [unclosed\n")
    monkeypatch.setenv("HOME", str(home))

    with pytest.raises(ConfigurationFileError):
        get_config()


def test_unknown_keys_are_rejected(tmp_path, monkeypatch):
    home = tmp_path / "home"
    (home / ".thenutils").mkdir(parents=True)
    (home / ".thenutils" / "config.yaml").write_text("filesystem:\n  colour: blue\n")
    monkeypatch.setenv("HOME", str(home))

    with pytest.raises(ConfigurationValidationError):
        get_config()


def test_update_configuration_validates():
    manager = get_config_manager()

    manager.update_configuration({"filesystem": {"copy_chunk_size": 10}})
    assert get_config().filesystem.copy_chunk_size == 10

    with pytest.raises(ConfigurationValidationError):
        manager.update_configuration({"filesystem": {"copy_chunk_size": 0}})
    assert get_config().filesystem.copy_chunk_size == 10


def test_manager_is_a_singleton_until_reset():
    first = get_config_manager()
    assert get_config_manager() is first

    config_manager.reset_config()

    assert get_config_manager() is not first


def test_merge_configurations_is_deep():
    merged = config_manager.ConfigurationLoader.merge_configurations(
        {"logging": {"level": "INFO", "log_directory": "logs"}},
        {"logging": {"level": "DEBUG"}},
    )

    assert merged == {"logging": {"level": "DEBUG", "log_directory": "logs"}}


def test_missing_file_loads_as_empty(tmp_path: Path):
    assert config_manager.ConfigurationLoader.load_yaml_file(tmp_path / "absent.yaml") == {}


def test_runtime_overrides_survive_cache_expiry(monkeypatch):
    manager = get_config_manager()
    manager.update_configuration({"filesystem": {"copy_chunk_size": 7}})

    later = time.time() + manager._cache_ttl + 1
    monkeypatch.setattr(config_manager.time, "time", lambda: later)

    assert get_config().filesystem.copy_chunk_size == 7
    assert reload_config().filesystem.copy_chunk_size == 7


def test_runtime_overrides_win_over_environment(monkeypatch):
    monkeypatch.setenv("THENUTILS_COPY_CHUNK_SIZE", "4096")
    manager = get_config_manager()
    manager.update_configuration({"filesystem": {"copy_chunk_size": 9}})

    assert reload_config().filesystem.copy_chunk_size == 9


def test_reset_drops_runtime_overrides():
    get_config_manager().update_configuration({"filesystem": {"copy_chunk_size": 7}})

    config_manager.reset_config()

    assert get_config().filesystem.copy_chunk_size == 64 * 1024
