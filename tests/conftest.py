import sys
import os

import pytest

# Add the 'src' directory to the Python path
# This allows pytest to find modules in the 'thenutils' package
added_path = os.path.abspath(os.path.join(os.path.dirname(__file__), '../src'))
sys.path.insert(0, added_path)

from thenutils.utils import config_manager  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(tmp_path_factory, monkeypatch):
    """Every test starts from default configuration, away from the real home dir."""
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))
    for env_var in config_manager.EnvironmentVariableMapper.ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)
    config_manager.reset_config()
    yield
    config_manager.reset_config()
