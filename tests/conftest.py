import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from jczaddons.app import settings as app_settings



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Every test sees built-in defaults unless it writes its own settings file."""
    settings_file = tmp_path / "jczaddons-settings.json5"
    monkeypatch.setenv(app_settings.SETTINGS_ENV_VAR, str(settings_file))
    app_settings.loadSettings.cache_clear()
    yield settings_file
    app_settings.loadSettings.cache_clear()
