"""Shared test configuration for the lesson composer test-suite.

Every test runs against the packaged YAML defaults only: the user
configuration directory is redirected to an empty temporary folder and the
``ConfigManager`` singleton is reloaded per test.
"""

import logging
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lesson_composer.config import ConfigManager

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point user overrides at an empty folder and reload configuration."""
    user_dir = tmp_path / "user_config"
    user_dir.mkdir()
    monkeypatch.setenv("LESSON_CONFIG_DIR", str(user_dir))
    ConfigManager.reset()
    yield user_dir
    ConfigManager.reset()
