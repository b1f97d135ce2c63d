import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def global_config(tmp_path, monkeypatch):
    """Point the global config file at a throwaway location."""
    from writeonly.app import config

    path = tmp_path / "writeonly_config.json"
    monkeypatch.setattr(config, "GLOBAL_CONFIG", path)
    return path
