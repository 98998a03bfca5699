import pytest


@pytest.fixture(autouse=True)
def _isolated_options_env(monkeypatch):
    monkeypatch.delenv("OPTIONS_MOCK_DIR", raising=False)
