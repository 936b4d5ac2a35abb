import pytest

from oai_samples import scenario_pages

ENV_VARS = (
    'OAI_BASE_URL', 'OAI_REQUEST_INTERVAL', 'OAI_REQUEST_TIMEOUT',
    'OAI_MAX_PAGES', 'OAI_OUTPUT_DIR',
)


@pytest.fixture
def pages():
    return scenario_pages()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove harvester settings from the environment for the duration of a test"""
    for name in ENV_VARS:
        # setenv first so monkeypatch also undoes values loaded from a dotenv file
        monkeypatch.setenv(name, '')
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def sleeps(monkeypatch):
    """Record harvester pauses instead of sleeping"""
    calls = []
    monkeypatch.setattr('oai.harvester.time.sleep', lambda seconds: calls.append(seconds))
    return calls
