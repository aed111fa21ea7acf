import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from courtside.core.config import Settings
from courtside.main import create_app


@pytest.fixture
def settings():
    # Keine .env-Datei einlesen, Tests sollen reproduzierbar sein
    return Settings(_env_file=None, APP_ENV="test")


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def fake_application():
    """Stellt eine telegram.ext.Application ohne Netzwerk nach."""
    application = MagicMock()
    application.initialize = AsyncMock()
    application.start = AsyncMock()
    application.stop = AsyncMock()
    application.shutdown = AsyncMock()
    application.running = True
    application.bot.set_my_commands = AsyncMock()
    application.bot.set_webhook = AsyncMock()
    application.updater.start_polling = AsyncMock()
    application.updater.stop = AsyncMock()
    application.updater.running = True
    return application
