import pytest

from forecast import create_app
from forecast.config import Config


class TestConfig(Config):
    TESTING = True
    LOG_LEVEL = 'WARNING'
    PROJECTION_START_YEAR = 2025
    YEARS_TO_PROJECT = 5


@pytest.fixture
def app():
    return create_app(TestConfig)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_service():
    """Builds a persisted-style service dict, as the UI stores it."""
    def _make(**overrides):
        service = {
            "id": 1,
            "name": "Site vitrine",
            "price": 1000,
            "quantity": 1,
            "frequency": "mois",
            "params": {"socialChargesRate": 25},
        }
        service.update(overrides)
        return service
    return _make


@pytest.fixture
def make_simulation(make_service):
    def _make(services=None, sim_id=1, is_test=False):
        return {
            "id": sim_id,
            "name": f"Simulation {sim_id}",
            "isTest": is_test,
            "services": services if services is not None else [make_service()],
        }
    return _make
