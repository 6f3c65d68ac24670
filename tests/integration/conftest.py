"""
Integration test configuration
"""
import pytest
from fastapi.testclient import TestClient

from etherworld_auth.app.main import create_application


@pytest.fixture
def app(settings, clock, transport):
    return create_application(settings=settings, clock=clock, transport=transport)


@pytest.fixture
def client(app):
    """FastAPI test client running the application lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def otp_store(app):
    return app.state.otp_service.store
