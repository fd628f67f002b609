from __future__ import annotations

import pytest
from flask.testing import FlaskClient

from yield_projection.app import create_app
from yield_projection.settings import EngineSettings


@pytest.fixture()
def settings() -> EngineSettings:
    return EngineSettings()


@pytest.fixture()
def client(settings: EngineSettings) -> FlaskClient:
    app = create_app(settings)
    with app.test_client() as test_client:
        yield test_client
