import pytest
from fastapi.testclient import TestClient

from app.core.config import settings
from app.main import app


@pytest.fixture
def client():
    # Entering the context runs the lifespan, so every test starts with an empty store
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def geo_headers():
    def _build(lat=None, lon=None, country=None, city=None):
        headers = {}
        if lat is not None:
            headers[settings.GEO_LATITUDE_HEADER] = lat
        if lon is not None:
            headers[settings.GEO_LONGITUDE_HEADER] = lon
        if country is not None:
            headers[settings.GEO_COUNTRY_HEADER] = country
        if city is not None:
            headers[settings.GEO_CITY_HEADER] = city
        return headers
    return _build
