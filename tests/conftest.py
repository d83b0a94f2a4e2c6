"""공통 테스트 fixture"""

import pytest

from src.core.config import settings
from src.models.address_models import AddressCandidate, AddressSearchResult
from src.models.geocoding_models import GeocodingProvider


@pytest.fixture(autouse=True)
def fast_debounce(monkeypatch):
    """debounce를 짧게 줄여 테스트 시간을 단축"""
    monkeypatch.setattr(settings, "ADDRESS_DEBOUNCE_SECONDS", 0.0)


@pytest.fixture
def paix_candidate() -> AddressCandidate:
    return AddressCandidate(
        display_label="10 Rue de la Paix, 75002 Paris",
        city="Paris",
        postal_code="75002",
        street_name="Rue de la Paix",
        house_number="10",
        coordinates=(2.3522, 48.8566),
    )


@pytest.fixture
def paix_result(paix_candidate) -> AddressSearchResult:
    return AddressSearchResult(provider=GeocodingProvider.BAN, candidates=[paix_candidate])


@pytest.fixture
def ban_payload() -> dict:
    """api-adresse.data.gouv.fr 응답 예시"""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [2.3522, 48.8566]},
                "properties": {
                    "label": "10 Rue de la Paix, 75002 Paris",
                    "score": 0.97,
                    "housenumber": "10",
                    "name": "10 Rue de la Paix",
                    "postcode": "75002",
                    "citycode": "75102",
                    "city": "Paris",
                    "context": "75, Paris, Île-de-France",
                    "type": "housenumber",
                    "street": "Rue de la Paix",
                },
            }
        ],
    }


@pytest.fixture
def nominatim_payload() -> list:
    """Nominatim addressdetails=1 응답 예시"""
    return [
        {
            "place_id": 123,
            "lat": "45.7640",
            "lon": "4.8357",
            "display_name": "3, Place Bellecour, Lyon, Métropole de Lyon, 69002, France",
            "address": {
                "house_number": "3",
                "road": "Place Bellecour",
                "town": "Lyon",
                "postcode": "69002",
                "country": "France",
            },
        }
    ]
