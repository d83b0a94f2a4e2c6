"""주소 REST API 및 WebSocket 세션 테스트"""

from typing import AsyncGenerator, cast
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from fastapi import status
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from src.core.exceptions import ProviderUnavailableError
from src.main import app
from src.models.address_models import AddressSearchResult
from src.models.geocoding_models import CitySuggestion, GeocodingProvider
from src.services import geocoding_service
from src.services.geocoding_service import GeocodingResult


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app, client=cast(tuple[str, int], ("testserver", 80)))
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


class TestSearchEndpoint:
    @pytest.mark.asyncio
    async def test_short_query_is_idle_without_lookup(self, client):
        search = AsyncMock()
        with patch.object(geocoding_service, "search_with_fallback", search):
            response = await client.get("/api/address/search", params={"q": "10"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["state"] == "idle"
        assert response.json()["suggestions"] == []
        search.assert_not_called()

    @pytest.mark.asyncio
    async def test_returns_suggestions(self, client, paix_result):
        with patch.object(geocoding_service, "search_with_fallback", AsyncMock(return_value=paix_result)):
            response = await client.get("/api/address/search", params={"q": "10 Rue de la Paix"})

        body = response.json()
        assert response.status_code == status.HTTP_200_OK
        assert body["provider"] == "data.gouv.fr"
        assert body["no_results"] is False
        assert body["suggestions"][0]["coordinates"] == [2.3522, 48.8566]
        assert "X-Process-Time" in response.headers

    @pytest.mark.asyncio
    async def test_empty_secondary_result_is_no_results(self, client):
        empty = AddressSearchResult(provider=GeocodingProvider.NOMINATIM, candidates=[])
        with patch.object(geocoding_service, "search_with_fallback", AsyncMock(return_value=empty)):
            response = await client.get("/api/address/search", params={"q": "zzzz"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["no_results"] is True

    @pytest.mark.asyncio
    async def test_all_providers_down_is_503(self, client):
        search = AsyncMock(side_effect=ProviderUnavailableError("주소 검색 서비스를 일시적으로 사용할 수 없습니다"))
        with patch.object(geocoding_service, "search_with_fallback", search):
            response = await client.get("/api/address/search", params={"q": "10 Rue de la Paix"})

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["detail"]["manual_entry_available"] is True


class TestResolveAndManualEndpoints:
    @pytest.mark.asyncio
    async def test_resolve_candidate(self, client, paix_candidate):
        response = await client.post("/api/address/resolve", json=paix_candidate.model_dump(mode="json"))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "street_number": "10",
            "street_name": "Rue de la Paix",
            "postal_code": "75002",
            "city": "Paris",
            "latitude": 48.8566,
            "longitude": 2.3522,
            "full_address": "10 Rue de la Paix, 75002 Paris",
        }

    @pytest.mark.asyncio
    async def test_manual_accepts_valid_address(self, client):
        payload = {"street_name": "Rue de Rivoli", "postal_code": "75001", "city": "Paris", "latitude": 90, "longitude": 2.35}
        response = await client.post("/api/address/manual", json=payload)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["full_address"] == "Rue de Rivoli, 75001 Paris"

    @pytest.mark.asyncio
    async def test_manual_rejects_with_field_errors(self, client):
        payload = {"street_name": "Rue de Rivoli", "postal_code": "1234", "city": "Paris", "latitude": 91}
        response = await client.post("/api/address/manual", json=payload)

        assert response.status_code == 422
        assert set(response.json()["detail"]["errors"]) == {"postal_code", "latitude"}


class TestGeocodeAndCities:
    @pytest.mark.asyncio
    async def test_geocode(self, client):
        result = GeocodingResult(latitude=48.8566, longitude=2.3522, provider=GeocodingProvider.BAN)
        with patch("src.apis.geocoding_router.geocode_with_fallback", AsyncMock(return_value=result)):
            response = await client.post("/api/geocode", json={"address": "10 Rue de la Paix, Paris"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "address": "10 Rue de la Paix, Paris",
            "latitude": 48.8566,
            "longitude": 2.3522,
            "provider": "data.gouv.fr",
        }

    @pytest.mark.asyncio
    async def test_geocode_not_found(self, client):
        with patch("src.apis.geocoding_router.geocode_with_fallback", AsyncMock(return_value=None)):
            response = await client.post("/api/geocode", json={"address": "nulle part"})

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_cities(self, client):
        city = CitySuggestion(label="Lyon (69001)", city="Lyon", postcode="69001", latitude=45.76, longitude=4.83)
        with patch.object(geocoding_service, "search_cities", AsyncMock(return_value=[city])):
            response = await client.get("/api/address/cities", params={"q": "Lyon"})

        assert response.json()[0]["label"] == "Lyon (69001)"

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.json() == {"status": "ok"}


class TestAddressSession:
    def test_search_and_select(self, paix_result):
        search = AsyncMock(return_value=paix_result)
        with patch("src.services.address_resolver.search_with_fallback", search):
            with TestClient(app).websocket_connect("/ws/address") as websocket:
                assert websocket.receive_json()["snapshot"]["state"] == "idle"

                websocket.send_json({"type": "query", "text": "10 Rue de la Paix"})
                assert websocket.receive_json()["snapshot"]["state"] == "searching"
                shown = websocket.receive_json()["snapshot"]
                assert shown["state"] == "suggestions_shown"
                assert shown["suggestions"][0]["display_label"] == "10 Rue de la Paix, 75002 Paris"

                websocket.send_json({"type": "select", "index": 0})
                selected = websocket.receive_json()
                assert selected["type"] == "address_selected"
                assert selected["address"]["latitude"] == 48.8566
                assert selected["address"]["longitude"] == 2.3522
                assert websocket.receive_json()["snapshot"]["state"] == "idle"

        search.assert_awaited_once_with("10 Rue de la Paix")

    def test_degraded_then_manual_entry(self):
        search = AsyncMock(side_effect=ProviderUnavailableError("down"))
        with patch("src.services.address_resolver.search_with_fallback", search):
            with TestClient(app).websocket_connect("/ws/address?default_query=10%20Rue") as websocket:
                assert websocket.receive_json()["snapshot"]["query"] == "10 Rue"

                websocket.send_json({"type": "query", "text": "10 Rue de la Paix"})
                websocket.receive_json()
                degraded = websocket.receive_json()["snapshot"]
                assert degraded["state"] == "degraded"
                assert degraded["degraded"] is True

                websocket.send_json({"type": "manual_mode", "enabled": True})
                assert websocket.receive_json()["snapshot"]["state"] == "manual_entry"

                websocket.send_json({"type": "manual_submit", "address": {"street_name": "Rue de la Paix"}})
                errors = websocket.receive_json()["snapshot"]["manual_errors"]
                assert set(errors) == {"city", "postal_code"}

                websocket.send_json({
                    "type": "manual_submit",
                    "address": {"street_name": "Rue de la Paix", "postal_code": "75002", "city": "Paris"},
                })
                selected = websocket.receive_json()
                assert selected["type"] == "address_selected"
                assert selected["address"]["full_address"] == "Rue de la Paix, 75002 Paris"

    def test_invalid_messages_are_reported(self):
        with TestClient(app).websocket_connect("/ws/address") as websocket:
            websocket.receive_json()

            websocket.send_json({"type": "select", "index": 0})
            assert websocket.receive_json() == {"type": "error", "message": "선택할 수 있는 주소 후보가 없습니다"}

            websocket.send_json({"type": "unknown"})
            assert websocket.receive_json()["type"] == "error"

            websocket.send_text("not json")
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"type": "caller_error", "message": "Adresse refusée"})
            snapshot = websocket.receive_json()["snapshot"]
            assert snapshot["error"] == "Adresse refusée"
            assert snapshot["state"] == "idle"

    def test_bad_caller_error_keeps_session_usable(self):
        with TestClient(app).websocket_connect("/ws/address") as websocket:
            websocket.receive_json()

            websocket.send_json({"type": "caller_error", "message": 123})
            assert websocket.receive_json()["type"] == "error"

            websocket.send_json({"type": "manual_mode", "enabled": True})
            reply = websocket.receive_json()
            assert reply["type"] == "state"
            assert reply["snapshot"]["state"] == "manual_entry"
            assert reply["snapshot"]["error"] is None

    def test_binary_frame_is_reported(self):
        with TestClient(app).websocket_connect("/ws/address") as websocket:
            websocket.receive_json()

            websocket.send_bytes(b"\x00\x01")
            assert websocket.receive_json() == {"type": "error", "message": "텍스트(JSON) 메시지만 지원합니다"}

            websocket.send_json({"type": "caller_error", "message": "Adresse refusée"})
            reply = websocket.receive_json()
            assert reply["type"] == "state"
            assert reply["snapshot"]["error"] == "Adresse refusée"
