"""주소 도메인 모델 및 수동 입력 검증 테스트"""

import pytest

from src.core.exceptions import ManualValidationError
from src.models.address_models import (
    DEFAULT_MANUAL_LATITUDE,
    DEFAULT_MANUAL_LONGITUDE,
    validate_manual_address,
)


def _manual(**overrides) -> dict:
    values = {
        "street_number": "10",
        "street_name": "Rue de la Paix",
        "postal_code": "75002",
        "city": "Paris",
        "latitude": 48.8566,
        "longitude": 2.3522,
    }
    values.update(overrides)
    return values


class TestCandidateToResolvedAddress:
    def test_coordinates_are_unpacked_longitude_first(self, paix_candidate):
        address = paix_candidate.to_resolved_address()

        assert address.latitude == 48.8566
        assert address.longitude == 2.3522

    def test_full_scenario_fields(self, paix_candidate):
        address = paix_candidate.to_resolved_address()

        assert address.model_dump() == {
            "street_number": "10",
            "street_name": "Rue de la Paix",
            "postal_code": "75002",
            "city": "Paris",
            "latitude": 48.8566,
            "longitude": 2.3522,
            "full_address": "10 Rue de la Paix, 75002 Paris",
        }

    def test_missing_house_number_becomes_empty_string(self, paix_candidate):
        candidate = paix_candidate.model_copy(update={"house_number": None})

        assert candidate.to_resolved_address().street_number == ""


class TestManualValidation:
    def test_valid_input_is_accepted(self):
        manual_input = validate_manual_address(_manual())

        assert manual_input.postal_code == "75002"
        assert manual_input.full_address == "10 Rue de la Paix, 75002 Paris"

    @pytest.mark.parametrize(
        "postal_code,accepted",
        [
            ("75001", True),
            ("1234", False),
            ("123456", False),
            ("7500A", False),
            ("", False),
        ],
    )
    def test_postal_code_must_be_five_digits(self, postal_code, accepted):
        if accepted:
            assert validate_manual_address(_manual(postal_code=postal_code)).postal_code == postal_code
            return

        with pytest.raises(ManualValidationError) as exc_info:
            validate_manual_address(_manual(postal_code=postal_code))
        assert "postal_code" in exc_info.value.errors

    def test_non_ascii_digits_are_rejected(self):
        # 아라비아-인도 숫자
        with pytest.raises(ManualValidationError):
            validate_manual_address(_manual(postal_code="٧٥٠٠١"))

    @pytest.mark.parametrize("latitude", [90, -90, 0])
    def test_latitude_bounds_are_inclusive(self, latitude):
        assert validate_manual_address(_manual(latitude=latitude)).latitude == latitude

    @pytest.mark.parametrize("latitude", [91, -90.0001])
    def test_latitude_out_of_range_is_rejected(self, latitude):
        with pytest.raises(ManualValidationError) as exc_info:
            validate_manual_address(_manual(latitude=latitude))
        assert exc_info.value.errors == {"latitude": "Latitude invalide (-90 à 90)"}

    @pytest.mark.parametrize("longitude,accepted", [(180, True), (-180, True), (180.5, False)])
    def test_longitude_bounds(self, longitude, accepted):
        if accepted:
            assert validate_manual_address(_manual(longitude=longitude)).longitude == longitude
            return

        with pytest.raises(ManualValidationError) as exc_info:
            validate_manual_address(_manual(longitude=longitude))
        assert "longitude" in exc_info.value.errors

    def test_all_field_errors_are_collected(self):
        with pytest.raises(ManualValidationError) as exc_info:
            validate_manual_address({"street_name": "  ", "city": "", "postal_code": "", "latitude": 120})

        assert exc_info.value.errors == {
            "street_name": "Le nom de rue est obligatoire",
            "city": "La ville est obligatoire",
            "postal_code": "Le code postal est obligatoire",
            "latitude": "Latitude invalide (-90 à 90)",
        }

    def test_non_numeric_coordinate_reports_field_error(self):
        with pytest.raises(ManualValidationError) as exc_info:
            validate_manual_address(_manual(longitude="abc"))

        assert exc_info.value.errors == {"longitude": "Longitude invalide (-180 à 180)"}

    def test_defaults_to_centre_of_france(self):
        manual_input = validate_manual_address(
            {"street_name": "Rue Haute", "postal_code": "18000", "city": "Bourges"}
        )

        assert manual_input.latitude == DEFAULT_MANUAL_LATITUDE
        assert manual_input.longitude == DEFAULT_MANUAL_LONGITUDE

    def test_full_address_without_street_number(self):
        manual_input = validate_manual_address(_manual(street_number=""))

        assert manual_input.full_address == "Rue de la Paix, 75002 Paris"
        assert manual_input.to_resolved_address().street_number == ""
