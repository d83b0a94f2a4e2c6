"""src.models.address_models
주소 자동완성(AddressResolver) 도메인 모델

- AddressCandidate: 제공자 응답을 정규화한 후보 주소 (요청마다 새로 생성, 캐시하지 않음)
- ResolvedAddress: 사용자가 확정한 주소 (교회 등록/수정 폼에 전달되는 값)
- ManualAddressInput: 수동 입력 모드의 폼 값
"""
import re
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.core.exceptions import ManualValidationError
from src.models.geocoding_models import GeocodingProvider

FRENCH_POSTAL_CODE = re.compile(r"[0-9]{5}")

# 수동 입력 기본 좌표 (프랑스 지리적 중심)
DEFAULT_MANUAL_LATITUDE = 46.603354
DEFAULT_MANUAL_LONGITUDE = 1.888334

# 필드별 오류 메시지 (타입 변환 자체가 실패했을 때도 사용)
FIELD_TYPE_MESSAGES = {
    "street_number": "Numéro de rue invalide",
    "street_name": "Le nom de rue est obligatoire",
    "postal_code": "Le code postal doit contenir 5 chiffres",
    "city": "La ville est obligatoire",
    "latitude": "Latitude invalide (-90 à 90)",
    "longitude": "Longitude invalide (-180 à 180)",
}


class ResolverState(str, Enum):
    """AddressResolver 상태"""
    IDLE = "idle"
    SEARCHING = "searching"
    SUGGESTIONS_SHOWN = "suggestions_shown"
    DEGRADED = "degraded"
    MANUAL_ENTRY = "manual_entry"


class ResolvedAddress(BaseModel):
    """확정된 주소 (폼 제출 페이로드 형식)"""
    street_number: str = Field(default="", description="번지")
    street_name: str = Field(default="", description="도로명")
    postal_code: str = Field(default="", description="우편번호")
    city: str = Field(default="", description="도시")
    latitude: float = Field(..., description="위도")
    longitude: float = Field(..., description="경도")
    full_address: str = Field(..., description="전체 주소 문자열")


class AddressCandidate(BaseModel):
    """제공자에 관계없이 동일한 형태로 정규화된 후보 주소"""
    display_label: str = Field(..., description="제공자가 내려준 전체 주소 라벨")
    city: str = Field(default="", description="도시")
    postal_code: str = Field(default="", description="우편번호")
    street_name: str = Field(default="", description="도로명")
    house_number: Optional[str] = Field(default=None, description="번지 (없을 수 있음)")
    coordinates: tuple[float, float] = Field(..., description="(경도, 위도) 순서")

    def to_resolved_address(self) -> ResolvedAddress:
        """선택된 후보를 ResolvedAddress로 변환 (좌표는 경도, 위도 순서에서 풀어서 사용)"""
        longitude, latitude = self.coordinates
        return ResolvedAddress(
            street_number=self.house_number or "",
            street_name=self.street_name,
            postal_code=self.postal_code,
            city=self.city,
            latitude=latitude,
            longitude=longitude,
            full_address=self.display_label,
        )


class AddressSearchResult(BaseModel):
    """fallback 검색 결과 (실제로 응답한 제공자 포함)"""
    provider: GeocodingProvider
    candidates: list[AddressCandidate] = Field(default_factory=list)


class ManualAddressInput(BaseModel):
    """수동 입력 폼 값"""
    model_config = ConfigDict(allow_inf_nan=False)

    street_number: str = ""
    street_name: str = ""
    postal_code: str = ""
    city: str = ""
    latitude: float = DEFAULT_MANUAL_LATITUDE
    longitude: float = DEFAULT_MANUAL_LONGITUDE

    @field_validator("street_name")
    @classmethod
    def street_name_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Le nom de rue est obligatoire")
        return value

    @field_validator("city")
    @classmethod
    def city_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("La ville est obligatoire")
        return value

    @field_validator("postal_code")
    @classmethod
    def postal_code_format(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Le code postal est obligatoire")
        if not FRENCH_POSTAL_CODE.fullmatch(value):
            raise ValueError("Le code postal doit contenir 5 chiffres")
        return value

    @field_validator("latitude")
    @classmethod
    def latitude_range(cls, value: float) -> float:
        if value < -90 or value > 90:
            raise ValueError(FIELD_TYPE_MESSAGES["latitude"])
        return value

    @field_validator("longitude")
    @classmethod
    def longitude_range(cls, value: float) -> float:
        if value < -180 or value > 180:
            raise ValueError(FIELD_TYPE_MESSAGES["longitude"])
        return value

    @property
    def full_address(self) -> str:
        return f"{self.street_number} {self.street_name}, {self.postal_code} {self.city}".strip()

    def to_resolved_address(self) -> ResolvedAddress:
        return ResolvedAddress(
            street_number=self.street_number,
            street_name=self.street_name,
            postal_code=self.postal_code,
            city=self.city,
            latitude=self.latitude,
            longitude=self.longitude,
            full_address=self.full_address,
        )


def validate_manual_address(values: dict) -> ManualAddressInput:
    """
    수동 입력값 검증

    모든 필드를 한 번에 검사하여 필드별 오류를 모아서 반환합니다.
    오류가 하나라도 있으면 제출할 수 없습니다.

    Args:
        values: 폼 값 (필드명 → 값)

    Returns:
        ManualAddressInput: 검증된 입력값

    Raises:
        ManualValidationError: 필드 오류가 하나 이상 있을 때 (errors: 필드명 → 메시지)
    """
    try:
        return ManualAddressInput.model_validate(values)
    except ValidationError as error:
        errors: dict[str, str] = {}
        for detail in error.errors():
            field = str(detail["loc"][0]) if detail["loc"] else "__root__"
            if field in errors:
                continue
            if detail["type"] == "value_error":
                errors[field] = str(detail["ctx"]["error"])
            else:
                errors[field] = FIELD_TYPE_MESSAGES.get(field, detail["msg"])
        raise ManualValidationError(errors) from error


class AddressSearchResponse(BaseModel):
    """주소 검색 REST 응답"""
    query: str
    state: ResolverState
    provider: Optional[GeocodingProvider] = None
    suggestions: list[AddressCandidate] = Field(default_factory=list)
    no_results: bool = False


class AddressResolverSnapshot(BaseModel):
    """AddressResolver의 현재 상태 (WebSocket/REST 응답용)"""
    state: ResolverState
    query: str = ""
    suggestions: list[AddressCandidate] = Field(default_factory=list)
    no_results: bool = Field(default=False, description="제공자는 응답했지만 결과가 0건")
    degraded: bool = Field(default=False, description="모든 제공자 실패 (수동 입력 권장)")
    provider: Optional[GeocodingProvider] = None
    manual_errors: dict[str, str] = Field(default_factory=dict)
    error: Optional[str] = Field(default=None, description="호출 측에서 전달한 검증 오류")
