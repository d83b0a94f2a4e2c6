"""src.models.geocoding_models
Geocoding API 요청/응답 스키마 및 외부 제공자 응답 스키마
"""
import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GeocodingProvider(str, Enum):
    """Geocoding 제공자"""
    BAN = "data.gouv.fr"
    NOMINATIM = "nominatim"


class GeocodingRequest(BaseModel):
    """단일 주소 Geocoding 요청"""
    address: str = Field(..., description="변환할 주소", min_length=1)


class GeocodingResponse(BaseModel):
    """Geocoding 응답"""
    address: str = Field(..., description="입력된 주소")
    latitude: float = Field(..., description="위도")
    longitude: float = Field(..., description="경도")
    provider: GeocodingProvider = Field(..., description="사용된 제공자")


class CitySuggestion(BaseModel):
    """도시(municipality) 검색 결과"""
    label: str = Field(..., description="표시용 라벨 (예: Paris (75001))")
    name: str = Field(default="", description="도시명")
    city: str = Field(default="", description="도시명 (BAN city 필드)")
    postcode: str = Field(default="", description="우편번호")
    citycode: str = Field(default="", description="INSEE 코드")
    context: str = Field(default="", description="도/지역 정보")
    score: float = Field(default=0.0, description="BAN 매칭 점수")
    latitude: float = Field(..., description="위도")
    longitude: float = Field(..., description="경도")


# ============================================================
# 외부 제공자 응답 스키마
# (네트워크 경계에서 검증, 실패 시 ProviderResponseError)
# ============================================================

class BanProperties(BaseModel):
    """api-adresse.data.gouv.fr feature.properties"""
    model_config = ConfigDict(extra="ignore")

    label: str
    name: Optional[str] = None
    street: Optional[str] = None
    housenumber: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    citycode: Optional[str] = None
    context: Optional[str] = None
    score: Optional[float] = None


class BanGeometry(BaseModel):
    """GeoJSON Point geometry ([경도, 위도] 순서)"""
    model_config = ConfigDict(extra="ignore", allow_inf_nan=False)

    coordinates: tuple[float, float]


class BanFeature(BaseModel):
    model_config = ConfigDict(extra="ignore")

    properties: BanProperties
    geometry: BanGeometry


class BanFeatureCollection(BaseModel):
    model_config = ConfigDict(extra="ignore")

    features: list[BanFeature] = Field(default_factory=list)


class NominatimAddress(BaseModel):
    """Nominatim addressdetails=1 응답의 address 객체"""
    model_config = ConfigDict(extra="ignore")

    road: Optional[str] = None
    house_number: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    town: Optional[str] = None
    village: Optional[str] = None


class NominatimPlace(BaseModel):
    """Nominatim 검색 결과 1건 (lat/lon은 문자열로 내려옴)"""
    model_config = ConfigDict(extra="ignore")

    display_name: str
    lat: float
    lon: float
    address: Optional[NominatimAddress] = None

    @field_validator("lat", "lon")
    @classmethod
    def reject_non_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("좌표는 유한한 숫자여야 합니다")
        return value
