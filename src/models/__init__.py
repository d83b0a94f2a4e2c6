"""src.models
API 요청/응답 및 주소 도메인 Pydantic 스키마 정의
"""
from src.models.address_models import (
    AddressCandidate,
    AddressResolverSnapshot,
    AddressSearchResponse,
    AddressSearchResult,
    ManualAddressInput,
    ResolvedAddress,
    ResolverState,
)
from src.models.geocoding_models import (
    CitySuggestion,
    GeocodingProvider,
    GeocodingRequest,
    GeocodingResponse,
)

__all__ = [
    # 주소 자동완성
    "AddressCandidate",
    "AddressResolverSnapshot",
    "AddressSearchResponse",
    "AddressSearchResult",
    "ManualAddressInput",
    "ResolvedAddress",
    "ResolverState",
    # Geocoding
    "CitySuggestion",
    "GeocodingProvider",
    "GeocodingRequest",
    "GeocodingResponse",
]
