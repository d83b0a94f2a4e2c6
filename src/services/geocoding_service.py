"""src.services.geocoding_service
주소 검색 / Geocoding 서비스

1차: api-adresse.data.gouv.fr (BAN, 프랑스 전용, 빠름)
2차: Nominatim (OpenStreetMap, 해외 주소 포함 fallback)
"""
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from src.core.config import settings
from src.core.exceptions import ProviderResponseError, ProviderUnavailableError
from src.models.address_models import AddressCandidate, AddressSearchResult
from src.models.geocoding_models import (
    BanFeatureCollection,
    CitySuggestion,
    GeocodingProvider,
    NominatimPlace,
)
from src.utils.common import http_get_json, mask_query

logger = logging.getLogger(__name__)


@dataclass
class GeocodingResult:
    """Geocoding 결과"""
    latitude: float
    longitude: float
    provider: GeocodingProvider


# ============================================================
# 제공자별 원시 호출 + 응답 스키마 검증
# ============================================================

async def _fetch_ban(params: dict) -> BanFeatureCollection:
    provider = GeocodingProvider.BAN.value
    data = await http_get_json(settings.BAN_API_URL, params=params, provider=provider)
    try:
        return BanFeatureCollection.model_validate(data)
    except ValidationError as error:
        logger.error(f"BAN 응답 스키마 불일치: {error.error_count()}건")
        raise ProviderResponseError("BAN 응답을 해석할 수 없습니다", provider=provider) from error


async def _fetch_nominatim(params: dict) -> list[NominatimPlace]:
    provider = GeocodingProvider.NOMINATIM.value
    headers = {"User-Agent": settings.NOMINATIM_USER_AGENT}
    data = await http_get_json(settings.NOMINATIM_API_URL, params=params, headers=headers, provider=provider)
    if not isinstance(data, list):
        logger.error(f"Nominatim 응답 형식 오류: type={type(data).__name__}")
        raise ProviderResponseError("Nominatim 응답을 해석할 수 없습니다", provider=provider)
    try:
        return [NominatimPlace.model_validate(place) for place in data]
    except ValidationError as error:
        logger.error(f"Nominatim 응답 스키마 불일치: {error.error_count()}건")
        raise ProviderResponseError("Nominatim 응답을 해석할 수 없습니다", provider=provider) from error


# ============================================================
# 주소 자동완성 검색
# ============================================================

async def search_with_ban(query: str, limit: int | None = None) -> list[AddressCandidate]:
    """
    BAN(api-adresse.data.gouv.fr) 주소 검색

    https://adresse.data.gouv.fr/outils/api-doc/adresse

    Args:
        query: 검색어
        limit: 최대 결과 수 (기본 settings.ADDRESS_SUGGESTION_LIMIT)

    Returns:
        list[AddressCandidate]: 정규화된 후보 (0건일 수 있음)

    Raises:
        ProviderUnavailableError: 요청 실패, 타임아웃, 응답 스키마 불일치 시
    """
    limit = settings.ADDRESS_SUGGESTION_LIMIT if limit is None else limit
    logger.info(f"BAN 주소 검색 요청: query='{mask_query(query)}', limit={limit}")

    collection = await _fetch_ban({"q": query, "limit": limit})

    candidates = [
        AddressCandidate(
            display_label=feature.properties.label,
            city=feature.properties.city or "",
            postal_code=feature.properties.postcode or "",
            street_name=feature.properties.street or feature.properties.name or "",
            house_number=feature.properties.housenumber,
            coordinates=feature.geometry.coordinates,
        )
        for feature in collection.features
    ]
    logger.info(f"BAN 주소 검색 완료: {len(candidates)}건")
    return candidates


async def search_with_nominatim(query: str, limit: int | None = None) -> list[AddressCandidate]:
    """
    Nominatim (OpenStreetMap) 주소 검색

    Rate limit: 1 request/second
    https://nominatim.org/release-docs/develop/api/Search/

    Args:
        query: 검색어
        limit: 최대 결과 수 (기본 settings.ADDRESS_SUGGESTION_LIMIT)

    Returns:
        list[AddressCandidate]: 정규화된 후보 (0건일 수 있음)

    Raises:
        ProviderUnavailableError: 요청 실패, 타임아웃, 좌표 파싱 실패 시
    """
    limit = settings.ADDRESS_SUGGESTION_LIMIT if limit is None else limit
    logger.info(f"Nominatim 주소 검색 요청: query='{mask_query(query)}', limit={limit}")

    places = await _fetch_nominatim({
        "q": query,
        "format": "json",
        "limit": limit,
        "addressdetails": 1,
    })

    candidates = []
    for place in places:
        address = place.address
        candidates.append(AddressCandidate(
            display_label=place.display_name,
            city=(address and (address.city or address.town or address.village)) or "",
            postal_code=(address and address.postcode) or "",
            street_name=(address and address.road) or "",
            house_number=address.house_number if address else None,
            # Nominatim은 lat/lon을 따로 주므로 (경도, 위도)로 재정렬
            coordinates=(place.lon, place.lat),
        ))
    logger.info(f"Nominatim 주소 검색 완료: {len(candidates)}건")
    return candidates


async def search_with_fallback(query: str, limit: int | None = None) -> AddressSearchResult:
    """
    BAN → Nominatim 순서로 주소 검색 (fallback 로직)

    - BAN 결과가 1건 이상이면 Nominatim은 호출하지 않음
    - BAN 결과 0건 또는 실패 시 Nominatim 1회 호출
    - Nominatim은 0건이어도 성공으로 간주 ("결과 없음" 표시)

    Args:
        query: 검색어
        limit: 최대 결과 수

    Returns:
        AddressSearchResult: 응답한 제공자와 후보 목록

    Raises:
        ProviderUnavailableError: 두 제공자 모두 실패 시
    """
    # 1. BAN 시도
    try:
        candidates = await search_with_ban(query, limit)
        if candidates:
            return AddressSearchResult(provider=GeocodingProvider.BAN, candidates=candidates)
        logger.warning("BAN 검색 결과 없음, Nominatim으로 fallback")
    except ProviderUnavailableError as error:
        logger.warning(f"BAN 검색 실패, Nominatim으로 fallback: {error.message}")

    # 2. Nominatim fallback
    try:
        candidates = await search_with_nominatim(query, limit)
    except ProviderUnavailableError as error:
        logger.error(f"모든 주소 검색 API 실패: {error.message}")
        raise ProviderUnavailableError(
            "주소 검색 서비스를 일시적으로 사용할 수 없습니다",
            provider=GeocodingProvider.NOMINATIM.value
        ) from error

    return AddressSearchResult(provider=GeocodingProvider.NOMINATIM, candidates=candidates)


# ============================================================
# 단일 주소 Geocoding / 도시 검색
# ============================================================

async def geocode_with_ban(address: str) -> GeocodingResult | None:
    """BAN으로 주소 1건을 좌표로 변환 (결과 없으면 None)"""
    collection = await _fetch_ban({"q": address, "limit": 1, "autocomplete": 0})
    if not collection.features:
        return None

    longitude, latitude = collection.features[0].geometry.coordinates
    return GeocodingResult(latitude=latitude, longitude=longitude, provider=GeocodingProvider.BAN)


async def geocode_with_nominatim(address: str) -> GeocodingResult | None:
    """Nominatim으로 주소 1건을 좌표로 변환 (결과 없으면 None)"""
    places = await _fetch_nominatim({"q": address, "format": "json", "limit": 1, "addressdetails": 1})
    if not places:
        return None

    return GeocodingResult(latitude=places[0].lat, longitude=places[0].lon, provider=GeocodingProvider.NOMINATIM)


async def geocode_with_fallback(address: str) -> GeocodingResult | None:
    """
    BAN → Nominatim 순서로 Geocoding 시도 (fallback 로직)

    실패해도 예외를 발생시키지 않고 None 반환

    Args:
        address: 변환할 주소 문자열

    Returns:
        GeocodingResult | None: 성공 시 결과, 모두 실패 시 None
    """
    if not address or not address.strip():
        return None

    # 1. BAN 시도
    try:
        result = await geocode_with_ban(address)
        if result:
            logger.info(f"BAN Geocoding 성공: lat={result.latitude}, lon={result.longitude}")
            return result
        logger.warning("BAN Geocoding 결과 없음, Nominatim으로 fallback")
    except ProviderUnavailableError as error:
        logger.warning(f"BAN Geocoding 실패, Nominatim으로 fallback: {error.message}")

    # 2. Nominatim fallback
    try:
        result = await geocode_with_nominatim(address)
        if result:
            logger.info(f"Nominatim Geocoding 성공: lat={result.latitude}, lon={result.longitude}")
            return result
        logger.warning("Nominatim Geocoding 결과 없음")
    except ProviderUnavailableError as error:
        logger.warning(f"Nominatim Geocoding도 실패: {error.message}")

    logger.error("모든 Geocoding API 실패")
    return None


async def search_cities(query: str) -> list[CitySuggestion]:
    """
    BAN municipality 검색 (도시 자동완성)

    Args:
        query: 도시명 일부

    Returns:
        list[CitySuggestion]: 도시 후보, 실패 시 빈 리스트
    """
    if not query or len(query) < settings.ADDRESS_MIN_QUERY_LENGTH:
        return []

    try:
        collection = await _fetch_ban({
            "q": query,
            "type": "municipality",
            "limit": settings.ADDRESS_SUGGESTION_LIMIT,
            "autocomplete": 1,
        })
    except ProviderUnavailableError as error:
        logger.error(f"도시 검색 실패: {error.message}")
        return []

    suggestions = []
    for feature in collection.features:
        properties = feature.properties
        longitude, latitude = feature.geometry.coordinates
        suggestions.append(CitySuggestion(
            label=f"{properties.city} ({properties.postcode})",
            name=properties.name or "",
            city=properties.city or "",
            postcode=properties.postcode or "",
            citycode=properties.citycode or "",
            context=properties.context or "",
            score=properties.score or 0.0,
            latitude=latitude,
            longitude=longitude,
        ))
    return suggestions
