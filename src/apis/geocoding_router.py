"""src.apis.geocoding_router
Geocoding API 라우터 - 주소 → 위도/경도 변환
"""
import logging

from fastapi import APIRouter, HTTPException

from src.models.geocoding_models import GeocodingRequest, GeocodingResponse
from src.services.geocoding_service import geocode_with_fallback
from src.utils.common import mask_query

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Geocoding API"])


@router.post("/geocode", response_model=GeocodingResponse, status_code=200)
async def geocode(request: GeocodingRequest):
    """
    주소를 위도/경도로 변환 (BAN → Nominatim fallback)

    - POST /api/geocode
    - Body: {"address": "10 Rue de la Paix, Paris"}
    - 성공: 200 + GeocodingResponse (provider: "data.gouv.fr" | "nominatim")
    - 실패: 404 (모든 제공자에서 주소 못 찾음)
    """
    logger.info(f"Geocoding 요청: address='{mask_query(request.address)}'")

    result = await geocode_with_fallback(request.address)
    if result is None:
        raise HTTPException(status_code=404, detail=f"주소를 찾을 수 없습니다: {request.address}")

    return GeocodingResponse(
        address=request.address,
        latitude=result.latitude,
        longitude=result.longitude,
        provider=result.provider
    )


@router.get("/health", status_code=200)
async def health_check():
    """API 상태 확인"""
    return {"status": "ok"}
