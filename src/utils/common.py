"""src.utils.common
공통 유틸리티 함수 (Spring의 CommonUtil 스타일)
"""
import asyncio
import logging
from typing import Any

import httpx

from src.core.config import settings
from src.core.exceptions import ProviderUnavailableError

logger = logging.getLogger(__name__)


# ============================================================
# HTTP 클라이언트 유틸리티
# ============================================================

async def http_get_json(
    url: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
    provider: str | None = None
) -> Any:
    """
    HTTP GET 요청 후 JSON 응답 반환

    timeout은 연결~응답 본문 수신까지 전체 시간에 적용됩니다.
    (httpx timeout은 단계별이므로 asyncio.wait_for로 한 번 더 제한)

    Args:
        url: 요청 URL
        params: 쿼리 파라미터
        headers: 요청 헤더
        timeout: 타임아웃 (초, 기본 settings.GEOCODING_TIMEOUT)
        provider: 오류 메시지/로그에 남길 제공자 이름

    Returns:
        Any: JSON 응답 (dict 또는 list)

    Raises:
        ProviderUnavailableError: 요청 실패, 타임아웃, 응답 오류 시
    """
    timeout = settings.GEOCODING_TIMEOUT if timeout is None else timeout

    async def _request() -> Any:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url, params=params, headers=headers)
            response.raise_for_status()
            return response.json()

    try:
        return await asyncio.wait_for(_request(), timeout=timeout)

    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.error(f"HTTP 요청 타임아웃: provider={provider}, url={url}")
        raise ProviderUnavailableError(f"요청 시간이 초과되었습니다 ({timeout}초)", provider=provider)

    except httpx.HTTPStatusError as error:
        logger.error(f"HTTP 응답 오류: provider={provider}, status={error.response.status_code}, url={url}")
        raise ProviderUnavailableError(f"API 오류: {error.response.status_code}", provider=provider)

    except httpx.RequestError as error:
        logger.error(f"HTTP 연결 실패: provider={provider}, url={url}, error={error}")
        raise ProviderUnavailableError("API 연결에 실패했습니다", provider=provider)

    except ValueError as error:
        # JSON 디코딩 실패
        logger.error(f"HTTP 응답 JSON 파싱 실패: provider={provider}, url={url}, error={error}")
        raise ProviderUnavailableError("API 응답을 해석할 수 없습니다", provider=provider)


def mask_query(query: str, show_chars: int = 4) -> str:
    """
    주소 검색어 일부만 로그에 남기기 위한 마스킹

    Examples:
        >>> mask_query("10 Rue de la Paix")
        '10 R***(17자)'
    """
    if len(query) <= show_chars:
        return query
    return f"{query[:show_chars]}***({len(query)}자)"
