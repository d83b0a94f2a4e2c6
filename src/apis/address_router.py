"""src.apis.address_router
주소 자동완성 API 라우터

- REST: 클라이언트가 직접 debounce 하는 경우 사용하는 단발성 검색/변환
- WebSocket: 연결 1개당 AddressResolver 1개 (debounce, 이전 결과 무시를 서버에서 처리)
"""
import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from src.core.config import settings
from src.core.exceptions import ManualValidationError, ProviderUnavailableError, ResolverStateError
from src.models.address_models import (
    AddressCandidate,
    AddressSearchResponse,
    ResolvedAddress,
    ResolverState,
    validate_manual_address,
)
from src.models.geocoding_models import CitySuggestion
from src.services.address_resolver import AddressResolver
from src.services import geocoding_service
from src.utils.common import mask_query

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Address API"])


@router.get("/api/address/search", response_model=AddressSearchResponse, status_code=200)
async def search_address(
    q: str = Query(..., description="검색어"),
    limit: int | None = Query(default=None, ge=1, le=20, description="최대 결과 수")
):
    """
    주소 후보 검색 (BAN → Nominatim fallback)

    - GET /api/address/search?q=10 Rue de la Paix
    - 3글자 미만: 외부 API 호출 없이 state="idle", 빈 목록
    - 성공: 200 + 후보 목록 (0건이면 no_results=true)
    - 실패: 503 (모든 제공자 실패, 수동 입력 권장)
    """
    if len(q) < settings.ADDRESS_MIN_QUERY_LENGTH:
        return AddressSearchResponse(query=q, state=ResolverState.IDLE)

    logger.info(f"주소 검색 요청: query='{mask_query(q)}'")

    try:
        result = await geocoding_service.search_with_fallback(q, limit)
    except ProviderUnavailableError as error:
        raise HTTPException(
            status_code=503,
            detail={"message": error.message, "manual_entry_available": True}
        )

    return AddressSearchResponse(
        query=q,
        state=ResolverState.SUGGESTIONS_SHOWN,
        provider=result.provider,
        suggestions=result.candidates,
        no_results=not result.candidates
    )


@router.post("/api/address/resolve", response_model=ResolvedAddress, status_code=200)
async def resolve_candidate(candidate: AddressCandidate):
    """
    선택한 후보를 폼 제출용 주소로 변환

    - POST /api/address/resolve
    - Body: AddressCandidate (coordinates는 [경도, 위도])
    """
    return candidate.to_resolved_address()


@router.post("/api/address/manual", response_model=ResolvedAddress, status_code=200)
async def submit_manual_address(values: dict[str, Any]):
    """
    수동 입력 주소 검증 및 변환

    - POST /api/address/manual
    - Body: {"street_number", "street_name", "postal_code", "city", "latitude", "longitude"}
    - 성공: 200 + ResolvedAddress
    - 실패: 422 + 필드별 오류 {"detail": {"message": ..., "errors": {필드: 메시지}}}
    """
    try:
        manual_input = validate_manual_address(values)
    except ManualValidationError as error:
        raise HTTPException(
            status_code=422,
            detail={"message": error.message, "errors": error.errors}
        )
    return manual_input.to_resolved_address()


@router.get("/api/address/cities", response_model=list[CitySuggestion], status_code=200)
async def search_cities(q: str = Query(..., description="도시명 일부")):
    """도시 자동완성 (실패 시 빈 목록)"""
    return await geocoding_service.search_cities(q)


# ============================================================
# WebSocket 세션
# ============================================================

def _dispatch(resolver: AddressResolver, message: dict[str, Any]) -> None:
    """클라이언트 메시지 1건을 resolver 작업으로 변환"""
    message_type = message.get("type")

    if message_type == "query":
        resolver.set_query(str(message.get("text") or ""))
    elif message_type == "select":
        resolver.select(int(message["index"]))
    elif message_type == "manual_mode":
        if message.get("enabled", True):
            resolver.enter_manual_mode()
        else:
            resolver.exit_manual_mode()
    elif message_type == "manual_submit":
        resolver.submit_manual(message.get("address") or {})
    elif message_type == "caller_error":
        resolver.set_error(message.get("message"))
    else:
        raise ValueError(f"알 수 없는 메시지 타입: {message_type}")


async def _drain_outbox(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    while True:
        payload = await outbox.get()
        await websocket.send_json(payload)


@router.websocket("/ws/address")
async def address_session(websocket: WebSocket, default_query: str = ""):
    """
    주소 자동완성 세션

    클라이언트 → 서버
    - {"type": "query", "text": "10 rue"}
    - {"type": "select", "index": 0}
    - {"type": "manual_mode", "enabled": true}
    - {"type": "manual_submit", "address": {...}}
    - {"type": "caller_error", "message": "..."}

    서버 → 클라이언트
    - {"type": "state", "snapshot": {...}}: 상태가 바뀔 때마다
    - {"type": "address_selected", "address": {...}}: 주소 확정 시 1회
    - {"type": "error", "message": "..."}: 잘못된 메시지 또는 현재 상태에서 불가능한 작업
    """
    await websocket.accept()
    outbox: asyncio.Queue = asyncio.Queue()

    resolver = AddressResolver(
        on_address_select=lambda address: outbox.put_nowait(
            {"type": "address_selected", "address": address.model_dump(mode="json")}
        ),
        on_state_change=lambda snapshot: outbox.put_nowait(
            {"type": "state", "snapshot": snapshot.model_dump(mode="json")}
        ),
        default_query=default_query,
    )
    outbox.put_nowait({"type": "state", "snapshot": resolver.snapshot().model_dump(mode="json")})
    sender = asyncio.create_task(_drain_outbox(websocket, outbox))
    logger.info("주소 자동완성 세션 시작")

    try:
        while True:
            event = await websocket.receive()
            if event["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(event.get("code", 1000))

            raw = event.get("text")
            if raw is None:
                outbox.put_nowait({"type": "error", "message": "텍스트(JSON) 메시지만 지원합니다"})
                continue

            try:
                message = json.loads(raw)
                if not isinstance(message, dict):
                    raise ValueError("메시지는 JSON 객체여야 합니다")
                _dispatch(resolver, message)
            except ResolverStateError as error:
                outbox.put_nowait({"type": "error", "message": error.message})
            except (KeyError, TypeError, ValueError) as error:
                logger.warning(f"잘못된 WebSocket 메시지: {error}")
                outbox.put_nowait({"type": "error", "message": f"잘못된 메시지 형식입니다: {error}"})
    except WebSocketDisconnect:
        logger.info("주소 자동완성 세션 종료 (클라이언트 연결 해제)")
    finally:
        await resolver.close()
        sender.cancel()
        await asyncio.gather(sender, return_exceptions=True)
