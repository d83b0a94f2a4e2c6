"""src.services.address_resolver
주소 자동완성 상태 머신

IDLE → SEARCHING → SUGGESTIONS_SHOWN / DEGRADED, 그리고 별도의 MANUAL_ENTRY 모드.

- 입력이 바뀔 때마다 debounce(기본 300ms) 후 마지막 입력만 검색
- 검색은 BAN → Nominatim fallback (search_with_fallback)
- 진행 중인 검색은 중단하지 않고, 결과 도착 시 세대(generation)가 다르면 버림
- 확정된 주소는 on_address_select 콜백으로 한 번만 전달
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Union

from src.core.config import settings
from src.core.exceptions import ManualValidationError, ProviderUnavailableError, ResolverStateError
from src.models.address_models import (
    AddressCandidate,
    AddressResolverSnapshot,
    AddressSearchResult,
    ManualAddressInput,
    ResolvedAddress,
    ResolverState,
    validate_manual_address,
)
from src.models.geocoding_models import GeocodingProvider
from src.services.geocoding_service import search_with_fallback
from src.utils.common import mask_query

logger = logging.getLogger(__name__)

SearchFunction = Callable[[str], Awaitable[AddressSearchResult]]


class AddressResolver:
    """
    주소 자동완성 세션 1개 (폼 1개, WebSocket 연결 1개 단위)

    모든 메서드는 같은 이벤트 루프 안에서 호출되어야 합니다.
    """

    def __init__(
        self,
        on_address_select: Callable[[ResolvedAddress], None],
        default_query: str = "",
        error: Optional[str] = None,
        search: Optional[SearchFunction] = None,
        on_state_change: Optional[Callable[[AddressResolverSnapshot], None]] = None,
        debounce_seconds: Optional[float] = None,
        min_query_length: Optional[int] = None,
    ):
        """
        Args:
            on_address_select: 주소 확정 시 호출되는 콜백
            default_query: 미리 채워둘 검색어 (표시만 하고 검색하지 않음)
            error: 호출 측 검증 오류 메시지 (예: 서버에서 거부된 주소)
            search: 검색 함수 (기본 search_with_fallback)
            on_state_change: 상태 변경 시 호출되는 콜백
            debounce_seconds: 마지막 입력 후 검색까지 대기 시간
            min_query_length: 검색을 시작하는 최소 글자 수
        """
        self._on_address_select = on_address_select
        self._on_state_change = on_state_change
        self._search = search or search_with_fallback
        self._debounce_seconds = settings.ADDRESS_DEBOUNCE_SECONDS if debounce_seconds is None else debounce_seconds
        self._min_query_length = settings.ADDRESS_MIN_QUERY_LENGTH if min_query_length is None else min_query_length

        self.state = ResolverState.IDLE
        self.query = default_query
        self.error = error
        self.suggestions: list[AddressCandidate] = []
        self.provider: Optional[GeocodingProvider] = None
        self.manual_errors: dict[str, str] = {}

        self._generation = 0
        self._debounce_task: Optional[asyncio.Task] = None
        self._lookup_tasks: set[asyncio.Task] = set()
        self._closed = False

    # ------------------------------------------------------------
    # 상태 조회
    # ------------------------------------------------------------

    @property
    def degraded(self) -> bool:
        return self.state == ResolverState.DEGRADED

    @property
    def no_results(self) -> bool:
        return self.state == ResolverState.SUGGESTIONS_SHOWN and not self.suggestions

    def snapshot(self) -> AddressResolverSnapshot:
        return AddressResolverSnapshot(
            state=self.state,
            query=self.query,
            suggestions=list(self.suggestions),
            no_results=self.no_results,
            degraded=self.degraded,
            provider=self.provider,
            manual_errors=dict(self.manual_errors),
            error=self.error,
        )

    # ------------------------------------------------------------
    # 자동 검색 모드
    # ------------------------------------------------------------

    def set_query(self, text: str) -> None:
        """
        검색어 변경 (키 입력 1회)

        MANUAL_ENTRY에서는 무시합니다. 그 외에는 대기 중인 debounce를 취소하고
        진행 중인 검색 결과를 무효화한 뒤, 3글자 이상이면 debounce 후 검색합니다.
        """
        if self._closed:
            return
        if self.state == ResolverState.MANUAL_ENTRY:
            logger.debug("수동 입력 모드에서는 검색어 변경을 무시합니다")
            return

        self.query = text
        self._supersede()
        self.suggestions = []
        self.provider = None

        if len(text) < self._min_query_length:
            self._transition(ResolverState.IDLE)
            return

        generation = self._generation
        self._debounce_task = asyncio.get_running_loop().create_task(
            self._debounced_lookup(generation, text)
        )
        self._transition(ResolverState.SEARCHING)

    def select(self, index: int) -> ResolvedAddress:
        """
        후보 주소 선택

        Args:
            index: suggestions 내 위치

        Returns:
            ResolvedAddress: 콜백으로 전달된 주소

        Raises:
            ResolverStateError: 후보 목록이 표시된 상태가 아니거나 index가 범위를 벗어난 경우
        """
        if self.state != ResolverState.SUGGESTIONS_SHOWN:
            raise ResolverStateError("선택할 수 있는 주소 후보가 없습니다")
        if not 0 <= index < len(self.suggestions):
            raise ResolverStateError(f"존재하지 않는 후보입니다: index={index}")

        candidate = self.suggestions[index]
        address = candidate.to_resolved_address()
        logger.info(f"주소 선택: provider={self.provider.value if self.provider else None}, city='{address.city}'")

        self._on_address_select(address)

        # 선택된 라벨을 검색어로 표시하되, 새 검색은 시작하지 않음
        self.query = candidate.display_label
        self.suggestions = []
        self.provider = None
        self._transition(ResolverState.IDLE)
        return address

    # ------------------------------------------------------------
    # 수동 입력 모드
    # ------------------------------------------------------------

    def enter_manual_mode(self) -> None:
        if self.state == ResolverState.MANUAL_ENTRY:
            return
        logger.info(f"수동 입력 모드 진입 (이전 상태: {self.state.value})")
        self._supersede()
        self.suggestions = []
        self.provider = None
        self.manual_errors = {}
        self._transition(ResolverState.MANUAL_ENTRY)

    def exit_manual_mode(self) -> None:
        if self.state != ResolverState.MANUAL_ENTRY:
            return
        logger.info("수동 입력 모드 종료, 자동 검색으로 복귀")
        self.manual_errors = {}
        self._transition(ResolverState.IDLE)

    def submit_manual(self, values: Union[dict, ManualAddressInput]) -> Optional[ResolvedAddress]:
        """
        수동 입력값 제출

        Args:
            values: 폼 값

        Returns:
            ResolvedAddress | None: 검증 통과 시 전달된 주소, 필드 오류가 있으면 None

        Raises:
            ResolverStateError: 수동 입력 모드가 아닐 때
        """
        if self.state != ResolverState.MANUAL_ENTRY:
            raise ResolverStateError("수동 입력 모드가 아닙니다")

        if isinstance(values, ManualAddressInput):
            values = values.model_dump()

        try:
            manual_input = validate_manual_address(values)
        except ManualValidationError as error:
            logger.info(f"수동 입력 검증 실패: fields={sorted(error.errors)}")
            self.manual_errors = error.errors
            self._notify()
            return None

        self.manual_errors = {}
        address = manual_input.to_resolved_address()
        self._on_address_select(address)
        self._notify()
        return address

    # ------------------------------------------------------------
    # 기타
    # ------------------------------------------------------------

    def set_error(self, message: Optional[str]) -> None:
        """
        호출 측 검증 오류 표시 (상태는 바뀌지 않음)

        Raises:
            ValueError: message가 문자열 또는 None이 아닐 때 (저장하지 않음)
        """
        if message is not None and not isinstance(message, str):
            raise ValueError(f"오류 메시지는 문자열이어야 합니다: {type(message).__name__}")
        self.error = message
        self._notify()

    async def close(self) -> None:
        """세션 종료: 대기 중인 debounce와 검색 작업을 정리"""
        if self._closed:
            return
        self._closed = True

        tasks = list(self._lookup_tasks)
        if self._debounce_task is not None:
            tasks.append(self._debounce_task)
        self._supersede()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # ------------------------------------------------------------
    # 내부 구현
    # ------------------------------------------------------------

    def _supersede(self) -> None:
        """진행 중인 검색 결과를 무효화하고 대기 중인 debounce를 취소"""
        self._generation += 1
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    async def _debounced_lookup(self, generation: int, query: str) -> None:
        await asyncio.sleep(self._debounce_seconds)
        if generation != self._generation:
            return

        # 검색 자체는 debounce 취소와 분리 (이후 입력은 결과만 버림)
        task = asyncio.get_running_loop().create_task(self._lookup(generation, query))
        self._lookup_tasks.add(task)
        task.add_done_callback(self._on_lookup_done)

    async def _lookup(self, generation: int, query: str) -> None:
        logger.info(f"주소 검색 시작: generation={generation}, query='{mask_query(query)}'")
        try:
            result = await self._search(query)
        except ProviderUnavailableError as error:
            if generation != self._generation:
                logger.debug(f"이전 검색 실패 결과 무시: generation={generation}")
                return
            logger.warning(f"주소 검색 불가, 수동 입력 안내: {error.message}")
            self.suggestions = []
            self.provider = None
            self._transition(ResolverState.DEGRADED)
            return

        if generation != self._generation:
            logger.debug(f"이전 검색 결과 무시: generation={generation}")
            return

        self.suggestions = list(result.candidates)
        self.provider = result.provider
        self._transition(ResolverState.SUGGESTIONS_SHOWN)

    def _on_lookup_done(self, task: asyncio.Task) -> None:
        self._lookup_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"주소 검색 중 예기치 않은 오류: {error!r}")

    def _transition(self, state: ResolverState) -> None:
        if state != self.state:
            logger.debug(f"상태 전이: {self.state.value} → {state.value}")
        self.state = state
        self._notify()

    def _notify(self) -> None:
        if self._on_state_change is not None:
            self._on_state_change(self.snapshot())
