"""src.main
FastAPI 애플리케이션 진입점
"""
import time
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from src.core.logging import setup_logging
from src.apis.address_router import router as address_router
from src.apis.geocoding_router import router as geocoding_router

# 로깅 초기화
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    애플리케이션 수명주기 관리

    앱 시작 시: 설정 요약 로깅
    앱 종료 시: 로깅만 수행 (세션별 resolver는 WebSocket 종료 시 정리됨)
    """
    logger.info("=== 애플리케이션 시작: 초기화 중 ===")
    logger.info("주소 검색 제공자: data.gouv.fr → nominatim (fallback)")

    logger.info("=== 애플리케이션 준비 완료 ===")

    yield

    logger.info("=== 애플리케이션 종료 중 ===")


app = FastAPI(
    title="Light Church Address Service",
    description="교회 등록/수정 폼의 주소 자동완성 및 Geocoding 서비스입니다.",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs/swagger",
    redoc_url="/docs/redoc"
)


# 라우터 등록
app.include_router(address_router)
app.include_router(geocoding_router)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """요청 처리 시간 측정 미들웨어"""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time

    response.headers["X-Process-Time"] = f"{process_time:.4f}"

    logger.info(
        f"요청 처리 완료: {request.method} {request.url.path} - {process_time:.4f}초"
    )

    return response


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001, loop="asyncio")
