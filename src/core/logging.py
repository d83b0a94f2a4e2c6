"""src.core.logging
Python 표준 logging 모듈 설정
"""
import logging
import sys
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler
from src.core.config import settings


def _rotating_handler(path: Path, formatter: logging.Formatter) -> TimedRotatingFileHandler:
    handler = TimedRotatingFileHandler(
        filename=str(path),
        when='midnight',
        interval=1,
        backupCount=30,
        encoding='utf-8'
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(log_level: str | None = None):
    """
    애플리케이션 로깅 설정

    Args:
        log_level: 로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            생략 시 settings.LOG_LEVEL 사용
    """
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # 콘솔 핸들러 (모든 환경에서 사용)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level or settings.LOG_LEVEL)

    # 기존 핸들러 제거 (중복 방지)
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)

    # httpx 요청 로그는 WARNING 이상만
    logging.getLogger("httpx").setLevel(logging.WARNING)

    environment = settings.ENVIRONMENT.lower()

    if environment == 'prod':
        log_dir = Path(settings.LOG_DIR)
        log_dir.mkdir(parents=True, exist_ok=True)

        root_logger.addHandler(_rotating_handler(log_dir / 'lightchurch-address.log', formatter))

        # 에러 로그 파일 (ERROR 이상만)
        error_handler = _rotating_handler(log_dir / 'lightchurch-address.error.log', formatter)
        error_handler.setLevel(logging.ERROR)
        root_logger.addHandler(error_handler)

        logging.info(f"로깅 시스템 초기화 완료 (환경: {environment}, 로그 경로: {log_dir})")
    else:
        logging.info(f"로깅 시스템 초기화 완료 (환경: {environment}, 파일 로그 비활성화)")
