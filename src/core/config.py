"""src.core.config.py
.env 파일에서 설정값을 할당합니다.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    ENVIRONMENT: str = "dev"  # dev: 로컬, prod: 서버환경
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "/var/log/lightchurch"  # prod 환경에서만 사용

    # 주소 API (api-adresse.data.gouv.fr, 프랑스 전용)
    BAN_API_URL: str = "https://api-adresse.data.gouv.fr/search/"

    # Nominatim (OpenStreetMap, fallback)
    NOMINATIM_API_URL: str = "https://nominatim.openstreetmap.org/search"
    NOMINATIM_USER_AGENT: str = "LightChurch/1.0"  # Nominatim은 User-Agent 필수

    # 주소 자동완성
    GEOCODING_TIMEOUT: float = 5.0  # 제공자별 요청 제한 시간 (초)
    ADDRESS_DEBOUNCE_SECONDS: float = 0.3
    ADDRESS_MIN_QUERY_LENGTH: int = 3
    ADDRESS_SUGGESTION_LIMIT: int = 5

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
settings = Settings()
