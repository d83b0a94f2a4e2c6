"""src.core.exceptions
애플리케이션 공통 예외 정의
"""


class CustomError(Exception):
    """서비스 공통 예외 (message 속성으로 사용자 메시지 전달)"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProviderUnavailableError(CustomError):
    """
    Geocoding 제공자 호출 실패

    네트워크 오류, 2xx 외 HTTP 상태, 타임아웃 모두 포함합니다.
    """

    def __init__(self, message: str, provider: str | None = None):
        super().__init__(message)
        self.provider = provider


class ProviderResponseError(ProviderUnavailableError):
    """제공자 응답이 스키마와 맞지 않음 (좌표 파싱 실패 등)"""


class ManualValidationError(CustomError):
    """수동 입력 필드 검증 실패"""

    def __init__(self, errors: dict[str, str]):
        super().__init__("주소 입력값이 올바르지 않습니다")
        self.errors = errors


class ResolverStateError(CustomError):
    """현재 상태에서 허용되지 않는 작업"""
