"""
도메인 예외 정의.

서비스 레이어는 HTTPException 대신 아래 예외를 던지고,
main.py 에 등록된 핸들러가 상태 코드와 {"code", "message"} 응답으로 변환한다.
"""


class AppError(Exception):
    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    default_message: str = "서버 오류가 발생했습니다."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = 400
    code = "BAD_REQUEST"
    default_message = "잘못된 요청입니다."


class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "인증이 필요한 요청입니다."


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "접근 권한이 없습니다."


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "요청한 리소스를 찾을 수 없습니다."


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    default_message = "이미 존재하는 리소스입니다."


class PayloadTooLargeError(AppError):
    status_code = 413
    code = "PAYLOAD_TOO_LARGE"
    default_message = "파일 크기가 너무 큽니다."


class StorageError(AppError):
    status_code = 500
    code = "STORAGE_ERROR"
    default_message = "파일 저장 중 오류가 발생했습니다."


class OAuthProviderError(AppError):
    status_code = 502
    code = "OAUTH_PROVIDER_ERROR"
    default_message = "소셜 로그인 제공자 연동 중 오류가 발생했습니다."
