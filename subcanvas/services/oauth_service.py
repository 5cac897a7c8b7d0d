import logging
import httpx
from pydantic import ValidationError

from subcanvas.core.config import Settings, settings as app_settings
from subcanvas.core.exceptions import BadRequestError, OAuthProviderError
from subcanvas.schemas.auth import SocialLoginRequest

logger = logging.getLogger(__name__)

KAKAO_AUTHORIZE_URL = "https://kauth.kakao.com/oauth/authorize"
KAKAO_TOKEN_URL = "https://kauth.kakao.com/oauth/token"
KAKAO_USER_INFO_URL = "https://kapi.kakao.com/v2/user/me"

GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USER_INFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"


class OAuthService:
    """
    서버 측 OAuth 인가 코드 교환 (카카오, 구글)
    결과는 소셜 로그인 요청과 같은 형태로 돌려주고, 가입/로그인은 auth_service 가 처리한다.
    """

    def __init__(self, settings: Settings = app_settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        # 테스트에서 httpx.MockTransport 주입용
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport, timeout=10.0)

    def kakao_login_url(self) -> str:
        if not self.settings.KAKAO_CLIENT_ID or not self.settings.KAKAO_REDIRECT_URI:
            raise BadRequestError("카카오 로그인이 설정되지 않았습니다.")
        return str(httpx.URL(KAKAO_AUTHORIZE_URL, params={
            "response_type": "code",
            "client_id": self.settings.KAKAO_CLIENT_ID,
            "redirect_uri": self.settings.KAKAO_REDIRECT_URI,
        }))

    def google_login_url(self) -> str:
        if not self.settings.GOOGLE_CLIENT_ID or not self.settings.GOOGLE_REDIRECT_URI:
            raise BadRequestError("구글 로그인이 설정되지 않았습니다.")
        return str(httpx.URL(GOOGLE_AUTHORIZE_URL, params={
            "client_id": self.settings.GOOGLE_CLIENT_ID,
            "redirect_uri": self.settings.GOOGLE_REDIRECT_URI,
            "response_type": "code",
            "scope": "openid email profile",
        }))

    async def _exchange(self, token_url: str, user_info_url: str, token_data: dict, provider_label: str) -> dict:
        """인가 코드 -> Access Token -> 사용자 정보"""
        async with self._client() as client:
            try:
                token_response = await client.post(token_url, data=token_data)
                token_response.raise_for_status()
                provider_access_token = token_response.json().get("access_token")

                if not provider_access_token:
                    logger.warning(f"⚠️ {provider_label} Access Token 발급 실패 (토큰 값 없음)")
                    raise BadRequestError(f"{provider_label} Access Token 발급 실패")

                headers = {"Authorization": f"Bearer {provider_access_token}"}
                user_info_response = await client.get(user_info_url, headers=headers)
                user_info_response.raise_for_status()
                return user_info_response.json()

            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"⛔ {provider_label} API 연동 오류 발생: {e}", exc_info=True)
                raise OAuthProviderError(f"{provider_label} API 연동 오류") from e

    @staticmethod
    def _identity(email, nickname, provider: str, provider_id: str, provider_label: str) -> SocialLoginRequest:
        if not email:
            raise BadRequestError(f"{provider_label} 계정의 이메일 제공 동의가 필요합니다.")
        try:
            return SocialLoginRequest(email=email, nickname=nickname, provider=provider, provider_id=provider_id)
        except ValidationError as e:
            logger.warning(f"⚠️ {provider_label} 사용자 정보 형식 오류: {e}")
            raise BadRequestError(f"{provider_label} 사용자 정보를 확인할 수 없습니다.") from e

    async def fetch_kakao_identity(self, code: str) -> SocialLoginRequest:
        token_data = {
            "grant_type": "authorization_code",
            "client_id": self.settings.KAKAO_CLIENT_ID,
            "redirect_uri": self.settings.KAKAO_REDIRECT_URI,
            "client_secret": self.settings.KAKAO_CLIENT_SECRET,
            "code": code,
        }
        user_info = await self._exchange(KAKAO_TOKEN_URL, KAKAO_USER_INFO_URL, token_data, "카카오")

        kakao_id = user_info.get("id")
        if not kakao_id:
            logger.warning("⚠️ 카카오 User ID 조회 실패 (ID 값 없음)")
            raise BadRequestError("카카오 User ID 조회 실패")

        kakao_account = user_info.get("kakao_account") or {}
        profile = kakao_account.get("profile") or {}
        nickname = profile.get("nickname") or kakao_account.get("name") or f"사용자_{str(kakao_id)[:4]}"

        return self._identity(kakao_account.get("email"), nickname, "KAKAO", str(kakao_id), "카카오")

    async def fetch_google_identity(self, code: str) -> SocialLoginRequest:
        token_data = {
            "grant_type": "authorization_code",
            "client_id": self.settings.GOOGLE_CLIENT_ID,
            "client_secret": self.settings.GOOGLE_CLIENT_SECRET,
            "redirect_uri": self.settings.GOOGLE_REDIRECT_URI,
            "code": code,
        }
        user_info = await self._exchange(GOOGLE_TOKEN_URL, GOOGLE_USER_INFO_URL, token_data, "구글")

        # 구글은 'sub' 필드를 고유 ID로 사용
        google_id = user_info.get("sub")
        if not google_id:
            logger.warning("⚠️ 구글 User ID 조회 실패 (ID 값 없음)")
            raise BadRequestError("구글 User ID 조회 실패")

        nickname = user_info.get("name") or f"사용자_{str(google_id)[:4]}"
        return self._identity(user_info.get("email"), nickname, "GOOGLE", str(google_id), "구글")


oauth_service = OAuthService()
