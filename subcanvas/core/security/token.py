import uuid
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt
from pydantic import BaseModel

from subcanvas.core.config import settings


class TokenData(BaseModel):
    user_id: uuid.UUID
    email: str


class TokenIssuer:
    """
    Access Token(JWT) 발급/검증.
    페이로드: {"email": ..., "sub": user_id, "exp": ...}
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def create_access_token(self, user_id: uuid.UUID, email: str) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        to_encode = {
            "email": email,
            "sub": str(user_id),
            "exp": expire,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> TokenData | None:
        """
        서명/만료를 검증하고 페이로드(TokenData)를 반환. 유효하지 않으면 None
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

        user_id_str = payload.get("sub")
        email = payload.get("email")
        if user_id_str is None or email is None:
            return None

        try:
            user_id_uuid = uuid.UUID(user_id_str)
        except ValueError:
            return None

        return TokenData(user_id=user_id_uuid, email=email)


token_issuer = TokenIssuer(
    secret_key=settings.JWT_SECRET_KEY,
    algorithm=settings.JWT_ALGORITHM,
    expire_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
)
