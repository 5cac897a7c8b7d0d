from passlib.context import CryptContext

# bcrypt 알고리즘을 사용하도록 CryptContext 설정
# deprecated="auto": 안전하지 않은 알고리즘 사용 시 경고.
BCRYPT_ROUNDS = 10


class PasswordHasher:
    """비밀번호 해싱/검증. 테스트에서 다른 구현으로 교체할 수 있도록 객체로 감싼다."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str | None) -> bool:
        if not hashed_password:
            return False
        return self._context.verify(plain_password, hashed_password)


password_hasher = PasswordHasher()

def hash_password(password: str) -> str:
    """
    비밀번호를 bcrypt 알고리즘으로 해싱하는 함수.
    :param password: 사용자가 입력한 평문 비밀번호
    :return: bcrypt로 해싱된 비밀번호 문자열
    """
    return password_hasher.hash(password)

def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    입력된 평문 비밀번호와 해싱된 비밀번호를 비교하는 함수.
    :param plain_password: 사용자가 입력한 평문 비밀번호
    :param hashed_password: 데이터베이스에 저장된 해싱된 비밀번호
    :return: 두 비밀번호가 일치하면 True, 그렇지 않으면 False
    """
    return password_hasher.verify(plain_password, hashed_password)
