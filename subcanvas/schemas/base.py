from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    API 입출력 공통 베이스.
    - JSON 필드는 camelCase (pagePath, accessToken ...)
    - 입력은 snake_case 필드명도 허용
    - 정의되지 않은 필드는 무시(제거)
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )


class MessageResponse(CamelModel):
    """
    간단한 성공/오류 메시지 반환용
    """
    message: str
