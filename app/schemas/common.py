from typing import Any, Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")

class CamelModel(BaseModel):
    # 对外 JSON 统一 camelCase，入参两种写法都接受
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

class ApiResponse(CamelModel, Generic[T]):
    status_code: int = 200
    data: Optional[T] = None
    message: str = "Success"
    success: bool = True

def ok(data: Any = None, message: str = "Success", status_code: int = 200) -> ApiResponse:
    return ApiResponse(
        status_code=status_code,
        data=data,
        message=message,
        success=status_code < 400,
    )
