from typing import Optional, List, Generic, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


# Response envelope: every endpoint answers { message, data }
class ApiResponse(BaseModel, Generic[T]):
    message: str
    data: Optional[T] = None


# Error responses
class ErrorResponse(BaseModel):
    message: str
    data: None = None


class SeatsUnavailableError(ErrorResponse):
    seat_ids: List[str]
