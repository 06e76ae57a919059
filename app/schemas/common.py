from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """JSON in and out is camelCase; Python attributes stay snake_case."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class MessageResponse(CamelModel):
    msg: str


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int


class Page(CamelModel, Generic[T]):
    success: bool = True
    data: List[T]
    message: Optional[str] = None
    pagination: Pagination


class ListResponse(CamelModel, Generic[T]):
    success: bool = True
    data: List[T]
    message: Optional[str] = None
