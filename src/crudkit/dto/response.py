from typing import Any, Callable, Generic, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class MessageResponse(BaseModel):
    """Generic `{message}` envelope for errors and informational replies."""

    message: str


class PageResponse(BaseModel, Generic[T]):
    """
    One page of results plus the total number of rows matching the filter (before paging).
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    data: list[T]
    page_num: int
    page_size: int
    total: int

    @classmethod
    def from_page(cls, rows: Iterable[T], total: int, param: Any) -> "PageResponse[T]":
        """Build from a repository `(rows, total)` pair and the PageQueryParam that produced it."""
        return cls(data=list(rows), page_num=param.page_num, page_size=param.page_size, total=total)

    def map(self, fn: Callable[[T], Any]) -> "PageResponse[Any]":
        """
        Convert every item (e.g. ORM model -> output DTO) keeping the paging metadata.
        """
        return PageResponse(
            data=[fn(item) for item in self.data],
            page_num=self.page_num,
            page_size=self.page_size,
            total=self.total,
        )
