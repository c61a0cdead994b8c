from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, NonNegativeInt

from .serializers import parse_int64


class Direction(str, Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def _missing_(cls, value: object):
        # accept "asc" / "desc" from query strings
        if isinstance(value, str):
            return cls.__members__.get(value.strip().upper())
        return None

    def apply(self, column: Any) -> Any:
        """Wrap a SQLAlchemy column/expression in the matching ORDER BY modifier."""
        return column.desc() if self is Direction.DESC else column.asc()


class PageQueryParam(BaseModel):
    """
    Paging request as received from the API layer.

    page_num is 0-based: page 0 holds rows [0, page_size). Values are taken as given,
    no clamping happens here or in the repository.
    """

    model_config = ConfigDict(frozen=True)

    page_num: NonNegativeInt
    page_size: NonNegativeInt
    sort_by: str | None = None
    sort_direction: Direction | None = None

    @property
    def offset(self) -> int:
        return self.page_num * self.page_size

    @property
    def direction(self) -> Direction:
        return self.sort_direction or Direction.ASC


class IdsReq(BaseModel):
    """Comma separated id list, e.g. {"ids": "1,2,3"} for bulk deletes."""

    ids: str

    def parse_ids(self) -> list[int]:
        """
        Split and parse the id list. Blank segments are skipped; a non-numeric segment raises ValueError.
        """
        return [parse_int64(part) for part in self.ids.split(",") if part.strip()]
