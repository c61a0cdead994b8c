from .request import Direction, IdsReq, PageQueryParam
from .response import MessageResponse, PageResponse
from .serializers import Int64Str, OptionalInt64Str
from .user import UserIn, UserOut

__all__ = [
    "Direction",
    "IdsReq",
    "PageQueryParam",
    "MessageResponse",
    "PageResponse",
    "Int64Str",
    "OptionalInt64Str",
    "UserIn",
    "UserOut",
]
