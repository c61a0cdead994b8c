from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .serializers import Int64Str


class UserIn(BaseModel):
    """Payload for creating or replacing a user."""

    name: str = Field(max_length=100)
    email: str = Field(max_length=255)
    is_active: bool = True

    def to_model(self, id: int | None = None):
        # imported here: dto stays importable without the ORM layer
        from crudkit.models.user import User

        user = User(name=self.name, email=self.email, is_active=self.is_active)
        if id is not None:
            user.id = id
        return user


class UserOut(BaseModel):
    """User as sent to clients; `id` is a decimal string on the wire."""

    model_config = ConfigDict(from_attributes=True)

    id: Int64Str
    name: str
    email: str
    is_active: bool
    created_at: datetime | None = None
