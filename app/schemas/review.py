from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.user import OwnerRead


class ReviewCreate(BaseModel):
    content: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)

    model_config = ConfigDict(str_strip_whitespace=True)


class ReviewRead(BaseModel):
    id: int
    content: str
    rating: int
    created_at: datetime
    author: OwnerRead

    model_config = ConfigDict(from_attributes=True)
