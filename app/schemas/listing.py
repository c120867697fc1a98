from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.review import ReviewRead
from app.schemas.user import OwnerRead


class ListingImageSchema(BaseModel):
    url: str
    storage_key: str

    model_config = ConfigDict(from_attributes=True)


class ListingBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    location: str = Field(min_length=1, max_length=255)
    country: str = Field(min_length=1, max_length=255)

    model_config = ConfigDict(str_strip_whitespace=True)


class ListingCreate(ListingBase):
    pass


class ListingUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    price: Optional[Decimal] = Field(default=None, ge=0)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    country: Optional[str] = Field(default=None, min_length=1, max_length=255)

    model_config = ConfigDict(str_strip_whitespace=True)


class ListingRead(ListingBase):
    id: int
    owner_id: int
    created_at: datetime
    updated_at: datetime
    thumbnail_url: Optional[str] = None

    images: List[ListingImageSchema] = []
    review_ids: List[int] = []

    model_config = ConfigDict(from_attributes=True)


class ListingDetail(ListingRead):
    """A listing with its owner and reviews (each with its author) resolved."""

    owner: OwnerRead
    reviews: List[ReviewRead] = []
