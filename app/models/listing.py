from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Numeric,
    DateTime,
    ForeignKey,
)
from sqlalchemy.orm import relationship

from app.core.database import Base
from app.models.review import listing_reviews


class Listing(Base):
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, index=True)

    # weak reference: removing a user leaves their listings in place
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)

    price = Column(Numeric(10, 2), nullable=False, default=0)

    location = Column(String(255), nullable=False)
    country = Column(String(255), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    owner = relationship("User", back_populates="listings")

    images = relationship(
        "ListingImage",
        back_populates="listing",
        cascade="all, delete-orphan",
        order_by="ListingImage.sort_order",
    )

    # back-reference set; the review rows themselves are removed by the
    # lifecycle handlers, not by an ORM cascade
    reviews = relationship(
        "Review",
        secondary=listing_reviews,
        order_by="Review.created_at",
    )

    @property
    def review_ids(self) -> list[int]:
        return [review.id for review in self.reviews]

    @property
    def thumbnail_url(self) -> str | None:
        return self.images[0].url if self.images else None
