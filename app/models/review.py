from datetime import datetime

from sqlalchemy import Column, Integer, Text, ForeignKey, DateTime, Table
from sqlalchemy.orm import relationship

from app.core.database import Base


# listing -> review back-references
listing_reviews = Table(
    "listing_reviews",
    Base.metadata,
    Column("listing_id", Integer, ForeignKey("listings.id", ondelete="CASCADE"), primary_key=True),
    Column("review_id", Integer, ForeignKey("reviews.id", ondelete="CASCADE"), primary_key=True),
)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)

    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    author = relationship("User")
