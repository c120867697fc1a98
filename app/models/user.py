from sqlalchemy import Column, Integer, String, DateTime, func

from sqlalchemy.orm import relationship

from app.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(150), unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    # bcrypt hash, salt included
    hashed_password = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # no cascade: listings keep their owner id when a user goes away
    listings = relationship("Listing", back_populates="owner")
