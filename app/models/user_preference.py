"""
User preference model: dietary preferences and prior meal ratings.
"""
from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.database import Base, utcnow


class UserPreference(Base):
    __tablename__ = "user_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    dietary_preferences = Column(JSON, nullable=False, default=list)
    cuisine_preferences = Column(JSON, nullable=False, default=list)
    meal_ratings = Column(JSON, nullable=False, default=dict)  # meal name -> 1..5
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationship
    user = relationship("User", back_populates="preferences")

    def __repr__(self):
        return f"<UserPreference(user_id='{self.user_id}')>"
