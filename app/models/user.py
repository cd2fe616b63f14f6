"""
User model for storing account identity.
"""
import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from app.models.database import Base, utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    preferences = relationship(
        "UserPreference", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    meal_plans = relationship("MealPlan", back_populates="user", cascade="all, delete-orphan")
    menu_cache = relationship(
        "MenuCache", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User(id='{self.id}', email='{self.email}')>"
