"""
Meal plan model for storing generated multi-day plans.
"""
import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.models.database import Base, utcnow


class MealPlan(Base):
    __tablename__ = "meal_plans"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    target_calories = Column(Integer, nullable=False)
    duration = Column(Integer, nullable=False)
    dietary_restrictions = Column(JSON, nullable=False, default=list)
    preferences = Column(JSON, nullable=False, default=list)
    meals = Column(JSON, nullable=False)  # serialized DailyMealPlan list (camelCase)
    is_fallback = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    # Relationship
    user = relationship("User", back_populates="meal_plans")

    def __repr__(self):
        return f"<MealPlan(id='{self.id}', user_id='{self.user_id}', duration={self.duration})>"
