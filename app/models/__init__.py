"""Database models for the meal planning service."""
from app.models.database import Base, engine
from app.models.user import User
from app.models.user_preference import UserPreference
from app.models.meal_plan import MealPlan
from app.models.menu_cache import MenuCache

# Export all models
__all__ = ["User", "UserPreference", "MealPlan", "MenuCache", "Base", "engine"]
