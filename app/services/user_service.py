# app/services/user_service.py
"""
User store backed by SQLAlchemy.

The meal plan services only need to know whether a user exists and the
narrow UserContext that may be rendered into prompts; account creation,
preference updates and deletion live here too so the whole user lifecycle
(including the cascade to plans, preferences and cached menus) sits behind
one object.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

from sqlalchemy.orm import sessionmaker

from app.models.database import SessionLocal, session_scope
from app.models.user import User
from app.models.user_preference import UserPreference
from app.schemas.meal_plan import UserContext

logger = logging.getLogger(__name__)

LIKED_RATING = 4
DISLIKED_RATING = 2


def _clean(values: Optional[Iterable[str]]) -> list:
    out = []
    for v in values or []:
        s = str(v).strip().lower()
        if s and s not in out:
            out.append(s)
    return out


class UserService:

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def find_user(self, user_id: str) -> Optional[User]:
        with session_scope(self.session_factory) as db:
            return db.get(User, user_id)

    def create_user(self, email: str, name: Optional[str] = None, user_id: Optional[str] = None) -> User:
        logger.info("create_user: email=%s", email)
        with session_scope(self.session_factory) as db:
            user = User(email=email.strip().lower(), name=name)
            if user_id:
                user.id = user_id
            db.add(user)
            db.flush()
            return user

    def delete_user(self, user_id: str) -> bool:
        """Delete a user and, by cascade, their plans, preferences and cached menus."""
        with session_scope(self.session_factory) as db:
            user = db.get(User, user_id)
            if user is None:
                return False
            db.delete(user)
        logger.info("delete_user: %s", user_id)
        return True

    def set_preferences(
        self,
        user_id: str,
        dietary_preferences: Optional[Iterable[str]] = None,
        cuisine_preferences: Optional[Iterable[str]] = None,
        meal_ratings: Optional[Dict[str, int]] = None,
    ) -> UserPreference:
        """Upsert the user's single preference row; None leaves a field unchanged."""
        with session_scope(self.session_factory) as db:
            pref = db.query(UserPreference).filter_by(user_id=user_id).one_or_none()
            if pref is None:
                pref = UserPreference(
                    user_id=user_id,
                    dietary_preferences=[],
                    cuisine_preferences=[],
                    meal_ratings={},
                )
                db.add(pref)
            if dietary_preferences is not None:
                pref.dietary_preferences = _clean(dietary_preferences)
            if cuisine_preferences is not None:
                pref.cuisine_preferences = _clean(cuisine_preferences)
            if meal_ratings is not None:
                ratings = {}
                for meal, rating in meal_ratings.items():
                    rating = int(rating)
                    if not 1 <= rating <= 5:
                        raise ValueError(f"rating for {meal!r} must be between 1 and 5")
                    ratings[str(meal).strip()] = rating
                pref.meal_ratings = ratings
            db.flush()
            return pref

    def get_user_context(self, user_id: str) -> UserContext:
        with session_scope(self.session_factory) as db:
            pref = db.query(UserPreference).filter_by(user_id=user_id).one_or_none()
            if pref is None:
                return UserContext()
            ratings = pref.meal_ratings or {}
            return UserContext(
                dietary_preferences=list(pref.dietary_preferences or []),
                cuisine_preferences=list(pref.cuisine_preferences or []),
                liked_meals=sorted(m for m, r in ratings.items() if r >= LIKED_RATING),
                disliked_meals=sorted(m for m, r in ratings.items() if r <= DISLIKED_RATING),
            )
