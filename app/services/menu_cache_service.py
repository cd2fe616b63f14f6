# app/services/menu_cache_service.py
"""
Per-user recommended-menu cache.

One slot per user, overwritten on every write (last write wins, no history).
The cache is advisory: MenuCacheService never raises, a failed write is
logged and dropped, and a failed or corrupt read is reported as a miss.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.models.database import SessionLocal, session_scope, utcnow
from app.models.menu_cache import MenuCache
from app.schemas.meal_plan import RecommendedMenu
from app.services.errors import CacheWriteFailure

logger = logging.getLogger(__name__)


class MenuCacheRepository:

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def upsert(self, user_id: str, menus: List[RecommendedMenu]) -> None:
        payload = [m.to_wire() for m in menus]
        try:
            with session_scope(self.session_factory) as db:
                row = db.get(MenuCache, user_id)
                if row is None:
                    db.add(MenuCache(user_id=user_id, menus=payload, updated_at=utcnow()))
                else:
                    row.menus = payload
                    row.updated_at = utcnow()
        except SQLAlchemyError as exc:
            raise CacheWriteFailure(f"menu cache write failed for user {user_id}: {exc}") from exc

    def get(self, user_id: str) -> Optional[List[dict]]:
        with session_scope(self.session_factory) as db:
            row = db.get(MenuCache, user_id)
            return list(row.menus) if row is not None else None


class MenuCacheService:

    def __init__(self, repository: Optional[MenuCacheRepository] = None):
        self.repository = repository or MenuCacheRepository()

    def cache_menus(self, user_id: str, menus: List[RecommendedMenu]) -> None:
        try:
            self.repository.upsert(user_id, menus)
            logger.debug("cached %d menus for user=%s", len(menus), user_id)
        except CacheWriteFailure as exc:
            # Non-critical error, continue without caching
            logger.warning("Error caching recommended menus: %s", exc)
        except Exception:
            logger.exception("Unexpected error caching recommended menus for user=%s", user_id)

    def get_cached_menus(self, user_id: str) -> Optional[List[RecommendedMenu]]:
        try:
            raw = self.repository.get(user_id)
        except Exception:
            logger.exception("Error reading menu cache for user=%s", user_id)
            return None
        if not raw:
            return None
        try:
            return [RecommendedMenu.model_validate(m) for m in raw]
        except PydanticValidationError as exc:
            logger.warning("Discarding corrupt menu cache for user=%s: %s", user_id, exc)
            return None
