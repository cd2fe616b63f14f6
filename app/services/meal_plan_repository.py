# app/services/meal_plan_repository.py
"""
Durable plan store: persists MealPlan rows and maps them back into the
pydantic MealPlan contract. Every query is scoped to the owning user.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from app.models.database import SessionLocal, session_scope, utcnow
from app.models.meal_plan import MealPlan as MealPlanRow
from app.schemas.meal_plan import DailyMealPlan, MealPlan

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo; stored values are always UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _row_to_plan(row: MealPlanRow) -> MealPlan:
    return MealPlan(
        id=row.id,
        user_id=row.user_id,
        target_calories=row.target_calories,
        duration=row.duration,
        meals=[DailyMealPlan.model_validate(d) for d in row.meals or []],
        created_at=_as_utc(row.created_at),
    )


class MealPlanRepository:

    def __init__(self, session_factory: Optional[sessionmaker] = None):
        self.session_factory = session_factory or SessionLocal

    def create_plan(
        self,
        owner_id: str,
        target_calories: int,
        days: List[DailyMealPlan],
        dietary_restrictions: Optional[Iterable[str]] = None,
        preferences: Optional[Iterable[str]] = None,
        is_fallback: bool = False,
        created_at: Optional[datetime] = None,
    ) -> MealPlan:
        with session_scope(self.session_factory) as db:
            row = MealPlanRow(
                user_id=owner_id,
                target_calories=target_calories,
                duration=len(days),
                dietary_restrictions=list(dietary_restrictions or []),
                preferences=list(preferences or []),
                meals=[d.to_wire() for d in days],
                is_fallback=is_fallback,
                created_at=created_at or utcnow(),
            )
            db.add(row)
            db.flush()
            plan = _row_to_plan(row)
        logger.info(
            "create_plan: id=%s user=%s days=%d fallback=%s", plan.id, owner_id, plan.duration, is_fallback
        )
        return plan

    def get_plan(self, owner_id: str, plan_id: str) -> Optional[MealPlan]:
        with session_scope(self.session_factory) as db:
            row = db.scalars(
                select(MealPlanRow).where(MealPlanRow.id == plan_id, MealPlanRow.user_id == owner_id)
            ).one_or_none()
            return _row_to_plan(row) if row else None

    def list_plans(self, owner_id: str) -> List[MealPlan]:
        """Plans for `owner_id`, most recent first."""
        with session_scope(self.session_factory) as db:
            rows = db.scalars(
                select(MealPlanRow)
                .where(MealPlanRow.user_id == owner_id)
                .order_by(MealPlanRow.created_at.desc())
            ).all()
            return [_row_to_plan(r) for r in rows]

    def delete_plan(self, owner_id: str, plan_id: str) -> bool:
        with session_scope(self.session_factory) as db:
            row = db.scalars(
                select(MealPlanRow).where(MealPlanRow.id == plan_id, MealPlanRow.user_id == owner_id)
            ).one_or_none()
            if row is None:
                return False
            db.delete(row)
        logger.info("delete_plan: id=%s user=%s", plan_id, owner_id)
        return True
