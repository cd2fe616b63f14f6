# app/services/meal_plan_service.py
"""
Meal plan orchestration: build prompt -> call oracle -> parse -> persist/cache,
with fallback content on any generation failure.

Behavior:
- The owning user must exist; NotFoundError is the one failure callers see.
- At most one oracle call per request, bounded by `generation_timeout_seconds`.
- Oracle errors, timeouts and parse/shape errors are all treated the same:
  the request is answered from the fallback catalog.
- Generated plans and fallback plans are both persisted.
- Generated menus are cached for the user; fallback menus never are.
- Stores are synchronous SQLAlchemy code and run in worker threads.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Callable, List, Optional

from app.config.settings import settings as default_settings
from app.schemas.meal_plan import (
    DailyMealPlan,
    GenerationRequest,
    MealPlan,
    MenuFilter,
    RecommendedMenu,
)
from app.services.errors import GenerationFailure, NotFoundError, OracleError, ParseError
from app.services.fallback_catalog import fallback_menus, fallback_plan
from app.services.llm_client import TextOracle
from app.services.meal_plan_repository import MealPlanRepository
from app.services.menu_cache_service import MenuCacheService
from app.services.nutrition_summary import format_meal_plan_for_export
from app.services.prompt_builder import (
    MENU_SYSTEM_INSTRUCTION,
    PLAN_SYSTEM_INSTRUCTION,
    build_menu_prompt,
    build_plan_prompt,
)
from app.services.response_parser import apply_menu_filter, parse_menu_response, parse_plan_response
from app.services.user_service import UserService

logger = logging.getLogger(__name__)


def _preview(raw: Optional[str], n: int = 200) -> str:
    if raw is None:
        return "(none)"
    return raw[:n].replace("\n", " ")


class MealPlanService:

    def __init__(
        self,
        user_service: UserService,
        plan_repository: MealPlanRepository,
        menu_cache: MenuCacheService,
        oracle: TextOracle,
        today: Callable[[], date] = date.today,
        settings: Any = None,
    ):
        self.user_service = user_service
        self.plan_repository = plan_repository
        self.menu_cache = menu_cache
        self.oracle = oracle
        self.today = today
        self.settings = settings or default_settings

    # -----------------------
    # Helpers
    # -----------------------
    async def _run_blocking(self, fn: Callable, *args, **kwargs) -> Any:
        return await asyncio.to_thread(fn, *args, **kwargs)

    async def _require_user(self, user_id: str) -> None:
        user = await self._run_blocking(self.user_service.find_user, user_id)
        if user is None:
            raise NotFoundError("user", user_id)

    async def _call_oracle(self, system_instruction: str, prompt: str, temperature: float) -> str:
        timeout = self.settings.generation_timeout_seconds
        try:
            return await asyncio.wait_for(
                self._run_blocking(self.oracle.complete, system_instruction, prompt, temperature),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise OracleError(f"oracle call exceeded {timeout:.1f}s") from exc
        except GenerationFailure:
            raise
        except Exception as exc:
            # anything the oracle raises is a generation failure, never a request failure
            raise OracleError(f"{type(exc).__name__}: {exc}") from exc

    # -----------------------
    # Plans
    # -----------------------
    async def generate_plan(self, request: GenerationRequest) -> MealPlan:
        await self._require_user(request.user_id)

        start_date = self.today()
        prompt = build_plan_prompt(request, start_date)
        raw: Optional[str] = None
        is_fallback = False
        try:
            raw = await self._call_oracle(
                PLAN_SYSTEM_INSTRUCTION, prompt, self.settings.plan_temperature
            )
            parsed = parse_plan_response(
                raw,
                expected_days=request.duration,
                tolerance=self.settings.macro_divergence_tolerance,
            )
            days: List[DailyMealPlan] = parsed.meals
            for w in parsed.warnings:
                logger.warning("plan generation user=%s: %s", request.user_id, w)
        except GenerationFailure as exc:
            logger.warning(
                "Plan generation failed for user=%s (%s: %s); serving fallback. raw=%s",
                request.user_id,
                type(exc).__name__,
                exc,
                _preview(raw),
            )
            days = fallback_plan(start_date, request.duration)
            is_fallback = True

        return await self._run_blocking(
            self.plan_repository.create_plan,
            request.user_id,
            request.target_calories,
            days,
            dietary_restrictions=request.dietary_restrictions,
            preferences=request.preferences,
            is_fallback=is_fallback,
        )

    async def get_plan(self, user_id: str, plan_id: str) -> Optional[MealPlan]:
        return await self._run_blocking(self.plan_repository.get_plan, user_id, plan_id)

    async def list_plans(self, user_id: str) -> List[MealPlan]:
        return await self._run_blocking(self.plan_repository.list_plans, user_id)

    async def delete_plan(self, user_id: str, plan_id: str) -> None:
        deleted = await self._run_blocking(self.plan_repository.delete_plan, user_id, plan_id)
        if not deleted:
            raise NotFoundError("meal plan", plan_id)

    async def export_plan(self, user_id: str, plan_id: str) -> str:
        plan = await self.get_plan(user_id, plan_id)
        if plan is None:
            raise NotFoundError("meal plan", plan_id)
        return format_meal_plan_for_export(plan)

    # -----------------------
    # Recommended menus
    # -----------------------
    async def generate_menus(
        self,
        user_id: str,
        menu_filter: Optional[MenuFilter] = None,
        use_cache: bool = False,
    ) -> List[RecommendedMenu]:
        await self._require_user(user_id)
        menu_filter = menu_filter or MenuFilter()

        if use_cache:
            cached = await self._run_blocking(self.menu_cache.get_cached_menus, user_id)
            hits = apply_menu_filter(cached or [], menu_filter)
            if hits:
                logger.info("menu cache hit user=%s menus=%d", user_id, len(hits))
                return hits

        context = await self._run_blocking(self.user_service.get_user_context, user_id)
        prompt = build_menu_prompt(context, menu_filter, count=self.settings.recommended_menu_count)
        raw: Optional[str] = None
        try:
            raw = await self._call_oracle(
                MENU_SYSTEM_INSTRUCTION, prompt, self.settings.menu_temperature
            )
            parsed = parse_menu_response(raw, tolerance=self.settings.macro_divergence_tolerance)
            for w in parsed.warnings:
                logger.warning("menu generation user=%s: %s", user_id, w)
            menus = apply_menu_filter(parsed.menus, menu_filter)
            if not menus:
                raise ParseError(
                    f"none of {len(parsed.menus)} generated menus satisfy the filter"
                )
        except GenerationFailure as exc:
            logger.warning(
                "Menu generation failed for user=%s (%s: %s); serving fallback. raw=%s",
                user_id,
                type(exc).__name__,
                exc,
                _preview(raw),
            )
            return fallback_menus(menu_filter)

        await self._run_blocking(self.menu_cache.cache_menus, user_id, menus)
        return menus

    async def get_cached_menus(self, user_id: str) -> Optional[List[RecommendedMenu]]:
        return await self._run_blocking(self.menu_cache.get_cached_menus, user_id)
