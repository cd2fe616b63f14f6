# app/api/meal_plans.py
"""
Meal plan endpoints.

Every response uses the envelope {"success": bool, "data": ..., "message": str}.
Generation never fails because of the model: a broken or unavailable oracle
yields fallback content with a 200.
"""
from __future__ import annotations

import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from app.api.auth import get_current_user_id
from app.schemas.meal_plan import (
    Difficulty,
    GenerationRequest,
    GenerationRequestBody,
    MenuFilter,
    validate_payload,
)
from app.services.errors import NotFoundError
from app.services.meal_plan_service import MealPlanService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_meal_plan_service(request: Request) -> MealPlanService:
    return request.app.state.meal_plan_service


def _ok(data: Any, message: str) -> dict:
    if isinstance(data, list):
        data = [d.to_wire() for d in data]
    elif data is not None:
        data = data.to_wire()
    return {"success": True, "data": data, "message": message}


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


@router.post("/generate")
async def generate_meal_plan(
    body: GenerationRequestBody,
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    request = GenerationRequest(user_id=user_id, **body.model_dump())
    plan = await service.generate_plan(request)
    return _ok(plan, "Meal plan generated successfully")


@router.get("/recommended")
async def get_recommended_menus(
    difficulty: Optional[Difficulty] = Query(default=None),
    max_calories: Optional[int] = Query(default=None, alias="maxCalories"),
    dietary_restrictions: Optional[str] = Query(default=None, alias="dietaryRestrictions"),
    cached: bool = Query(default=False),
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    menu_filter = validate_payload(
        MenuFilter,
        {
            "difficulty": difficulty,
            "maxCalories": max_calories,
            "dietaryRestrictions": _split_csv(dietary_restrictions),
        },
    )
    menus = await service.generate_menus(user_id, menu_filter, use_cache=cached)
    return _ok(menus, "Recommended menus retrieved successfully")


@router.get("/{meal_plan_id}/export", response_class=PlainTextResponse)
async def export_meal_plan(
    meal_plan_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    return await service.export_plan(user_id, meal_plan_id)


@router.get("/{meal_plan_id}")
async def get_meal_plan(
    meal_plan_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    plan = await service.get_plan(user_id, meal_plan_id)
    if plan is None:
        raise NotFoundError("meal plan", meal_plan_id)
    return _ok(plan, "Meal plan retrieved successfully")


@router.get("")
async def list_meal_plans(
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    plans = await service.list_plans(user_id)
    return _ok(plans, "Meal plans retrieved successfully")


@router.delete("/{meal_plan_id}")
async def delete_meal_plan(
    meal_plan_id: str,
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    await service.delete_plan(user_id, meal_plan_id)
    return {"success": True, "message": "Meal plan deleted successfully"}
