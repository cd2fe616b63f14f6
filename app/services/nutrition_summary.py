# app/services/nutrition_summary.py
"""Nutrition totals and plain-text export for stored meal plans."""
from __future__ import annotations

from typing import List

from pydantic import BaseModel

from app.schemas.meal_plan import DailyMealPlan, MealPlan, MealSuggestion


class NutritionTotals(BaseModel):
    calories: float = 0
    protein: float = 0
    carbs: float = 0
    fat: float = 0
    fiber: float = 0


def calculate_daily_nutrition(day: DailyMealPlan) -> NutritionTotals:
    totals = NutritionTotals()
    for meal in day.meals.all_meals():
        totals.calories += meal.calories
        totals.protein += meal.protein
        totals.carbs += meal.carbs
        totals.fat += meal.fat
        totals.fiber += meal.fiber
    return totals


def _meal_block(label: str, meal: MealSuggestion) -> List[str]:
    return [
        f"{label}: {meal.name}",
        f"- {meal.description}",
        f"- Calories: {meal.calories:g}",
        "",
    ]


def format_meal_plan_for_export(plan: MealPlan) -> str:
    lines = [
        f"Meal Plan - {plan.duration} Days",
        f"Target Calories: {plan.target_calories}",
        "",
    ]
    for day in plan.meals:
        lines.append(f"Day {day.day} ({day.date.isoformat()})")
        lines.append("===================")
        lines.extend(_meal_block("Breakfast", day.meals.breakfast))
        lines.extend(_meal_block("Lunch", day.meals.lunch))
        lines.extend(_meal_block("Dinner", day.meals.dinner))
        if day.meals.snacks:
            lines.append("Snacks:")
            for i, snack in enumerate(day.meals.snacks, start=1):
                lines.append(f"{i}. {snack.name} - {snack.calories:g} calories")
            lines.append("")
        totals = calculate_daily_nutrition(day)
        lines.append(f"Total Calories: {day.total_calories:g}")
        lines.append(
            f"Protein: {totals.protein:g}g | Carbs: {totals.carbs:g}g | "
            f"Fat: {totals.fat:g}g | Fiber: {totals.fiber:g}g"
        )
        lines.append("")
    return "\n".join(lines)
