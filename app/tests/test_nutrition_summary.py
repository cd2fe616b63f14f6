# tests/test_nutrition_summary.py
from datetime import datetime

from app.schemas.meal_plan import MealPlan
from app.services.fallback_catalog import fallback_plan
from app.services.nutrition_summary import calculate_daily_nutrition, format_meal_plan_for_export
from app.tests.factories import TODAY


def _plan(duration):
    return MealPlan(
        id="plan-1",
        user_id="u1",
        target_calories=1800,
        duration=duration,
        meals=fallback_plan(TODAY, duration),
        created_at=datetime(2024, 1, 1, 9),
    )


def test_daily_nutrition_sums_every_meal_including_snacks():
    day2 = fallback_plan(TODAY, 2)[1]
    totals = calculate_daily_nutrition(day2)
    assert totals.calories == day2.total_calories == 1520
    expected_protein = sum(m.protein for m in day2.meals.all_meals())
    assert totals.protein == expected_protein


def test_export_layout():
    text = format_meal_plan_for_export(_plan(2))
    lines = text.split("\n")
    assert lines[:3] == ["Meal Plan - 2 Days", "Target Calories: 1800", ""]
    assert lines[3] == "Day 1 (2024-01-01)"
    assert lines[4] == "==================="
    assert lines[5] == "Breakfast: Oatmeal with Berries"
    assert "- Calories: 350" in lines
    assert "Total Calories: 1300" in lines
    assert "Snacks:" in lines
    assert "1. Apple with Almond Butter - 200 calories" in lines
    assert "Total Calories: 1520" in lines


def test_export_omits_snacks_section_when_none():
    text = format_meal_plan_for_export(_plan(1))
    assert "Snacks:" not in text
    assert text.count("Protein: ") == 1
