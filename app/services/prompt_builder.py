# app/services/prompt_builder.py
"""
Prompt construction for the meal plan and recommended menu generators.

Both builders are pure: the only date they use is the one passed in, and
every optional field is rendered, with "none" when the caller gave nothing,
so the model can tell "no restriction" apart from a missing line. Each
prompt embeds a literal JSON example of the reply shape the parser expects.
"""
from __future__ import annotations

import json
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Optional

from app.schemas.meal_plan import GenerationRequest, MenuFilter, UserContext

NONE = "none"

PLAN_SYSTEM_INSTRUCTION = (
    "You are a professional nutritionist. Generate detailed meal plans with accurate "
    "nutritional information. Reply with a single JSON object only, no markdown."
)

MENU_SYSTEM_INSTRUCTION = (
    "You are a professional chef and nutritionist. Generate diverse, healthy meal "
    "recommendations with accurate nutritional information in JSON format. "
    "Reply with a single JSON object only, no markdown."
)

_EXAMPLE_MEAL: Dict[str, Any] = {
    "name": "Meal name",
    "description": "Brief description",
    "calories": 400,
    "protein": 20,
    "carbs": 45,
    "fat": 15,
    "fiber": 8,
    "ingredients": ["ingredient1", "ingredient2"],
    "instructions": ["step1", "step2"],
    "prepTime": 15,
    "difficulty": "easy",
}

_EXAMPLE_MENU_MEAL: Dict[str, Any] = {
    "name": "Greek Salad Bowl",
    "description": "Fresh vegetables with feta and olive oil",
    "calories": 350,
    "protein": 15,
    "carbs": 25,
    "fat": 20,
    "fiber": 8,
    "ingredients": ["mixed greens", "feta cheese", "olives"],
    "instructions": ["Combine ingredients", "Drizzle with olive oil"],
    "prepTime": 10,
    "difficulty": "easy",
}


def _join(values: Optional[Iterable[str]]) -> str:
    cleaned = [v.strip() for v in (values or []) if v and v.strip()]
    return ", ".join(cleaned) if cleaned else NONE


def _plan_example(start_date: date) -> Dict[str, Any]:
    snack = dict(_EXAMPLE_MEAL, name="Snack name", calories=150, protein=5, carbs=20, fat=6, fiber=3)
    return {
        "meals": [
            {
                "day": 1,
                "date": start_date.isoformat(),
                "meals": {
                    "breakfast": _EXAMPLE_MEAL,
                    "lunch": _EXAMPLE_MEAL,
                    "dinner": _EXAMPLE_MEAL,
                    "snacks": [snack],
                },
                "totalCalories": 1350,
            }
        ]
    }


def _menu_example() -> Dict[str, Any]:
    return {
        "menus": [
            {
                "id": "menu-1",
                "name": "Mediterranean Delight",
                "description": "Fresh Mediterranean flavors with healthy fats",
                "meals": [_EXAMPLE_MENU_MEAL],
                "totalCalories": 350,
                "tags": ["mediterranean", "healthy", "fresh"],
                "difficulty": "easy",
                "prepTime": 10,
            }
        ]
    }


def build_plan_prompt(request: GenerationRequest, start_date: date) -> str:
    """Render the user prompt for a multi-day plan starting on `start_date`."""
    duration = request.duration
    end_date = start_date + timedelta(days=duration - 1)
    example = json.dumps(_plan_example(start_date), indent=2)

    return f"""Generate a {duration}-day meal plan for {request.target_calories} calories per day.

Start date: {start_date.isoformat()}
End date: {end_date.isoformat()}
Dietary restrictions: {_join(request.dietary_restrictions)}
Preferences: {_join(request.preferences)}

Please provide a detailed meal plan in JSON format with the following structure:
{example}

Rules:
- Return exactly {duration} day objects numbered 1 to {duration}, one per calendar date from {start_date.isoformat()}.
- Every day must have breakfast, lunch and dinner; "snacks" is an optional list.
- calories is kcal; protein, carbs, fat and fiber are grams; prepTime is minutes.
- difficulty is one of "easy", "medium", "hard".
- Keep calories consistent with macros (4 kcal/g protein and carbs, 9 kcal/g fat).

Ensure each day's meals total approximately {request.target_calories} calories and include balanced macronutrients."""


def build_menu_prompt(
    user_context: UserContext,
    menu_filter: Optional[MenuFilter] = None,
    count: int = 6,
) -> str:
    """Render the user prompt for `count` standalone recommended menus."""
    f = menu_filter or MenuFilter()
    difficulty = f.difficulty or NONE
    max_calories = str(f.max_calories) if f.max_calories is not None else NONE
    example = json.dumps(_menu_example(), indent=2)

    return f"""Generate {count} diverse recommended meal menus for a user with the following preferences:

Difficulty level: {difficulty}
Max calories per menu: {max_calories}
Dietary restrictions: {_join(f.dietary_restrictions)}
Dietary preferences: {_join(user_context.dietary_preferences)}
Cuisine preferences: {_join(user_context.cuisine_preferences)}
Meals the user rated highly: {_join(user_context.liked_meals)}
Meals the user rated poorly: {_join(user_context.disliked_meals)}

Please provide recommendations in JSON format:
{example}

Rules:
- Every menu needs a non-empty "meals" list; totalCalories is the sum of its meals' calories.
- calories is kcal; protein, carbs, fat and fiber are grams; prepTime is minutes.
- difficulty is one of "easy", "medium", "hard".
- A menu must not exceed the max calories above unless it is "none".

Make each menu unique with different cuisines and cooking styles."""
