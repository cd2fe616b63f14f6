# tests/test_prompt_builder.py
import json
import re
from datetime import date

from app.schemas.meal_plan import GenerationRequest, MenuFilter, UserContext
from app.services.prompt_builder import build_menu_prompt, build_plan_prompt
from app.services.response_parser import parse_menu_response, parse_plan_response


def _request(**kw):
    data = {"user_id": "u1", "target_calories": 2000}
    data.update(kw)
    return GenerationRequest(**data)


def _embedded_example(prompt):
    # the example is the first pretty-printed JSON object in the prompt
    start = prompt.index("{\n")
    end = prompt.index("\n}", start) + 2
    return prompt[start:end]


def test_plan_prompt_is_deterministic():
    req = _request(duration=3, dietary_restrictions=["vegetarian"], preferences=["spicy"])
    assert build_plan_prompt(req, date(2024, 1, 1)) == build_plan_prompt(req, date(2024, 1, 1))


def test_plan_prompt_renders_fields_and_dates():
    req = _request(duration=3, dietary_restrictions=["vegetarian", "nut-free"], preferences=["spicy"])
    prompt = build_plan_prompt(req, date(2024, 1, 1))
    assert "3-day meal plan for 2000 calories" in prompt
    assert "Dietary restrictions: vegetarian, nut-free" in prompt
    assert "Preferences: spicy" in prompt
    assert "Start date: 2024-01-01" in prompt
    assert "End date: 2024-01-03" in prompt


def test_plan_prompt_uses_none_sentinel():
    prompt = build_plan_prompt(_request(), date(2024, 1, 1))
    assert "Dietary restrictions: none" in prompt
    assert "Preferences: none" in prompt
    assert "7-day meal plan" in prompt


def test_plan_prompt_example_is_parseable():
    prompt = build_plan_prompt(_request(duration=1), date(2024, 5, 2))
    example = _embedded_example(prompt)
    parsed = parse_plan_response(example, expected_days=1)
    assert parsed.meals[0].date == date(2024, 5, 2)
    assert parsed.meals[0].meals.snacks


def test_menu_prompt_renders_filter_and_context():
    ctx = UserContext(
        dietary_preferences=["pescatarian"],
        cuisine_preferences=["thai"],
        liked_meals=["Pad Thai"],
        disliked_meals=["Liver"],
    )
    f = MenuFilter(difficulty="easy", max_calories=1500, dietary_restrictions=["gluten-free"])
    prompt = build_menu_prompt(ctx, f, count=4)
    assert prompt.startswith("Generate 4 diverse recommended meal menus")
    assert "Difficulty level: easy" in prompt
    assert "Max calories per menu: 1500" in prompt
    assert "Dietary restrictions: gluten-free" in prompt
    assert "Dietary preferences: pescatarian" in prompt
    assert "Meals the user rated highly: Pad Thai" in prompt
    assert "Meals the user rated poorly: Liver" in prompt


def test_menu_prompt_without_filter_uses_none():
    prompt = build_menu_prompt(UserContext(), None)
    for label in ("Difficulty level", "Max calories per menu", "Dietary restrictions", "Cuisine preferences"):
        assert re.search(rf"{label}: none$", prompt, re.MULTILINE)


def test_menu_prompt_example_is_parseable():
    prompt = build_menu_prompt(UserContext(), MenuFilter())
    parsed = parse_menu_response(_embedded_example(prompt))
    assert parsed.menus[0].id == "menu-1"
    assert json.loads(_embedded_example(prompt))["menus"][0]["totalCalories"] == parsed.menus[0].total_calories
