# app/services/response_parser.py
"""
Strict decoding of oracle replies into plan days and recommended menus.

The parser never retries and never substitutes content: anything it cannot
accept raises ParseError and the caller decides what to serve instead.

Accepted input is a single JSON object, optionally wrapped in a ```json
fence or surrounded by stray prose. Shape rules:
- plans: {"meals": [day, ...]} where every day has breakfast, lunch and
  dinner, macros are non-negative JSON numbers, and day indices form the
  contiguous run 1..N with no duplicates
- menus: {"menus": [menu, ...]} with at least one meal per menu
`totalCalories` is always recomputed from the meals.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.schemas.meal_plan import DailyMealPlan, MealSuggestion, MenuFilter, RecommendedMenu
from app.services.errors import ParseError

logger = logging.getLogger(__name__)

DEFAULT_DIVERGENCE_TOLERANCE = 0.25

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)
_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


@dataclass
class ParsedPlan:
    meals: List[DailyMealPlan]
    warnings: List[str] = field(default_factory=list)


@dataclass
class ParsedMenus:
    menus: List[RecommendedMenu]
    warnings: List[str] = field(default_factory=list)


def _decode_object(raw: Optional[str]) -> Dict[str, Any]:
    if raw is None or not str(raw).strip():
        raise ParseError("empty response")
    text = str(raw).strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1).strip()
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = _OBJECT_RE.search(text)
        if not match:
            raise ParseError("no JSON object found")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as exc:
            raise ParseError(f"malformed JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ParseError("top-level JSON value must be an object")
    return data


def _describe(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors(include_url=False)[:5]:
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}")
    return "; ".join(parts)


def _require_list(data: Dict[str, Any], key: str) -> List[Any]:
    items = data.get(key)
    if not isinstance(items, list):
        raise ParseError(f"'{key}' must be a list")
    if not items:
        raise ParseError(f"'{key}' is empty")
    return items


def macro_divergence(meal: MealSuggestion) -> float:
    """Relative gap between reported calories and 4/4/9 macro energy (0.0 = exact)."""
    energy = meal.macro_energy
    scale = max(meal.calories, energy)
    if scale == 0:
        return 0.0
    return abs(meal.calories - energy) / scale


def suspect_meal_warnings(
    meals: Iterable[MealSuggestion], where: str, tolerance: float
) -> List[str]:
    warnings = []
    for meal in meals:
        gap = macro_divergence(meal)
        if gap > tolerance:
            warnings.append(
                f"{where}: '{meal.name}' reports {meal.calories:g} kcal but macros imply "
                f"{meal.macro_energy:g} kcal ({gap:.0%} apart)"
            )
    return warnings


def parse_plan_response(
    raw: Optional[str],
    expected_days: Optional[int] = None,
    tolerance: float = DEFAULT_DIVERGENCE_TOLERANCE,
) -> ParsedPlan:
    """
    Decode a plan reply. With `expected_days` the indices must be exactly
    1..expected_days, otherwise 1..len(days). Days come back sorted by index.
    """
    data = _decode_object(raw)
    entries = _require_list(data, "meals")

    days: List[DailyMealPlan] = []
    warnings: List[str] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ParseError(f"day entry {i} is not an object")
        try:
            day = DailyMealPlan.model_validate(entry)
        except PydanticValidationError as exc:
            raise ParseError(f"day entry {i}: {_describe(exc)}") from exc

        reported = entry.get("totalCalories")
        if isinstance(reported, (int, float)) and not isinstance(reported, bool):
            if abs(reported - day.total_calories) > 0.5:
                warnings.append(
                    f"day {day.day}: reported totalCalories {reported:g} replaced by {day.total_calories:g}"
                )
        warnings.extend(suspect_meal_warnings(day.meals.all_meals(), f"day {day.day}", tolerance))
        days.append(day)

    expected = expected_days if expected_days is not None else len(days)
    indices = [d.day for d in days]
    if len(set(indices)) != len(indices):
        raise ParseError(f"duplicate day indices: {sorted(indices)}")
    out_of_range = [i for i in indices if i < 1 or i > expected]
    if out_of_range:
        raise ParseError(f"day indices out of range 1..{expected}: {out_of_range}")
    if len(indices) != expected:
        raise ParseError(f"expected {expected} days, got {len(indices)}")

    days.sort(key=lambda d: d.day)
    return ParsedPlan(meals=days, warnings=warnings)


def parse_menu_response(
    raw: Optional[str], tolerance: float = DEFAULT_DIVERGENCE_TOLERANCE
) -> ParsedMenus:
    """Decode a recommended-menu reply; menus without an id get `menu-<n>`."""
    data = _decode_object(raw)
    entries = _require_list(data, "menus")

    menus: List[RecommendedMenu] = []
    warnings: List[str] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ParseError(f"menu entry {i} is not an object")
        menu_id = entry.get("id")
        if menu_id is None or menu_id == "":
            entry = {**entry, "id": f"menu-{i + 1}"}
        elif isinstance(menu_id, int) and not isinstance(menu_id, bool):
            entry = {**entry, "id": str(menu_id)}
        try:
            menu = RecommendedMenu.model_validate(entry)
        except PydanticValidationError as exc:
            raise ParseError(f"menu entry {i}: {_describe(exc)}") from exc
        warnings.extend(suspect_meal_warnings(menu.meals, f"menu {menu.id}", tolerance))
        menus.append(menu)

    return ParsedMenus(menus=menus, warnings=warnings)


def apply_menu_filter(
    menus: Iterable[RecommendedMenu], menu_filter: Optional[MenuFilter]
) -> List[RecommendedMenu]:
    """
    Drop menus that violate the filter's difficulty or calorie ceiling.
    Dietary restrictions are only passed to the model in the prompt.
    """
    menus = list(menus)
    if menu_filter is None:
        return menus
    kept = []
    for menu in menus:
        if menu_filter.difficulty and menu.difficulty != menu_filter.difficulty:
            logger.debug("dropping menu %s: difficulty %s", menu.id, menu.difficulty)
            continue
        if menu_filter.max_calories is not None and menu.total_calories > menu_filter.max_calories:
            logger.debug("dropping menu %s: %s kcal", menu.id, menu.total_calories)
            continue
        kept.append(menu)
    return kept
