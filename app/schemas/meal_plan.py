# app/schemas/meal_plan.py
"""
Pydantic contract types shared by the prompt builder, the response parser,
the fallback catalog, the stores and the HTTP layer.

Field names are snake_case in Python and camelCase on the wire (both when
talking to the oracle and in API payloads), e.g. `prep_time` <-> `prepTime`.
"""
from __future__ import annotations

import math
import datetime as dt
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from app.services.errors import ValidationError

Difficulty = Literal["easy", "medium", "hard"]

# kcal per gram
PROTEIN_KCAL = 4
CARBS_KCAL = 4
FAT_KCAL = 9


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class MealSuggestion(CamelModel):
    name: str = Field(min_length=1)
    description: str
    calories: float = Field(ge=0)
    protein: float = Field(ge=0)
    carbs: float = Field(ge=0)
    fat: float = Field(ge=0)
    fiber: float = Field(ge=0)
    ingredients: List[str] = Field(min_length=1)
    instructions: Optional[List[str]] = None
    prep_time: Optional[int] = Field(default=None, ge=0)
    difficulty: Optional[Difficulty] = None

    @field_validator("calories", "protein", "carbs", "fat", "fiber", mode="before")
    @classmethod
    def require_number(cls, v: Any) -> Any:
        # numeric strings and booleans are not quantities
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ValueError("must be a JSON number")
        if not math.isfinite(v):
            raise ValueError("must be a finite number")
        return v

    @property
    def macro_energy(self) -> float:
        """Calories implied by the macro grams (4/4/9 kcal per gram)."""
        return self.protein * PROTEIN_KCAL + self.carbs * CARBS_KCAL + self.fat * FAT_KCAL


class DayMeals(CamelModel):
    breakfast: MealSuggestion
    lunch: MealSuggestion
    dinner: MealSuggestion
    snacks: List[MealSuggestion] = Field(default_factory=list)

    @field_validator("snacks", mode="before")
    @classmethod
    def null_snacks(cls, v: Any) -> Any:
        return [] if v is None else v

    def all_meals(self) -> List[MealSuggestion]:
        return [self.breakfast, self.lunch, self.dinner, *self.snacks]


class DailyMealPlan(CamelModel):
    day: int = Field(ge=1, strict=True)
    date: dt.date
    meals: DayMeals
    total_calories: float = 0

    @model_validator(mode="after")
    def recompute_total(self) -> "DailyMealPlan":
        # the reported total is never trusted
        self.total_calories = round(sum(m.calories for m in self.meals.all_meals()), 2)
        return self


class MealPlan(CamelModel):
    id: str
    user_id: str
    target_calories: int
    duration: int = Field(ge=1)
    meals: List[DailyMealPlan]
    created_at: dt.datetime

    @model_validator(mode="after")
    def check_days(self) -> "MealPlan":
        indices = [d.day for d in self.meals]
        if indices != list(range(1, self.duration + 1)):
            raise ValueError(f"day indices must be 1..{self.duration} in order, got {indices}")
        return self


class RecommendedMenu(CamelModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str
    meals: List[MealSuggestion] = Field(min_length=1)
    total_calories: float = 0
    tags: List[str] = Field(default_factory=list)
    difficulty: Difficulty
    prep_time: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def normalize(self) -> "RecommendedMenu":
        self.total_calories = round(sum(m.calories for m in self.meals), 2)
        if self.prep_time is None:
            self.prep_time = sum(m.prep_time or 0 for m in self.meals)
        seen: List[str] = []
        for tag in self.tags:
            t = tag.strip()
            if t and t not in seen:
                seen.append(t)
        self.tags = seen
        return self


class GenerationRequestBody(CamelModel):
    target_calories: int = Field(ge=1000, le=5000)
    duration: int = Field(default=7, ge=1, le=30)
    dietary_restrictions: List[str] = Field(default_factory=list)
    preferences: List[str] = Field(default_factory=list)


class GenerationRequest(GenerationRequestBody):
    user_id: str = Field(min_length=1)


class MenuFilter(CamelModel):
    difficulty: Optional[Difficulty] = None
    max_calories: Optional[int] = Field(default=None, ge=500, le=3000)
    dietary_restrictions: List[str] = Field(default_factory=list)


class UserContext(CamelModel):
    """The slice of a user's profile that is allowed into prompts."""

    dietary_preferences: List[str] = Field(default_factory=list)
    cuisine_preferences: List[str] = Field(default_factory=list)
    liked_meals: List[str] = Field(default_factory=list)
    disliked_meals: List[str] = Field(default_factory=list)


M = TypeVar("M", bound=BaseModel)


def validate_payload(model_cls: Type[M], payload: Any) -> M:
    """Validate `payload` into `model_cls`, raising the service-level ValidationError."""
    try:
        return model_cls.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Validation errors",
            errors=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc
