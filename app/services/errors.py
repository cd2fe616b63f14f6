# app/services/errors.py
"""
Exception taxonomy for meal plan generation.

Only NotFoundError and ValidationError cross the service boundary. Everything
under GenerationFailure is converted into fallback content by MealPlanService,
and CacheWriteFailure is logged and dropped by MenuCacheService.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class MealPlanError(Exception):
    """Base class for every error raised by the meal plan services."""


class NotFoundError(MealPlanError):

    def __init__(self, resource: str, identifier: Any):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource.capitalize()} not found")


class ValidationError(MealPlanError):

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)


class GenerationFailure(MealPlanError):
    """The oracle could not produce a usable plan or menu set."""


class OracleError(GenerationFailure):
    """Transport, quota, auth or timeout failure talking to the oracle."""


class ParseError(GenerationFailure):
    """Oracle text was malformed or did not match the expected shape."""


class CacheWriteFailure(MealPlanError):
    pass
