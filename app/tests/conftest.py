# tests/conftest.py
import pytest
from fastapi.testclient import TestClient

import app.config.settings as settings_mod
from app.models.database import build_engine, build_session_factory, init_db
from app.services.meal_plan_repository import MealPlanRepository
from app.services.meal_plan_service import MealPlanService
from app.services.menu_cache_service import MenuCacheRepository, MenuCacheService
from app.services.user_service import UserService
from app.tests.factories import TODAY, FakeOracle


@pytest.fixture(autouse=True)
def patch_settings(monkeypatch):
    """
    Provide sane defaults for settings used by services.
    Tests can override attributes with monkeypatch as needed.
    """
    monkeypatch.setattr(settings_mod.settings, "openai_api_key", None, raising=False)
    monkeypatch.setattr(settings_mod.settings, "generation_timeout_seconds", 2.0, raising=False)
    return monkeypatch


# --- In-memory database ---
@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def user_service(session_factory):
    return UserService(session_factory)


@pytest.fixture
def plan_repository(session_factory):
    return MealPlanRepository(session_factory)


@pytest.fixture
def menu_cache(session_factory):
    return MenuCacheService(MenuCacheRepository(session_factory))


@pytest.fixture
def user(user_service):
    return user_service.create_user("ana@example.com", name="Ana")


# --- Scripted oracle ---
@pytest.fixture
def fake_oracle():
    return FakeOracle()


@pytest.fixture
def make_service(user_service, plan_repository, menu_cache):

    def _make(oracle):
        return MealPlanService(
            user_service=user_service,
            plan_repository=plan_repository,
            menu_cache=menu_cache,
            oracle=oracle,
            today=lambda: TODAY,
        )

    return _make


# --- HTTP client ---
@pytest.fixture
def api_client(make_service, fake_oracle):
    from main import app

    service = make_service(fake_oracle)
    app.state.meal_plan_service = service
    client = TestClient(app)
    yield client
    app.state.meal_plan_service = None
