# tests/test_meal_plan_service.py
import time

import pytest

from app.schemas.meal_plan import GenerationRequest, MenuFilter
from app.services.errors import NotFoundError, OracleError
from app.tests.factories import TODAY, FakeOracle, day, meal, menu, menus_json, plan_json


def _request(user_id, **overrides):
    data = {"user_id": user_id, "target_calories": 2000, "duration": 3}
    data.update(overrides)
    return GenerationRequest(**data)


# --- Plans ---
@pytest.mark.asyncio
async def test_generate_plan_persists_oracle_reply(make_service, plan_repository, user):
    oracle = FakeOracle(plan_json([day(1), day(2), day(3)]))
    svc = make_service(oracle)

    plan = await svc.generate_plan(_request(user.id, dietary_restrictions=["vegetarian"]))

    assert len(oracle.calls) == 1
    assert "3-day meal plan for 2000 calories" in oracle.calls[0].prompt
    assert oracle.calls[0].temperature == pytest.approx(0.7)
    assert [d.day for d in plan.meals] == [1, 2, 3]
    assert plan.meals[0].meals.breakfast.name == "Breakfast 1"
    assert plan.meals[0].total_calories == 1500
    assert plan_repository.get_plan(user.id, plan.id).meals == plan.meals


@pytest.mark.asyncio
async def test_oracle_error_serves_fallback_plan(make_service, plan_repository, user):
    svc = make_service(FakeOracle(OracleError("rate_limited")))

    plan = await svc.generate_plan(_request(user.id, dietary_restrictions=["vegetarian"]))

    assert plan.duration == 3
    assert [d.day for d in plan.meals] == [1, 2, 3]
    assert plan.meals[0].date == TODAY
    assert plan.meals[0].meals.breakfast.name == "Oatmeal with Berries"
    assert plan_repository.get_plan(user.id, plan.id) is not None


@pytest.mark.asyncio
async def test_unexpected_oracle_exception_serves_fallback(make_service, user):
    svc = make_service(FakeOracle(RuntimeError("socket closed")))
    plan = await svc.generate_plan(_request(user.id, duration=1))
    assert plan.meals[0].meals.breakfast.name == "Oatmeal with Berries"


@pytest.mark.asyncio
async def test_malformed_reply_serves_fallback(make_service, user):
    svc = make_service(FakeOracle("Sure! Here is your plan: breakfast is toast."))
    plan = await svc.generate_plan(_request(user.id, duration=2))
    assert [d.day for d in plan.meals] == [1, 2]
    assert plan.meals[1].meals.lunch.name == "Quinoa Black Bean Bowl"


@pytest.mark.asyncio
async def test_missing_slot_serves_fallback(make_service, user):
    svc = make_service(FakeOracle(plan_json([day(1, lunch=None)])))
    plan = await svc.generate_plan(_request(user.id, duration=1))
    assert plan.meals[0].meals.lunch.name == "Grilled Chicken Salad"


@pytest.mark.asyncio
async def test_wrong_day_count_serves_fallback(make_service, user):
    svc = make_service(FakeOracle(plan_json([day(1), day(2)])))
    plan = await svc.generate_plan(_request(user.id, duration=3))
    assert plan.meals[0].meals.breakfast.name == "Oatmeal with Berries"
    assert len(plan.meals) == 3


@pytest.mark.asyncio
async def test_slow_oracle_times_out_to_fallback(make_service, patch_settings, user):
    import app.config.settings as settings_mod

    patch_settings.setattr(settings_mod.settings, "generation_timeout_seconds", 0.05)

    class SlowOracle(FakeOracle):
        def complete(self, *args):
            time.sleep(0.3)
            return super().complete(*args)

    svc = make_service(SlowOracle(plan_json([day(1)])))
    plan = await svc.generate_plan(_request(user.id, duration=1))
    assert plan.meals[0].meals.breakfast.name == "Oatmeal with Berries"


@pytest.mark.asyncio
async def test_unknown_user_is_not_found_and_oracle_untouched(make_service):
    oracle = FakeOracle(plan_json([day(1)]))
    svc = make_service(oracle)
    with pytest.raises(NotFoundError):
        await svc.generate_plan(_request("ghost", duration=1))
    assert oracle.calls == []


@pytest.mark.asyncio
async def test_list_and_delete_plans(make_service, user):
    svc = make_service(FakeOracle(OracleError("x"), OracleError("y")))
    first = await svc.generate_plan(_request(user.id, duration=1))
    second = await svc.generate_plan(_request(user.id, duration=2))

    ids = {p.id for p in await svc.list_plans(user.id)}
    assert ids == {first.id, second.id}

    await svc.delete_plan(user.id, first.id)
    assert await svc.get_plan(user.id, first.id) is None
    with pytest.raises(NotFoundError):
        await svc.delete_plan(user.id, first.id)


@pytest.mark.asyncio
async def test_export_plan(make_service, user):
    svc = make_service(FakeOracle(OracleError("x")))
    plan = await svc.generate_plan(_request(user.id, duration=2))

    text = await svc.export_plan(user.id, plan.id)

    assert text.startswith("Meal Plan - 2 Days\nTarget Calories: 2000")
    assert "Day 1 (2024-01-01)" in text
    assert "Day 2 (2024-01-02)" in text
    with pytest.raises(NotFoundError):
        await svc.export_plan(user.id, "missing")


# --- Recommended menus ---
@pytest.mark.asyncio
async def test_generated_menus_are_cached(make_service, menu_cache, user_service, user):
    user_service.set_preferences(user.id, cuisine_preferences=["thai"], meal_ratings={"Pad Thai": 5})
    oracle = FakeOracle(menus_json([menu("menu-1"), menu("menu-2", difficulty="medium")]))
    svc = make_service(oracle)

    menus = await svc.generate_menus(user.id)

    assert [m.id for m in menus] == ["menu-1", "menu-2"]
    assert "thai" in oracle.calls[0].prompt
    assert "Pad Thai" in oracle.calls[0].prompt
    assert oracle.calls[0].temperature == pytest.approx(0.8)
    assert menu_cache.get_cached_menus(user.id) == menus


@pytest.mark.asyncio
async def test_menus_over_filter_serve_fallback_and_skip_cache(make_service, menu_cache, user):
    big = [
        meal("Big A", calories=900, protein=45, carbs=100, fat=36),
        meal("Big B", calories=900, protein=45, carbs=100, fat=36),
    ]
    svc = make_service(FakeOracle(menus_json([menu("menu-1", meals=big)])))

    menus = await svc.generate_menus(user.id, MenuFilter(difficulty="easy", max_calories=1500))

    assert [m.id for m in menus] == ["fallback-1"]
    assert menu_cache.get_cached_menus(user.id) is None


@pytest.mark.asyncio
async def test_filter_drops_only_mismatching_menus(make_service, user):
    svc = make_service(
        FakeOracle(menus_json([menu("menu-1"), menu("menu-2", difficulty="hard")]))
    )
    menus = await svc.generate_menus(user.id, MenuFilter(difficulty="easy"))
    assert [m.id for m in menus] == ["menu-1"]


@pytest.mark.asyncio
async def test_oracle_failure_serves_fallback_menus(make_service, menu_cache, user):
    svc = make_service(FakeOracle(OracleError("oracle_not_configured")))
    menus = await svc.generate_menus(user.id)
    assert [m.id for m in menus] == ["fallback-1", "fallback-2", "fallback-3"]
    assert menu_cache.get_cached_menus(user.id) is None


@pytest.mark.asyncio
async def test_cached_menus_served_without_oracle(make_service, user):
    oracle = FakeOracle(menus_json([menu("menu-1"), menu("menu-2")]))
    svc = make_service(oracle)
    await svc.generate_menus(user.id)

    again = await svc.generate_menus(user.id, use_cache=True)

    assert [m.id for m in again] == ["menu-1", "menu-2"]
    assert len(oracle.calls) == 1
    assert [m.id for m in await svc.get_cached_menus(user.id)] == ["menu-1", "menu-2"]


@pytest.mark.asyncio
async def test_cache_miss_falls_through_to_oracle(make_service, user):
    oracle = FakeOracle(menus_json([menu("menu-1")]))
    svc = make_service(oracle)
    menus = await svc.generate_menus(user.id, use_cache=True)
    assert [m.id for m in menus] == ["menu-1"]
    assert len(oracle.calls) == 1


@pytest.mark.asyncio
async def test_menus_for_unknown_user(make_service):
    oracle = FakeOracle(menus_json([menu()]))
    with pytest.raises(NotFoundError):
        await make_service(oracle).generate_menus("ghost")
    assert oracle.calls == []
