# tests/test_menu_cache_service.py
from unittest.mock import MagicMock

from app.models.menu_cache import MenuCache
from app.services.errors import CacheWriteFailure
from app.services.fallback_catalog import fallback_menus
from app.services.menu_cache_service import MenuCacheService


def test_cache_miss_returns_none(menu_cache, user):
    assert menu_cache.get_cached_menus(user.id) is None


def test_cache_round_trip(menu_cache, user):
    menus = fallback_menus()
    menu_cache.cache_menus(user.id, menus)
    assert menu_cache.get_cached_menus(user.id) == menus


def test_cache_is_last_write_wins(menu_cache, session_factory, user):
    menus = fallback_menus()
    menu_cache.cache_menus(user.id, menus)
    menu_cache.cache_menus(user.id, menus[:1])
    assert [m.id for m in menu_cache.get_cached_menus(user.id)] == [menus[0].id]
    with session_factory() as db:
        assert db.query(MenuCache).filter_by(user_id=user.id).count() == 1


def test_cache_write_failure_is_swallowed(caplog):
    repo = MagicMock()
    repo.upsert.side_effect = CacheWriteFailure("disk full")
    svc = MenuCacheService(repo)
    svc.cache_menus("u1", fallback_menus())
    assert "Error caching recommended menus" in caplog.text


def test_cache_write_for_unknown_user_is_swallowed(menu_cache):
    # foreign key violation on insert
    menu_cache.cache_menus("no-such-user", fallback_menus())
    assert menu_cache.get_cached_menus("no-such-user") is None


def test_cache_read_failure_is_a_miss():
    repo = MagicMock()
    repo.get.side_effect = RuntimeError("connection reset")
    assert MenuCacheService(repo).get_cached_menus("u1") is None


def test_corrupt_cache_entry_is_a_miss():
    repo = MagicMock()
    repo.get.return_value = [{"id": "x", "meals": []}]
    assert MenuCacheService(repo).get_cached_menus("u1") is None
