import pytest
from fastapi import HTTPException

from app.modules.auth import service as auth_service
from app.modules.auth.service import AuthService, _TokenCache


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock(monkeypatch):
    fake = _Clock()
    monkeypatch.setattr(auth_service.time, "monotonic", fake)
    return fake


def test_full_cache_evicts_oldest_entry(clock):
    cache = _TokenCache(ttl_seconds=60, max_size=2)
    cache.put("a", {"id": "a"})
    cache.put("b", {"id": "b"})

    cache.put("c", {"id": "c"})

    assert len(cache) == 2
    assert cache.get("a") is None
    assert cache.get("c") == {"id": "c"}


def test_full_cache_drops_expired_entries_first(clock):
    cache = _TokenCache(ttl_seconds=60, max_size=2)
    cache.put("old", {"id": "old"})
    clock.now += 30
    cache.put("fresh", {"id": "fresh"})
    clock.now += 40

    cache.put("new", {"id": "new"})

    assert cache.get("fresh") == {"id": "fresh"}
    assert cache.get("new") == {"id": "new"}
    assert len(cache) == 2


def test_cache_keeps_accepting_after_many_tokens(clock):
    cache = _TokenCache(ttl_seconds=60, max_size=500)
    for i in range(1200):
        cache.put(f"token-{i}", {"id": str(i)})

    assert len(cache) == 500
    assert cache.get("token-1199") == {"id": "1199"}


def test_entries_expire(clock):
    cache = _TokenCache(ttl_seconds=60)
    cache.put("a", {"id": "a"})
    clock.now += 61
    assert cache.get("a") is None


def test_unknown_token_is_unauthorized(supabase):
    with pytest.raises(HTTPException) as exc:
        AuthService(supabase).get_current_user("not-a-token")
    assert exc.value.status_code == 401


def test_tenant_prefers_app_metadata():
    user = {"app_metadata": {"tenant_id": "t-app"}, "user_metadata": {"tenant_id": "t-user"}}
    assert AuthService.resolve_tenant_id(user) == "t-app"
    assert AuthService.resolve_tenant_id({"user_metadata": {"tenant_id": 7}}) == "7"
    assert AuthService.resolve_tenant_id({}) is None
