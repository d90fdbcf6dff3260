import pytest

from app.services.cache import CacheKey, CacheStore, dashboard_key, response_key


def test_get_returns_stored_value_by_reference(cache):
    value = {"summary": {"wins": 1}}
    assert cache.set("dashboard:1:1", value) is True
    assert cache.get("dashboard:1:1") is value


def test_get_missing_returns_default(cache):
    assert cache.get("nope") is None
    assert cache.get("nope", default="fallback") == "fallback"


def test_set_overwrites_existing_entry(cache):
    cache.set("k", 1)
    cache.set("k", 2)
    assert cache.get("k") == 2
    assert len(cache) == 1


def test_get_enforces_default_ttl(cache, clock):
    cache.set("k", "v")
    clock.advance(299)
    assert cache.get("k") == "v"
    clock.advance(1)
    assert cache.get("k") is None
    assert "k" not in cache.keys()


def test_explicit_ttl_overrides_default(cache, clock):
    cache.set("short", "v", ttl=10)
    cache.set("long", "v")
    clock.advance(11)
    assert cache.get("short") is None
    assert cache.get("long") == "v"


def test_zero_ttl_never_expires(cache, clock):
    cache.set("pinned", "v", ttl=0)
    clock.advance(10_000_000)
    assert cache.get("pinned") == "v"


def test_negative_ttl_is_rejected(cache):
    with pytest.raises(ValueError):
        cache.set("k", "v", ttl=-1)


def test_falsy_values_are_cached(cache):
    cache.set("zero", 0)
    assert cache.get("zero", default="missing") == 0


def test_delete_single_and_many(cache):
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("c", 3)
    assert cache.delete("a") == 1
    assert cache.delete(["b", "c", "missing"]) == 2
    assert cache.delete("a") == 0
    assert len(cache) == 0


def test_delete_accepts_cache_keys(cache):
    key = dashboard_key(4, 9)
    cache.set(key, "v")
    assert cache.get("dashboard:4:9") == "v"
    assert cache.delete(key) == 1


def test_delete_prefix_respects_team_boundary(cache):
    cache.set("dashboard:12:1", "a")
    cache.set("dashboard:12:2", "b")
    cache.set("dashboard:123:1", "c")
    cache.set("cache:12:/teams/12/players/1/stats", "d")

    removed = cache.delete_prefix(CacheKey.team_prefix("dashboard", 12))

    assert removed == 2
    assert sorted(cache.keys()) == ["cache:12:/teams/12/players/1/stats", "dashboard:123:1"]


def test_delete_prefix_with_empty_prefix_is_noop(cache):
    cache.set("a", 1)
    assert cache.delete_prefix("") == 0
    assert cache.get("a") == 1


def test_flush_removes_everything(cache):
    cache.set("a", 1)
    cache.set("b", 2, ttl=0)
    cache.get("a")
    cache.flush()
    assert len(cache) == 0
    assert cache.stats().hits == 0


def test_sweep_runs_from_set_after_check_period(clock):
    store = CacheStore(default_ttl=5, check_period=60, clock=clock)
    store.set("old", 1)
    clock.advance(10)
    store.set("fresh", 2)
    assert "old" in store._entries

    clock.advance(60)
    store.set("newer", 3)

    assert "old" not in store._entries
    assert "fresh" not in store._entries
    assert store.get("newer") == 3


def test_sweep_returns_removed_count(cache, clock):
    cache.set("a", 1, ttl=1)
    cache.set("b", 1, ttl=1)
    cache.set("c", 1, ttl=100)
    clock.advance(2)
    assert cache.sweep() == 2
    assert cache.keys() == ["c"]


def test_stats_count_hits_and_misses(cache):
    cache.set("a", 1)
    cache.get("a")
    cache.get("a")
    cache.get("b")
    stats = cache.stats()
    assert (stats.hits, stats.misses, stats.keys) == (2, 1, 1)


def test_contains_ignores_expired_entries(cache, clock):
    cache.set("a", 1, ttl=1)
    assert "a" in cache
    clock.advance(2)
    assert "a" not in cache


def test_dashboard_key_grammar():
    assert dashboard_key(7, 3).render() == "dashboard:7:3"
    assert str(dashboard_key(7, 3)) == "dashboard:7:3"


def test_response_key_grammar():
    key = response_key(7, "/teams/7/players/2/stats", "?season_id=3")
    assert key.render() == "cache:7:/teams/7/players/2/stats?season_id=3"
    assert response_key(7, "/teams/7/dashboard").render() == "cache:7:/teams/7/dashboard"


def test_team_prefix_ends_with_delimiter():
    assert CacheKey.team_prefix("dashboard", 12) == "dashboard:12:"


@pytest.mark.parametrize(
    "namespace,team_id",
    [("", 1), ("dash:board", 1), ("dashboard", "1:2"), ("dashboard", "")],
)
def test_cache_key_rejects_ambiguous_segments(namespace, team_id):
    with pytest.raises(ValueError):
        CacheKey(namespace, team_id)
