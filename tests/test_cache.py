from backoffice.application.cache import CustomerCache

class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

class CountingLoader:
    def __init__(self, value="page"):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value

def test_second_lookup_is_served_from_cache():
    cache = CustomerCache()
    loader = CountingLoader()
    assert cache.search(("a", 1), loader) == "page"
    assert cache.search(("a", 1), loader) == "page"
    assert loader.calls == 1

def test_invalidate_forces_reload_of_every_entry():
    cache = CustomerCache()
    searches, details = CountingLoader(), CountingLoader("detail")
    cache.search("k", searches)
    cache.detail("id", details)

    generation = cache.invalidate()

    assert generation == cache.generation == 1
    cache.search("k", searches)
    cache.detail("id", details)
    assert searches.calls == 2
    assert details.calls == 2

def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = CustomerCache(ttl=60, timer=clock)
    loader = CountingLoader()
    cache.search("k", loader)

    clock.now = 59
    cache.search("k", loader)
    assert loader.calls == 1

    clock.now = 61
    cache.search("k", loader)
    assert loader.calls == 2

def test_absent_results_are_not_cached():
    cache = CustomerCache()
    loader = CountingLoader(value=None)
    assert cache.detail("missing", loader) is None
    assert cache.detail("missing", loader) is None
    assert loader.calls == 2

def test_write_during_load_does_not_leave_stale_entry():
    cache = CustomerCache()

    def loader_racing_a_write():
        cache.invalidate()
        return "stale"

    assert cache.search("k", loader_racing_a_write) == "stale"
    fresh = CountingLoader("fresh")
    assert cache.search("k", fresh) == "fresh"
    assert fresh.calls == 1

def test_search_and_detail_maps_are_separate():
    cache = CustomerCache()
    cache.search("same", CountingLoader("from-search"))
    assert cache.detail("same", CountingLoader("from-detail")) == "from-detail"
