from mockprep.infrastructure.cache.source_material_cache import SourceMaterialCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class CountingLoader:
    def __init__(self):
        self.calls = []

    def __call__(self, category):
        self.calls.append(category)
        return f"material #{len(self.calls)} for {category}"


def test_entries_are_reused_within_ttl():
    clock, loader = FakeClock(), CountingLoader()
    cache = SourceMaterialCache(loader, ttl_seconds=60, clock=clock)

    first = cache.get("Current Affairs")
    clock.now += 59
    second = cache.get("current affairs")

    assert first == second
    assert len(loader.calls) == 1


def test_entries_reload_after_ttl():
    clock, loader = FakeClock(), CountingLoader()
    cache = SourceMaterialCache(loader, ttl_seconds=60, clock=clock)

    cache.get("Current Affairs")
    clock.now += 60
    refreshed = cache.get("Current Affairs")

    assert refreshed.startswith("material #2")
    assert len(loader.calls) == 2


def test_categories_are_cached_separately():
    loader = CountingLoader()
    cache = SourceMaterialCache(loader, ttl_seconds=60, clock=FakeClock())

    cache.get("Current Affairs")
    cache.get("Sports")

    assert loader.calls == ["current affairs", "sports"]


def test_invalidate_forces_reload():
    loader = CountingLoader()
    cache = SourceMaterialCache(loader, ttl_seconds=60, clock=FakeClock())

    cache.get("Current Affairs")
    cache.invalidate("CURRENT AFFAIRS")
    cache.get("Current Affairs")

    assert len(loader.calls) == 2


def test_differently_cased_categories_share_one_load():
    loader = CountingLoader()
    cache = SourceMaterialCache(loader, ttl_seconds=60, clock=FakeClock())

    first = cache.get("Current Affairs")
    second = cache.get("current affairs")

    assert first == second
    assert loader.calls == ["current affairs"]
