import pytest
from PIL import Image

from catinfo.infrastructure.cache.coordinator import ImageCacheCoordinator, default_cost
from catinfo.infrastructure.cache.eviction_scheduler import EvictionScheduler
from catinfo.infrastructure.cache.image_codec import decode_image
from catinfo.infrastructure.cache.memory_store import MemoryStore
from catinfo.infrastructure.cache.persistent_store import PersistentStore

DAY = 24 * 60 * 60
IMAGE_URL = "https://cdn2.thecatapi.com/images/0XYvRd7oD.jpg"

@pytest.fixture
def persistent_store(tmp_path, clock):
    return PersistentStore(db_path=tmp_path / "images.sqlite3", clock=clock)

@pytest.fixture
def coordinator(persistent_store, clock):
    cache = ImageCacheCoordinator(
        memory_store=MemoryStore(max_entries=10, max_cost_bytes=10 * 1024 * 1024),
        persistent_store=persistent_store,
        scheduler=EvictionScheduler(persistent_store, interval_seconds=3600, max_age_seconds=30 * DAY, clock=clock),
    )
    yield cache
    cache.close()

def test_make_key_derives_keys_for_urls_only(coordinator: ImageCacheCoordinator):
    assert coordinator.make_key(IMAGE_URL) == "https___cdn2_thecatapi_com_images_0XYvRd7oD_jpg"
    assert coordinator.make_key("0XYvRd7oD") == "0XYvRd7oD"

@pytest.mark.asyncio
async def test_put_then_get_is_served_from_memory(coordinator: ImageCacheCoordinator, png_bytes):
    image = decode_image(png_bytes)
    coordinator.put_image("img", image, png_bytes)

    assert await coordinator.get_image("img") is image

@pytest.mark.asyncio
async def test_disk_hit_after_memory_clear_is_promoted(coordinator: ImageCacheCoordinator, png_bytes):
    coordinator.put_image("img", decode_image(png_bytes), png_bytes)
    await coordinator.flush()
    coordinator.memory_store.clear()

    restored = await coordinator.get_image("img")

    assert isinstance(restored, Image.Image)
    assert restored.size == (4, 3)
    assert "img" in coordinator.memory_store

@pytest.mark.asyncio
async def test_miss_in_both_tiers_returns_none(coordinator: ImageCacheCoordinator):
    assert await coordinator.get_image("unknown") is None

@pytest.mark.asyncio
async def test_memory_hit_refreshes_disk_access_time(coordinator: ImageCacheCoordinator, persistent_store, clock, png_bytes):
    coordinator.put_image("img", decode_image(png_bytes), png_bytes)
    clock.advance(DAY)

    await coordinator.get_image("img")
    await coordinator.flush()

    entry = await persistent_store.read_entry("img")
    assert entry.last_accessed_at == clock.now

@pytest.mark.asyncio
async def test_undecodable_disk_entry_is_a_miss(coordinator: ImageCacheCoordinator, persistent_store):
    await persistent_store.write("broken", b"not an image")

    assert await coordinator.get_image("broken") is None
    assert "broken" not in coordinator.memory_store

@pytest.mark.asyncio
async def test_clear_empties_both_tiers(coordinator: ImageCacheCoordinator, png_bytes):
    coordinator.put_image("a", decode_image(png_bytes), png_bytes)
    coordinator.put_image("b", decode_image(png_bytes), png_bytes)

    coordinator.clear()
    await coordinator.flush()

    stats = await coordinator.stats()
    assert stats["memory_entries"] == 0
    assert stats["disk_entries"] == 0
    assert await coordinator.get_image("a") is None

@pytest.mark.asyncio
async def test_stats_reports_both_tiers(coordinator: ImageCacheCoordinator, png_bytes):
    coordinator.put_image("a", decode_image(png_bytes), png_bytes)
    await coordinator.flush()

    stats = await coordinator.stats()

    assert stats == {
        "memory_entries": 1,
        "memory_cost_bytes": 4 * 3 * 3,
        "disk_entries": 1,
        "disk_bytes": len(png_bytes),
    }

@pytest.mark.asyncio
async def test_sweep_removes_expired_disk_entries(coordinator: ImageCacheCoordinator, clock, png_bytes):
    coordinator.put_image("old", decode_image(png_bytes), png_bytes)
    await coordinator.flush()
    clock.advance(31 * DAY)

    assert await coordinator.sweep() == 1
    coordinator.memory_store.clear()
    assert await coordinator.get_image("old") is None

@pytest.mark.asyncio
async def test_sweep_without_scheduler_does_nothing(persistent_store):
    cache = ImageCacheCoordinator(MemoryStore(), persistent_store)
    try:
        assert await cache.sweep() == 0
    finally:
        cache.close()

@pytest.mark.asyncio
async def test_disk_failures_never_reach_callers(tmp_path, png_bytes):
    blocker = tmp_path / "blocker"
    blocker.write_text("regular file")
    cache = ImageCacheCoordinator(MemoryStore(), PersistentStore(db_path=blocker / "images.sqlite3"))
    try:
        image = decode_image(png_bytes)
        cache.put_image("img", image, png_bytes)
        assert await cache.get_image("img") is image

        cache.memory_store.clear()
        assert await cache.get_image("img") is None
        assert (await cache.stats())["disk_entries"] == 0
    finally:
        cache.close()

def test_default_cost_falls_back_to_encoded_size():
    assert default_cost("not an image", b"12345") == 5
