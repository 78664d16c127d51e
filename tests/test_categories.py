import pytest

from gallery.messages import Notifier
from gallery.services.categories import CategoryManager


@pytest.fixture
async def manager(fake_api):
    m = CategoryManager(fake_api, Notifier())
    await m.load()
    return m


async def test_load_and_lookup(manager, fake_api):
    fake_api.add_image(category_id=1)
    fake_api.add_image(category_id=1)
    fake_api.add_image(category_id=2)
    await manager.load()

    assert manager.by_id(1).name == "Nature"
    assert manager.by_id(None) is None
    assert manager.by_name("City").id == 2
    assert manager.counts() == {"City": 1, "Nature": 2}
    assert manager.total_images() == 3


async def test_create_requires_a_name(manager, fake_api):
    assert await manager.create("   ") is None
    assert manager.notifier.current.text == "Category name is required."
    assert len(fake_api.categories) == 2


async def test_create_reloads(manager):
    category = await manager.create(" Food ", "#f97316")

    assert category.name == "Food"
    assert manager.by_name("Food") is not None
    assert manager.notifier.current.text == "Category created successfully!"


async def test_update(manager, fake_api):
    assert not await manager.update(1)
    assert manager.notifier.current.text == "Nothing to update."

    assert await manager.update(1, name="Outdoors", color=None)
    assert fake_api.categories[1].name == "Outdoors"
    assert fake_api.categories[1].color == "#22c55e"


async def test_delete_in_use_is_refused(manager, fake_api):
    fake_api.add_image(category_id=2)

    assert not await manager.delete(2)

    assert 2 in fake_api.categories
    assert manager.notifier.current.text == "Cannot delete category: 1 image(s) still use it."


async def test_delete_unused(manager, fake_api):
    assert await manager.delete(2)
    assert manager.by_id(2) is None
