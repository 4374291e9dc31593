import pytest

from recipebox.errors import RecipeBusy
from recipebox.infra.recipe_lock import recipe_mutation_lock
from recipebox.settings import settings


@pytest.fixture
def lock_enabled(monkeypatch):
    monkeypatch.setattr(settings, "recipe_lock_enabled", True)
    monkeypatch.setattr(settings, "recipe_lock_wait_sec", 0.1)


def test_lock_disabled_is_noop(mock_redis):
    with recipe_mutation_lock("r1"):
        assert mock_redis.keys("recipebox:lock:*") == []


def test_lock_held_during_block_and_released(lock_enabled, mock_redis):
    with recipe_mutation_lock("r1"):
        assert mock_redis.exists("recipebox:lock:recipe:r1") == 1
    assert mock_redis.exists("recipebox:lock:recipe:r1") == 0


def test_lock_busy_raises(lock_enabled, mock_redis):
    mock_redis.set("recipebox:lock:recipe:r1", "someone-else")
    with pytest.raises(RecipeBusy):
        with recipe_mutation_lock("r1"):
            pass


def test_lock_is_per_recipe(lock_enabled, mock_redis):
    with recipe_mutation_lock("r1"):
        with recipe_mutation_lock("r2"):
            assert mock_redis.exists("recipebox:lock:recipe:r2") == 1


def test_busy_recipe_returns_409(lock_enabled, client, mock_redis, recipe):
    mock_redis.set(f"recipebox:lock:recipe:{recipe.id}", "someone-else")

    response = client.patch(f"/api/recipes/{recipe.id}", json={"action": "like"})
    assert response.status_code == 409
    assert response.json()["success"] is False

    mock_redis.delete(f"recipebox:lock:recipe:{recipe.id}")
    response = client.patch(f"/api/recipes/{recipe.id}", json={"action": "like"})
    assert response.status_code == 200
    assert response.json()["data"]["likes"] == 1
