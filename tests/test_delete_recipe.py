from recipebox.models import Recipe


def test_delete_recipe_e2e(client, store, db_session, make_recipe):
    # 1. Setup Data
    recipe = make_recipe(gallery=[
        {"url": "https://cdn.test/g1", "storage_id": "g1"},
        {"url": "https://cdn.test/g2", "storage_id": "g2"},
    ])
    recipe_id = recipe.id

    # 2. Call Delete Endpoint
    response = client.delete(f"/api/recipes/{recipe_id}")

    # 3. Assertions
    assert response.status_code == 200, response.text
    assert response.json() == {"success": True, "message": "Recipe deleted"}

    # Every asset goes in a single batch, primary first
    assert store.delete_calls == [["img1", "g1", "g2"]]
    assert store.objects == {}

    db_session.expire_all()
    assert db_session.get(Recipe, recipe_id) is None
    assert client.get(f"/api/recipes/{recipe_id}").status_code == 404


def test_delete_recipe_without_images_skips_storage(client, store, make_recipe):
    recipe = make_recipe(image_url=None, image_storage_id=None)
    response = client.delete(f"/api/recipes/{recipe.id}")
    assert response.status_code == 200
    assert store.delete_calls == []


def test_delete_recipe_reports_orphans(client, store, recipe):
    store.fail_deletes = True
    response = client.delete(f"/api/recipes/{recipe.id}")

    # The row is gone even though storage refused the delete
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert "1 image(s) could not be removed" in body["message"]
    assert client.get(f"/api/recipes/{recipe.id}").status_code == 404


def test_delete_recipe_not_owned(client, store, recipe):
    response = client.delete(f"/api/recipes/{recipe.id}", headers={"X-Owner-Id": "owner-2"})
    assert response.status_code == 404
    assert store.delete_calls == []
    assert client.get(f"/api/recipes/{recipe.id}").status_code == 200


def test_delete_recipe_missing(client):
    response = client.delete("/api/recipes/nope")
    assert response.status_code == 404
    assert response.json()["success"] is False
