from recipebox.models import Recipe
from recipebox.services.categories import delete_category


OTHER_OWNER = "owner-2"


def test_create_and_list_categories(client):
    for name in ["Soups", "Desserts", "  Breakfast "]:
        response = client.post("/api/categories", json={"name": name})
        assert response.status_code == 201
        assert response.json()["success"] is True

    response = client.get("/api/categories")
    assert response.status_code == 200
    assert [c["name"] for c in response.json()["data"]] == ["Breakfast", "Desserts", "Soups"]

    # Another owner sees nothing
    response = client.get("/api/categories", headers={"X-Owner-Id": OTHER_OWNER})
    assert response.json()["data"] == []


def test_create_category_requires_name(client):
    response = client.post("/api/categories", json={"name": "   "})
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_get_category(client, category):
    response = client.get(f"/api/categories/{category.id}")
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Desserts"

    response = client.get(f"/api/categories/{category.id}", headers={"X-Owner-Id": OTHER_OWNER})
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Category not found or access denied"}


def test_rename_category(client, category):
    response = client.put(f"/api/categories/{category.id}", json={"name": "Sweets"})
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Category updated successfully"
    assert body["data"]["name"] == "Sweets"


def test_rename_category_requires_name(client, category):
    response = client.put(f"/api/categories/{category.id}", json={})
    assert response.status_code == 400

    assert client.get(f"/api/categories/{category.id}").json()["data"]["name"] == "Desserts"


def test_rename_category_not_owned(client, category):
    response = client.put(
        f"/api/categories/{category.id}",
        json={"name": "Mine now"},
        headers={"X-Owner-Id": OTHER_OWNER},
    )
    assert response.status_code == 404


def test_delete_category_detaches_recipes(client, db_session, category, make_recipe):
    recipes = [make_recipe(name=f"Recipe {i}") for i in range(3)]
    untouched = make_recipe(name="Elsewhere", category_id="other-category")

    response = client.delete(f"/api/categories/{category.id}")
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Category deleted successfully"}

    assert client.get(f"/api/categories/{category.id}").status_code == 404

    db_session.expire_all()
    for recipe in recipes:
        assert db_session.get(Recipe, recipe.id).category_id is None
    assert db_session.get(Recipe, untouched.id).category_id == "other-category"

    # Detached recipes are still readable
    response = client.get(f"/api/recipes/{recipes[0].id}")
    assert response.status_code == 200
    assert response.json()["data"]["category_id"] is None


def test_delete_category_returns_detached_count(db_session, category, make_recipe):
    make_recipe()
    make_recipe()
    assert delete_category(db_session, category.id, owner_id="owner-1") == 2


def test_delete_category_not_owned(client, category, make_recipe):
    recipe = make_recipe()
    response = client.delete(f"/api/categories/{category.id}", headers={"X-Owner-Id": OTHER_OWNER})
    assert response.status_code == 404

    assert client.get(f"/api/categories/{category.id}").status_code == 200
    assert client.get(f"/api/recipes/{recipe.id}").json()["data"]["category_id"] == category.id
