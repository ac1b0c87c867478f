import pytest
from httpx import AsyncClient
from uuid import uuid4

from src.entities.category import Category, CategoryStatus

BASE = "/api/v1/admin/categories"


@pytest.mark.asyncio
async def test_get_categories_envelope(client: AsyncClient, sample_categories, sample_products):
    response = await client.get(BASE)

    assert response.status_code == 200
    body = response.json()
    assert body["error"] is False
    assert body["requestedEntity"] == "GET /api/v1/admin/categories"
    assert body["meta"] == {"page": 1, "limit": 10, "total": 2, "totalPages": 1}

    roupas = body["data"][0]
    assert roupas["name"] == "Roupas"
    assert roupas["products"] == 4
    assert [c["name"] for c in roupas["children"]] == ["Camisetas", "Calças"]
    assert roupas["children"][0]["parentName"] == "Roupas"


@pytest.mark.asyncio
async def test_get_categories_clamps_pagination(client: AsyncClient, sample_categories):
    response = await client.get(BASE, params={"page": 0, "limit": 1000})
    assert response.json()["meta"]["page"] == 1
    assert response.json()["meta"]["limit"] == 10


@pytest.mark.asyncio
async def test_category_listing_served_from_cache_until_write(
    client: AsyncClient, db_session, admin_auth_headers, sample_categories
):
    first = await client.get(f"{BASE}/parents")
    assert len(first.json()["data"]) == 2

    # Inserção direta no banco não passa pelo invalidate()
    db_session.add(
        Category(name="Calçados", description="Tênis e sapatos", status=CategoryStatus.ACTIVE)
    )
    await db_session.commit()

    cached = await client.get(f"{BASE}/parents")
    assert len(cached.json()["data"]) == 2

    create = await client.post(
        BASE,
        json={"name": "Praia", "description": "Moda praia"},
        headers=admin_auth_headers,
    )
    assert create.status_code == 201

    fresh = await client.get(f"{BASE}/parents")
    names = [c["name"] for c in fresh.json()["data"]]
    assert "Calçados" in names
    assert "Praia" in names
    assert fresh.json()["data"][0]["children"] is None


@pytest.mark.asyncio
async def test_get_sub_categories_with_path(client: AsyncClient, sample_categories):
    response = await client.get(f"{BASE}/children")

    assert response.status_code == 200
    data = response.json()["data"]
    assert [c["categoryPath"] for c in data] == ["Roupas → Calças", "Roupas → Camisetas"]


@pytest.mark.asyncio
async def test_search_categories_requires_query(client: AsyncClient):
    response = await client.get(f"{BASE}/search")

    assert response.status_code == 400
    body = response.json()
    assert body["error"] is True
    assert body["message"] == "O parâmetro 'query' é obrigatório"
    assert body["requestedEntity"] == "GET /api/v1/admin/categories/search"


@pytest.mark.asyncio
async def test_search_categories(client: AsyncClient, sample_categories):
    response = await client.get(f"{BASE}/search", params={"query": "vestu"})

    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body["data"]] == ["Roupas"]
    assert body["meta"]["total"] == 1


@pytest.mark.asyncio
async def test_get_category_stats(client: AsyncClient, sample_categories):
    response = await client.get(f"{BASE}/stats")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["totalCategories"] == 4
    assert data["activeSubCategories"] == 1
    assert data["percentageActiveParents"] == 50
    assert response.json()["requestedEntity"] == "GET /api/v1/admin/categories/stats"


@pytest.mark.asyncio
async def test_get_category_by_id(client: AsyncClient, sample_categories):
    roupas_id = str(sample_categories["roupas"].id)

    response = await client.get(f"{BASE}/{roupas_id}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == roupas_id
    assert len(data["children"]) == 2


@pytest.mark.asyncio
async def test_get_category_not_found(client: AsyncClient):
    response = await client.get(f"{BASE}/{uuid4()}")
    assert response.status_code == 404
    assert response.json()["error"] is True
    assert response.json()["requestedEntity"] == "GET /api/v1/admin/categories/{id}"


@pytest.mark.asyncio
async def test_create_category_requires_admin(client: AsyncClient):
    response = await client.post(BASE, json={"name": "X", "description": "Y"})

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_create_category_suspended_admin(client: AsyncClient, suspended_auth_headers):
    response = await client.post(
        BASE, json={"name": "X", "description": "Y"}, headers=suspended_auth_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_create_category_validation_error(client: AsyncClient, admin_auth_headers):
    response = await client.post(BASE, json={"name": ""}, headers=admin_auth_headers)

    assert response.status_code == 422
    body = response.json()
    assert body["error"] is True
    assert len(body["detail"]) == 2


@pytest.mark.asyncio
async def test_create_sub_category(client: AsyncClient, admin_auth_headers, sample_categories):
    roupas_id = str(sample_categories["roupas"].id)

    response = await client.post(
        BASE,
        json={"name": "Bermudas", "description": "Verão", "parentId": roupas_id},
        headers=admin_auth_headers,
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["parentId"] == roupas_id
    assert data["parentName"] == "Roupas"
    assert data["status"] == "Inactive"


@pytest.mark.asyncio
async def test_create_category_under_sub_category(
    client: AsyncClient, admin_auth_headers, sample_categories
):
    response = await client.post(
        BASE,
        json={
            "name": "Regatas",
            "description": "Sem mangas",
            "parentId": str(sample_categories["camisetas"].id),
        },
        headers=admin_auth_headers,
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_category_no_changes(
    client: AsyncClient, admin_auth_headers, sample_categories
):
    roupas_id = str(sample_categories["roupas"].id)

    response = await client.patch(
        f"{BASE}/{roupas_id}", json={"name": "Roupas"}, headers=admin_auth_headers
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Nenhuma alteração detectada"


@pytest.mark.asyncio
async def test_rename_category_updates_children_listing(
    client: AsyncClient, admin_auth_headers, sample_categories
):
    roupas_id = str(sample_categories["roupas"].id)
    await client.get(f"{BASE}/children")

    response = await client.patch(
        f"{BASE}/{roupas_id}", json={"name": "Moda"}, headers=admin_auth_headers
    )
    assert response.status_code == 200
    assert response.json()["message"] == "Categoria atualizada"

    children = await client.get(f"{BASE}/children")
    assert {c["parentName"] for c in children.json()["data"]} == {"Moda"}


@pytest.mark.asyncio
async def test_deactivate_category_cascades(
    client: AsyncClient, admin_auth_headers, sample_categories
):
    roupas_id = str(sample_categories["roupas"].id)
    await client.get(f"{BASE}/children")

    response = await client.patch(
        f"{BASE}/{roupas_id}/status", json={"status": "Inactive"}, headers=admin_auth_headers
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "Inactive"
    detail = await client.get(f"{BASE}/{roupas_id}")
    assert {c["status"] for c in detail.json()["data"]["children"]} == {"Inactive"}
    children = await client.get(f"{BASE}/children")
    assert {c["status"] for c in children.json()["data"]} == {"Inactive"}


@pytest.mark.asyncio
async def test_invalid_status_value(client: AsyncClient, admin_auth_headers, sample_categories):
    roupas_id = str(sample_categories["roupas"].id)
    response = await client.patch(
        f"{BASE}/{roupas_id}/status", json={"status": "Archived"}, headers=admin_auth_headers
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_delete_category_with_children_conflict(
    client: AsyncClient, admin_auth_headers, sample_categories
):
    roupas_id = str(sample_categories["roupas"].id)

    response = await client.delete(f"{BASE}/{roupas_id}", headers=admin_auth_headers)

    assert response.status_code == 409
    assert response.json()["error"] is True


@pytest.mark.asyncio
async def test_delete_leaf_category(client: AsyncClient, admin_auth_headers, sample_categories):
    acessorios_id = str(sample_categories["acessorios"].id)

    response = await client.delete(f"{BASE}/{acessorios_id}", headers=admin_auth_headers)

    assert response.status_code == 200
    assert response.json()["data"] is None
    assert (await client.get(f"{BASE}/{acessorios_id}")).status_code == 404


@pytest.mark.asyncio
async def test_delete_with_options_cascade(
    client: AsyncClient, admin_auth_headers, sample_categories
):
    roupas_id = str(sample_categories["roupas"].id)
    await client.get(BASE)

    response = await client.post(
        f"{BASE}/{roupas_id}/delete-with-options",
        json={"mode": "cascade"},
        headers=admin_auth_headers,
    )

    assert response.status_code == 200
    listing = await client.get(BASE)
    assert [c["name"] for c in listing.json()["data"]] == ["Acessórios"]
    children = await client.get(f"{BASE}/children")
    assert children.json()["data"] == []


@pytest.mark.asyncio
async def test_delete_with_options_reassign(
    client: AsyncClient, admin_auth_headers, sample_categories
):
    roupas_id = str(sample_categories["roupas"].id)
    acessorios_id = str(sample_categories["acessorios"].id)
    reassignments = [
        {"childId": str(sample_categories[key].id), "newParentId": acessorios_id}
        for key in ("camisetas", "calcas")
    ]
    await client.get(f"{BASE}/{roupas_id}")
    await client.get(f"{BASE}/children")

    response = await client.post(
        f"{BASE}/{roupas_id}/delete-with-options",
        json={"mode": "reassign", "reassignments": reassignments},
        headers=admin_auth_headers,
    )

    assert response.status_code == 200
    detail = await client.get(f"{BASE}/{acessorios_id}")
    assert sorted(c["name"] for c in detail.json()["data"]["children"]) == [
        "Calças",
        "Camisetas",
    ]
    children = await client.get(f"{BASE}/children")
    assert {c["parentName"] for c in children.json()["data"]} == {"Acessórios"}


@pytest.mark.asyncio
async def test_delete_with_options_invalid_mode(
    client: AsyncClient, admin_auth_headers, sample_categories
):
    roupas_id = str(sample_categories["roupas"].id)
    response = await client.post(
        f"{BASE}/{roupas_id}/delete-with-options",
        json={"mode": "archive"},
        headers=admin_auth_headers,
    )
    assert response.status_code == 422
