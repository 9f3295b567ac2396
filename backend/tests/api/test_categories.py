"""Tests for categories endpoint."""
from httpx import AsyncClient


async def _create(client: AsyncClient, category: str | None) -> None:
    response = await client.post(
        "/transactions/",
        json={"description": "Test", "amount": "5.00", "type": "expense", "category": category},
    )
    assert response.status_code == 201


async def test_list_categories_empty(client: AsyncClient) -> None:
    response = await client.get("/categories/")
    assert response.status_code == 200
    assert response.json() == {"categories": []}


async def test_list_categories_counts_and_order(client: AsyncClient) -> None:
    """Sorted by count, then name; uncategorized transactions are skipped."""
    for category in ["Food", "Transport", "Food", "Bills", None, "Food", "Transport"]:
        await _create(client, category)

    response = await client.get("/categories/")
    assert response.json()["categories"] == [
        {"name": "Food", "count": 3},
        {"name": "Transport", "count": 2},
        {"name": "Bills", "count": 1},
    ]


async def test_list_categories_per_user(
    client: AsyncClient, other_client: AsyncClient,
) -> None:
    await _create(client, "Travel")
    await _create(other_client, "Hobbies")
    assert (await client.get("/categories/")).json()["categories"] == [
        {"name": "Travel", "count": 1},
    ]


async def test_list_categories_requires_session(anon_client: AsyncClient) -> None:
    response = await anon_client.get("/categories/")
    assert response.status_code == 401
    assert response.json()["message"] == "Not authenticated"
