import budget_tracker.crud.budget as budget_crud

from conftest import API, create_category, create_transaction, default_category_id


def budget_payload(category_id, amount=500, month=3, year=2024):
    return {"category_id": category_id, "amount": amount, "month": month, "year": year}


async def test_create_and_read_budget(client, alice) -> None:
    food_id = await default_category_id(client, alice)

    response = await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=alice)
    assert response.status_code == 201
    budget = response.json()
    assert budget["amount"] == 500

    response = await client.get(f"{API}/budgets/{budget['id']}", headers=alice)
    assert response.status_code == 200

    response = await client.get(f"{API}/budgets", params={"month": 3, "year": 2024}, headers=alice)
    assert [b["id"] for b in response.json()] == [budget["id"]]

    response = await client.get(f"{API}/budgets", params={"month": 4}, headers=alice)
    assert response.json() == []


async def test_duplicate_period_is_a_conflict(client, alice) -> None:
    food_id = await default_category_id(client, alice)
    await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=alice)

    response = await client.post(f"{API}/budgets", json=budget_payload(food_id, amount=80), headers=alice)

    assert response.status_code == 409
    assert response.json()["detail"] == {
        "detail": "Budget for this category and period already exists",
        "category_id": food_id,
        "month": 3,
        "year": 2024,
    }


async def test_same_period_for_other_user_is_allowed(client, alice, bob) -> None:
    food_id = await default_category_id(client, alice)
    await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=alice)

    response = await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=bob)

    assert response.status_code == 201


async def test_conflict_is_reported_when_the_insert_races(client, alice, monkeypatch) -> None:
    food_id = await default_category_id(client, alice)
    await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=alice)

    async def nothing_found(*args, **kwargs):
        return None

    # Simulates a concurrent writer slipping in between the check and the insert
    monkeypatch.setattr(budget_crud, "find_budget_for_period", nothing_found)

    response = await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=alice)

    assert response.status_code == 409
    assert response.json()["detail"]["month"] == 3


async def test_update_budget(client, alice) -> None:
    food_id = await default_category_id(client, alice)
    created = await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=alice)
    budget_id = created.json()["id"]

    # Same period, new amount: not a conflict with itself
    response = await client.patch(f"{API}/budgets/{budget_id}", json={"amount": 650}, headers=alice)
    assert response.status_code == 200
    assert response.json()["amount"] == 650

    response = await client.patch(f"{API}/budgets/{budget_id}", json={"month": 4}, headers=alice)
    assert response.status_code == 200
    assert response.json()["month"] == 4


async def test_update_into_budgeted_period_is_a_conflict(client, alice) -> None:
    food_id = await default_category_id(client, alice)
    await client.post(f"{API}/budgets", json=budget_payload(food_id, month=3), headers=alice)
    april = await client.post(f"{API}/budgets", json=budget_payload(food_id, month=4), headers=alice)

    response = await client.patch(f"{API}/budgets/{april.json()['id']}", json={"month": 3}, headers=alice)

    assert response.status_code == 409
    assert response.json()["detail"]["month"] == 3

    response = await client.get(f"{API}/budgets/{april.json()['id']}", headers=alice)
    assert response.json()["month"] == 4


async def test_budget_needs_a_usable_category(client, alice, bob) -> None:
    bobs_category = await create_category(client, bob, "Hobby")

    response = await client.post(f"{API}/budgets", json=budget_payload(bobs_category), headers=alice)

    assert response.status_code == 400


async def test_invalid_budget_values(client, alice) -> None:
    food_id = await default_category_id(client, alice)

    response = await client.post(f"{API}/budgets", json=budget_payload(food_id, month=13), headers=alice)
    assert response.status_code == 422

    response = await client.post(f"{API}/budgets", json=budget_payload(food_id, amount=-1), headers=alice)
    assert response.status_code == 422


async def test_other_users_budget_is_forbidden(client, alice, bob) -> None:
    food_id = await default_category_id(client, alice)
    created = await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=alice)
    budget_id = created.json()["id"]

    response = await client.get(f"{API}/budgets/{budget_id}", headers=bob)
    assert response.status_code == 403

    response = await client.delete(f"{API}/budgets/{budget_id}", headers=bob)
    assert response.status_code == 403

    response = await client.delete(f"{API}/budgets/{budget_id}", headers=alice)
    assert response.status_code == 204


async def test_monthly_status(client, alice) -> None:
    food_id = await default_category_id(client, alice)
    travel_id = await default_category_id(client, alice, "Travel")
    await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=alice)
    await client.post(f"{API}/budgets", json=budget_payload(travel_id, amount=100), headers=alice)
    await create_transaction(client, alice, amount=300, category_id=food_id, transaction_date="2024-03-03T10:00:00")
    await create_transaction(client, alice, amount=120, category_id=food_id, transaction_date="2024-03-31T23:59:59")
    await create_transaction(client, alice, amount=999, type="income", category_id=food_id,
                             transaction_date="2024-03-15T10:00:00")
    await create_transaction(client, alice, amount=50, category_id=food_id, transaction_date="2024-04-01T00:00:00")

    response = await client.get(f"{API}/budgets/status/3/2024", headers=alice)

    assert response.status_code == 200
    entries = {entry["category"]["name"]: entry for entry in response.json()}
    food = entries["Food"]
    assert food["spent"] == 420
    assert food["remaining"] == 80
    assert food["percent_used"] == 84
    assert food["status"] == "warning"
    assert len(food["transactions"]) == 2

    travel = entries["Travel"]
    assert travel["spent"] == 0
    assert travel["status"] == "good"


async def test_year_summary(client, alice) -> None:
    food_id = await default_category_id(client, alice)
    await client.post(f"{API}/budgets", json=budget_payload(food_id), headers=alice)
    await client.post(f"{API}/budgets", json=budget_payload(food_id, year=2023), headers=alice)
    await create_transaction(client, alice, amount=420, category_id=food_id, transaction_date="2024-03-03T10:00:00")
    await create_transaction(client, alice, amount=70, category_id=food_id, transaction_date="2024-07-03T10:00:00")

    response = await client.get(f"{API}/budgets/summary/2024", headers=alice)

    assert response.status_code == 200
    summary = response.json()
    assert [m["month"] for m in summary] == list(range(1, 13))
    march = summary[2]
    assert march["total_budgeted"] == 500
    assert march["total_spent"] == 420
    assert march["difference"] == 80
    assert march["percent_used"] == 84
    july = summary[6]
    assert july["total_budgeted"] == 0
    assert july["total_spent"] == 70
    assert july["percent_used"] == 0
    assert summary[0]["total_spent"] == 0
