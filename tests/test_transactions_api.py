from conftest import API, create_category, create_transaction, default_category_id


async def set_budget(client, headers, category_id, amount, month=3, year=2024):
    response = await client.post(
        f"{API}/budgets",
        json={"category_id": category_id, "amount": amount, "month": month, "year": year},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_without_budget_has_no_alert(client, alice) -> None:
    food_id = await default_category_id(client, alice)

    response = await create_transaction(
        client, alice, amount=42.5, category_id=food_id, transaction_date="2024-03-05T12:00:00"
    )

    assert response.status_code == 201
    body = response.json()
    assert body["budget_alert"] is None
    assert body["data"]["amount"] == 42.5
    assert body["data"]["type"] == "expense"


async def test_transaction_date_defaults_to_now(client, alice) -> None:
    food_id = await default_category_id(client, alice)

    response = await create_transaction(client, alice, amount=5, category_id=food_id)

    assert response.status_code == 201
    assert response.json()["data"]["transaction_date"]


async def test_warning_then_over_budget_alerts(client, alice) -> None:
    food_id = await default_category_id(client, alice)
    await set_budget(client, alice, food_id, 500)

    response = await create_transaction(
        client, alice, amount=420, category_id=food_id, transaction_date="2024-03-10T09:00:00"
    )
    alert = response.json()["budget_alert"]
    assert alert["message"] == "You've used 84% of your budget for this category."
    assert alert["is_over_budget"] is False

    response = await create_transaction(
        client, alice, amount=130, category_id=food_id, transaction_date="2024-03-20T09:00:00"
    )
    alert = response.json()["budget_alert"]
    assert alert["message"] == (
        "This transaction exceeds your budget for this category. Budget: $500, Total spent: $550"
    )
    assert alert["is_over_budget"] is True
    assert alert["total_spent"] == 550


async def test_income_and_other_months_do_not_alert(client, alice) -> None:
    food_id = await default_category_id(client, alice)
    await set_budget(client, alice, food_id, 100)

    response = await create_transaction(
        client, alice, amount=900, type="income", category_id=food_id, transaction_date="2024-03-10T09:00:00"
    )
    assert response.json()["budget_alert"] is None

    response = await create_transaction(
        client, alice, amount=900, category_id=food_id, transaction_date="2024-04-01T00:00:00"
    )
    assert response.json()["budget_alert"] is None


async def test_update_does_not_count_the_transaction_twice(client, alice) -> None:
    food_id = await default_category_id(client, alice)
    await set_budget(client, alice, food_id, 500)
    created = await create_transaction(
        client, alice, amount=450, category_id=food_id, transaction_date="2024-03-10T09:00:00"
    )
    tx_id = created.json()["data"]["id"]

    response = await client.patch(f"{API}/transactions/{tx_id}", json={"amount": 460}, headers=alice)

    assert response.status_code == 200
    body = response.json()
    assert body["data"]["amount"] == 460
    assert body["budget_alert"]["message"] == "You've used 92% of your budget for this category."


async def test_unknown_or_foreign_category_is_rejected(client, alice, bob) -> None:
    bobs_category = await create_category(client, bob, "Hobby")

    response = await create_transaction(client, alice, amount=10, category_id=bobs_category)

    assert response.status_code == 400
    assert response.json()["detail"] == "Category not found"


async def test_non_positive_amount_is_invalid(client, alice) -> None:
    food_id = await default_category_id(client, alice)

    response = await create_transaction(client, alice, amount=0, category_id=food_id)

    assert response.status_code == 422


async def test_list_filters_sorts_and_paginates(client, alice, bob) -> None:
    food_id = await default_category_id(client, alice)
    salary_id = await default_category_id(client, alice, "Salary")
    await create_transaction(client, alice, description="Morning coffee", amount=4, category_id=food_id,
                             transaction_date="2024-03-01T08:00:00")
    await create_transaction(client, alice, description="Supermarket", amount=60, category_id=food_id,
                             transaction_date="2024-03-02T08:00:00")
    await create_transaction(client, alice, description="Paycheck", amount=3000, type="income",
                             category_id=salary_id, transaction_date="2024-03-25T08:00:00")
    await create_transaction(client, bob, description="Bob coffee", amount=3, category_id=food_id,
                             transaction_date="2024-03-01T08:00:00")

    response = await client.get(f"{API}/transactions", headers=alice)
    body = response.json()
    assert body["total"] == 3
    # Newest first by default
    assert [tx["description"] for tx in body["data"]] == ["Paycheck", "Supermarket", "Morning coffee"]

    response = await client.get(f"{API}/transactions", params={"type": "expense", "sort": "amount"}, headers=alice)
    assert [tx["amount"] for tx in response.json()["data"]] == [4, 60]

    response = await client.get(f"{API}/transactions", params={"search": "COFFEE"}, headers=alice)
    assert [tx["description"] for tx in response.json()["data"]] == ["Morning coffee"]

    response = await client.get(
        f"{API}/transactions",
        params={"start_date": "2024-03-02T00:00:00", "end_date": "2024-03-31T00:00:00"},
        headers=alice,
    )
    assert response.json()["total"] == 2

    response = await client.get(f"{API}/transactions", params={"limit": 2}, headers=alice)
    body = response.json()
    assert body["count"] == 2
    assert body["pagination"] == {"next": {"page": 2, "limit": 2}}

    response = await client.get(f"{API}/transactions", params={"limit": 2, "page": 2}, headers=alice)
    body = response.json()
    assert body["count"] == 1
    assert body["pagination"] == {"prev": {"page": 1, "limit": 2}}


async def test_unknown_sort_field_is_bad_request(client, alice) -> None:
    response = await client.get(f"{API}/transactions", params={"sort": "-bogus"}, headers=alice)

    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot sort by 'bogus'"


async def test_other_users_transaction_is_forbidden(client, alice, bob) -> None:
    food_id = await default_category_id(client, alice)
    created = await create_transaction(client, alice, amount=10, category_id=food_id)
    tx_id = created.json()["data"]["id"]

    for method in ("get", "delete"):
        response = await getattr(client, method)(f"{API}/transactions/{tx_id}", headers=bob)
        assert response.status_code == 403
        assert response.json()["detail"] == "Not authorized to access this transaction"

    response = await client.patch(f"{API}/transactions/{tx_id}", json={"amount": 1}, headers=bob)
    assert response.status_code == 403


async def test_delete_transaction(client, alice) -> None:
    food_id = await default_category_id(client, alice)
    created = await create_transaction(client, alice, amount=10, category_id=food_id)
    tx_id = created.json()["data"]["id"]

    response = await client.delete(f"{API}/transactions/{tx_id}", headers=alice)
    assert response.status_code == 204

    response = await client.get(f"{API}/transactions/{tx_id}", headers=alice)
    assert response.status_code == 404
    assert response.json()["detail"] == "Transaction not found"
