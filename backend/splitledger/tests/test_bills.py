"""
Tests for bill create, read, edit and delete.
"""
from decimal import Decimal

from conftest import money, split_of


def _participant_ids(bill):
    return {p["name"]: p["id"] for p in bill["participants"]}


def test_create_bill_computes_amounts(client, alice, bob, create_bill):
    bill = create_bill(
        alice,
        participants=[
            {"id": 1, "name": "Alice", "user_id": alice.id},
            {"id": 2, "name": "Bob", "user_id": bob.id},
        ],
        items=[
            {"name": "Steak", "base_price": "100.00", "tax_percent": "7", "service_percent": "10",
             "split_with": [1, 2]},
            {"name": "Wine", "base_price": "30.00", "split_with": [2]},
        ],
        total_amount="999.99",
        category="food",
    )

    assert bill["user_id"] == alice.id
    assert bill["category"] == "food"
    assert bill["creator"]["name"] == "Alice"
    assert money(bill["total_amount"]) == Decimal("147.00")

    steak, wine = bill["items"]
    assert money(steak["tax_amount"]) == Decimal("7.00")
    assert money(steak["service_amount"]) == Decimal("10.00")
    assert money(steak["total_amount"]) == Decimal("117.00")
    assert [money(s["share_amount"]) for s in steak["splits"]] == [Decimal("58.50"), Decimal("58.50")]
    assert steak["split_with_names"] == ["Alice", "Bob"]
    assert all(s["payment_status"] == "pending" for s in steak["splits"])

    assert [s["participant_name"] for s in wine["splits"]] == ["Bob"]
    assert money(wine["splits"][0]["share_amount"]) == Decimal("30.00")

    participants = {p["name"]: p for p in bill["participants"]}
    assert participants["Alice"]["is_creator"] is True
    assert participants["Bob"]["is_creator"] is False
    assert money(participants["Bob"]["total_amount"]) == Decimal("88.50")
    assert money(participants["Bob"]["pending_amount"]) == Decimal("88.50")
    assert money(participants["Bob"]["paid_amount"]) == Decimal("0")


def test_create_bill_default_category(alice, create_bill):
    bill = create_bill(alice, participants=[], items=[])
    assert bill["category"] == "etc"
    assert money(bill["total_amount"]) == Decimal("0")
    assert bill["items"] == []


def test_create_bill_uneven_split_sums_to_total(alice, bob, carol, create_bill):
    bill = create_bill(
        alice,
        participants=[
            {"id": 10, "name": "Alice", "user_id": alice.id},
            {"id": 20, "name": "Bob", "user_id": bob.id},
            {"id": 30, "name": "Carol", "user_id": carol.id},
        ],
        items=[{"name": "Cake", "base_price": "100.00", "split_with": [10, 20, 30]}],
    )

    shares = [money(s["share_amount"]) for s in bill["items"][0]["splits"]]
    assert shares == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]
    assert sum(shares) == Decimal("100.00")


def test_create_bill_skips_unknown_provisional_ids(alice, bob, create_bill):
    bill = create_bill(
        alice,
        participants=[
            {"id": 1, "name": "Alice", "user_id": alice.id},
            {"id": 2, "name": "Bob", "user_id": bob.id},
        ],
        items=[{"name": "Tea", "base_price": "9.00", "split_with": [2, 99, 2]}],
    )

    splits = bill["items"][0]["splits"]
    assert len(splits) == 1
    assert splits[0]["user_id"] == bob.id
    assert money(splits[0]["share_amount"]) == Decimal("9.00")


def test_create_bill_with_guest(alice, create_bill):
    bill = create_bill(
        alice,
        participants=[
            {"id": 1, "name": "Alice", "user_id": alice.id},
            {"id": 2, "name": "Guest", "user_id": None},
        ],
        items=[{"name": "Taxi", "base_price": "20.00", "split_with": [1, 2]}],
    )

    guest_split = bill["items"][0]["splits"][1]
    assert guest_split["participant_name"] == "Guest"
    assert guest_split["user_id"] is None


def test_create_bill_validation(client, alice):
    response = client.post("/api/bills", json={"name": ""}, headers=alice.headers)
    assert response.status_code == 422

    response = client.post(
        "/api/bills",
        json={"name": "Bad", "items": [{"name": "X", "base_price": "-1"}]},
        headers=alice.headers
    )
    assert response.status_code == 422


def test_get_bill_access(client, alice, bob, carol, shared_dinner):
    bill_id = shared_dinner["id"]

    response = client.get(f"/api/bills/{bill_id}", headers=bob.headers)
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Dinner"

    response = client.get(f"/api/bills/{bill_id}", headers=carol.headers)
    assert response.status_code == 403

    response = client.get("/api/bills/9999", headers=alice.headers)
    assert response.status_code == 404
    assert response.json() == {"status": 404, "message": "Bill not found"}


def test_list_bills(client, alice, bob, carol, create_bill, shared_dinner):
    second = create_bill(
        bob,
        participants=[{"id": 1, "name": "Bob", "user_id": bob.id}],
        items=[],
        name="Groceries",
    )

    response = client.get("/api/bills", headers=bob.headers)
    assert response.status_code == 200
    assert [b["id"] for b in response.json()["data"]] == [second["id"], shared_dinner["id"]]

    response = client.get("/api/bills", headers=alice.headers)
    assert [b["id"] for b in response.json()["data"]] == [shared_dinner["id"]]

    response = client.get("/api/bills", headers=carol.headers)
    assert response.json()["data"] == []


def test_only_creator_can_edit_or_delete(client, bob, shared_dinner):
    bill_id = shared_dinner["id"]

    response = client.patch(f"/api/bills/{bill_id}", json={"name": "Mine"}, headers=bob.headers)
    assert response.status_code == 403

    response = client.delete(f"/api/bills/{bill_id}", headers=bob.headers)
    assert response.status_code == 403


def test_outsider_cannot_edit_or_delete(client, alice, carol, shared_dinner):
    bill_id = shared_dinner["id"]

    response = client.patch(
        f"/api/bills/{bill_id}",
        json={"name": "Hijacked", "participants": [], "items": []},
        headers=carol.headers
    )
    assert response.status_code == 403

    response = client.delete(f"/api/bills/{bill_id}", headers=carol.headers)
    assert response.status_code == 403

    data = client.get(f"/api/bills/{bill_id}", headers=alice.headers).json()["data"]
    assert data["name"] == "Dinner"
    assert _participant_ids(data) == _participant_ids(shared_dinner)
    assert [i["id"] for i in data["items"]] == [shared_dinner["items"][0]["id"]]
    assert len(data["items"][0]["splits"]) == 2
    assert money(data["total_amount"]) == Decimal("100.00")


def test_edit_bill_scalar_fields(client, alice, shared_dinner):
    bill_id = shared_dinner["id"]
    response = client.patch(
        f"/api/bills/{bill_id}",
        json={"name": "Late dinner", "description": "after the show", "total_amount": "1.00"},
        headers=alice.headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["name"] == "Late dinner"
    assert data["description"] == "after the show"
    assert money(data["total_amount"]) == Decimal("100.00")
    assert len(data["items"][0]["splits"]) == 2


def test_edit_bill_resubmitting_same_state_is_stable(client, alice, bob, shared_dinner):
    bill_id = shared_dinner["id"]
    ids = _participant_ids(shared_dinner)
    item = shared_dinner["items"][0]
    payload = {
        "participants": [
            {"id": ids["Alice"], "name": "Alice", "user_id": alice.id},
            {"id": ids["Bob"], "name": "Bob", "user_id": bob.id},
        ],
        "items": [
            {"id": item["id"], "name": "Pizza", "base_price": "100.00",
             "split_with": [ids["Alice"], ids["Bob"]]},
        ],
    }

    for _ in range(2):
        response = client.patch(f"/api/bills/{bill_id}", json=payload, headers=alice.headers)
        assert response.status_code == 200

    data = response.json()["data"]
    assert _participant_ids(data) == ids
    assert [i["id"] for i in data["items"]] == [item["id"]]
    assert [money(s["share_amount"]) for s in data["items"][0]["splits"]] == [Decimal("50.00")] * 2
    assert money(data["total_amount"]) == Decimal("100.00")


def test_edit_bill_adds_and_removes(client, alice, bob, carol, shared_dinner):
    bill_id = shared_dinner["id"]
    ids = _participant_ids(shared_dinner)
    payload = {
        "participants": [
            {"id": ids["Alice"], "name": "Alice", "user_id": alice.id},
            {"id": 500, "name": "Carol", "user_id": carol.id},
        ],
        "items": [
            {"name": "Pasta", "base_price": "60.00", "split_with": [ids["Alice"], 500]},
        ],
    }

    response = client.patch(f"/api/bills/{bill_id}", json=payload, headers=alice.headers)
    assert response.status_code == 200
    data = response.json()["data"]

    assert sorted(p["name"] for p in data["participants"]) == ["Alice", "Carol"]
    assert [i["name"] for i in data["items"]] == ["Pasta"]
    assert data["items"][0]["split_with_names"] == ["Alice", "Carol"]
    assert money(data["total_amount"]) == Decimal("60.00")

    old_item_id = shared_dinner["items"][0]["id"]
    assert client.get(f"/api/items/{old_item_id}", headers=alice.headers).status_code == 404
    assert client.get(f"/api/bills/{bill_id}", headers=bob.headers).status_code == 403
    assert client.get(f"/api/bills/{bill_id}", headers=carol.headers).status_code == 200


def test_edit_new_participants_resolve_by_provisional_id(client, alice, bob, shared_dinner):
    bill_id = shared_dinner["id"]
    ids = _participant_ids(shared_dinner)
    next_id = max(ids.values()) + 1
    # Carol's provisional id is the row id Dave will be stored under, and vice versa
    payload = {
        "participants": [
            {"id": ids["Alice"], "name": "Alice", "user_id": alice.id},
            {"id": ids["Bob"], "name": "Bob", "user_id": bob.id},
            {"id": next_id + 1, "name": "Carol", "user_id": None},
            {"id": next_id, "name": "Dave", "user_id": None},
        ],
        "items": [
            {"name": "Dessert", "base_price": "12.00", "split_with": [next_id + 1]},
            {"name": "Coffee", "base_price": "6.00", "split_with": [next_id, ids["Bob"]]},
        ],
    }

    response = client.patch(f"/api/bills/{bill_id}", json=payload, headers=alice.headers)
    assert response.status_code == 200
    data = response.json()["data"]

    stored = _participant_ids(data)
    assert stored["Carol"] == next_id
    assert stored["Dave"] == next_id + 1

    dessert, coffee = data["items"]
    assert dessert["split_with_names"] == ["Carol"]
    assert coffee["split_with_names"] == ["Dave", "Bob"]
    assert [money(s["share_amount"]) for s in coffee["splits"]] == [Decimal("3.00")] * 2


def test_edit_participants_only_rebalances_items(client, alice, bob, carol, create_bill):
    bill = create_bill(
        alice,
        participants=[
            {"id": 1, "name": "Alice", "user_id": alice.id},
            {"id": 2, "name": "Bob", "user_id": bob.id},
            {"id": 3, "name": "Carol", "user_id": carol.id},
        ],
        items=[{"name": "Boat", "base_price": "90.00", "split_with": [1, 2, 3]}],
    )
    ids = _participant_ids(bill)

    response = client.patch(
        f"/api/bills/{bill['id']}",
        json={"participants": [
            {"id": ids["Alice"], "name": "Alice", "user_id": alice.id},
            {"id": ids["Carol"], "name": "Carol", "user_id": carol.id},
        ]},
        headers=alice.headers
    )
    assert response.status_code == 200
    item = response.json()["data"]["items"][0]

    assert item["split_with_names"] == ["Alice", "Carol"]
    assert [money(s["share_amount"]) for s in item["splits"]] == [Decimal("45.00")] * 2


def test_edit_participant_user_link(client, alice, bob, carol, shared_dinner):
    bill_id = shared_dinner["id"]
    ids = _participant_ids(shared_dinner)

    response = client.patch(
        f"/api/bills/{bill_id}",
        json={"participants": [
            {"id": ids["Alice"], "name": "Alice", "user_id": alice.id},
            {"id": ids["Bob"], "name": "Carol", "user_id": carol.id},
        ]},
        headers=alice.headers
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert split_of(data, carol.id)["participant_name"] == "Carol"

    response = client.get("/api/splits", headers=carol.headers)
    owes = response.json()["data"]["people_user_owes"]
    assert [(e["user_id"], money(e["amount"])) for e in owes] == [(alice.id, Decimal("50.00"))]


def test_delete_bill(client, alice, shared_dinner):
    bill_id = shared_dinner["id"]
    item_id = shared_dinner["items"][0]["id"]
    split_id = shared_dinner["items"][0]["splits"][0]["id"]

    response = client.delete(f"/api/bills/{bill_id}", headers=alice.headers)
    assert response.status_code == 200
    assert response.json()["data"] is None

    assert client.get(f"/api/bills/{bill_id}", headers=alice.headers).status_code == 404
    assert client.get(f"/api/items/{item_id}", headers=alice.headers).status_code == 404
    assert client.get(f"/api/shares/{split_id}", headers=alice.headers).status_code == 404
    assert client.delete(f"/api/bills/{bill_id}", headers=alice.headers).status_code == 404
