"""Tests for the /api/allocation/rules endpoints."""


def test_list_rules(client):
    data = client.get("/api/allocation/rules").json()
    assert data["total"] == 1
    assert data["rules"][0]["rule_code"] == "SA001"
    assert data["rules"][0]["product_group_ids"] == [7]


def test_create_rule_is_listed_first(client, harness):
    resp = client.post(
        "/api/allocation/rules",
        json={"rule_code": "SA-VIP", "customer_group": "VIP", "assigned_sales_ids": [1, 1, 2]},
    )
    assert resp.status_code == 201
    created = resp.json()
    assert created["assigned_sales_ids"] == [1, 2]
    assert created["is_active"] is True

    rules = client.get("/api/allocation/rules").json()["rules"]
    assert rules[0]["rule_code"] == "SA-VIP"
    assert harness.uow.commits == 1


def test_create_rule_requires_code(client):
    assert client.post("/api/allocation/rules", json={"rule_code": ""}).status_code == 422


def test_get_missing_rule(client):
    assert client.get("/api/allocation/rules/42").status_code == 404


def test_partial_update(client):
    resp = client.put("/api/allocation/rules/1", json={"customer_group": "Retail"})
    data = resp.json()
    assert data["customer_group"] == "Retail"
    assert data["product_group_ids"] == [7]
    assert data["assigned_sales_ids"] == [3]


def test_soft_delete_keeps_rule(client):
    resp = client.delete("/api/allocation/rules/1")
    assert resp.json()["is_active"] is False

    assert client.get("/api/allocation/rules", params={"is_active": True}).json()["total"] == 0
    assert client.get("/api/allocation/rules").json()["total"] == 1


def test_deactivated_rule_no_longer_routes(client, harness):
    client.delete("/api/allocation/rules/1")
    client.post("/api/allocation/leads/2/assign")
    # lowest load among active workers instead of the rule owner
    assert harness.owner_of(2) == 2
