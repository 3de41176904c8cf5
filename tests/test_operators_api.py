from tests.helpers import ADMIN_KEY, STANDARD_RULES

ADMIN_HEADERS = {"X-Admin-Key": ADMIN_KEY}

LATE_RULES = {
    "slabs": [
        {"hoursBefore": 48, "refundPercentage": 90, "label": "Two days ahead"},
        {"hoursBefore": 0, "refundPercentage": 0, "label": "Too late"},
    ]
}

class TestOperators:

    def test_list_operators(self, client, operator):
        response = client.get("/api/v1/operators")
        assert response.status_code == 200
        assert response.json() == [{
            "id": operator["operator_id"],
            "name": "MetroWay",
            "currentPolicyId": operator["policy_id"],
            "currentPolicyVersion": 1,
        }]

    def test_create_operator(self, client):
        response = client.post(
            "/api/v1/operators",
            json={"name": "Orange Tours", "rules": STANDARD_RULES},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Orange Tours"
        assert body["currentPolicyVersion"] == 1

    def test_create_requires_admin_key(self, client):
        response = client.post("/api/v1/operators", json={"name": "Orange Tours", "rules": STANDARD_RULES})
        assert response.status_code == 403

    def test_duplicate_operator(self, client, operator):
        response = client.post(
            "/api/v1/operators",
            json={"name": "MetroWay", "rules": STANDARD_RULES},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 409

    def test_out_of_range_rules(self, client):
        rules = {"slabs": [{"hoursBefore": 0, "refundPercentage": 120, "label": "Too generous"}]}
        response = client.post(
            "/api/v1/operators",
            json={"name": "Orange Tours", "rules": rules},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 422

class TestPolicies:

    def test_current_policy_in_display_order(self, client, operator):
        response = client.get(f"/api/v1/operators/{operator['operator_id']}/policy")
        assert response.status_code == 200
        summary = response.json()

        assert summary["policyId"] == operator["policy_id"]
        assert summary["convenienceFeePercentage"] == 5
        assert [s["hoursBefore"] for s in summary["slabs"]] == [24, 12, 3, 0]

    def test_publish_new_version(self, client, operator):
        url = f"/api/v1/operators/{operator['operator_id']}/policies"

        response = client.post(url, json={"rules": LATE_RULES}, headers=ADMIN_HEADERS)
        assert response.status_code == 201
        assert response.json()["version"] == 2
        assert response.json()["isCurrent"] is True

        history = client.get(url).json()
        assert [(p["version"], p["isCurrent"]) for p in history] == [(2, True), (1, False)]

        current = client.get(f"/api/v1/operators/{operator['operator_id']}/policy").json()
        assert current["version"] == 2

    def test_publish_requires_admin_key(self, client, operator):
        response = client.post(f"/api/v1/operators/{operator['operator_id']}/policies", json={"rules": LATE_RULES})
        assert response.status_code == 403

    def test_publish_for_unknown_operator(self, client):
        response = client.post("/api/v1/operators/999/policies", json={"rules": LATE_RULES}, headers=ADMIN_HEADERS)
        assert response.status_code == 404

    def test_unknown_operator_policy(self, client):
        assert client.get("/api/v1/operators/999/policy").status_code == 404
        assert client.get("/api/v1/operators/999/policies").status_code == 404
