"""Tests for dashboard.py and the /dashboard/stats endpoint."""

from __future__ import annotations


def _post(client, path, account, body):
    resp = client.post(path, json=body, headers=account.headers)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()


class TestDashboardStats:
    def test_empty_dashboard(self, client, alice):
        resp = client.get("/dashboard/stats", headers=alice.headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"events": 0, "studyGroups": 0, "lostFound": 0, "marketplace": 0}

    def test_counts_own_connected_and_same_university(self, client, alice, bob, carol, register):
        dave = register("dave@gamma.edu", university="gamma")
        client.post("/connections/request", json={"targetUserId": dave.id}, headers=alice.headers)
        client.post("/connections/accept", json={"requesterId": alice.id}, headers=dave.headers)

        _post(client, "/events", alice, {"title": "Mine"})
        _post(client, "/events", bob, {"title": "Same campus", "university": "alpha"})
        _post(client, "/events", dave, {"title": "Friend's"})
        _post(client, "/events", carol, {"title": "Elsewhere", "university": "beta"})

        _post(client, "/study-groups", dave, {"subject": "Chemistry"})
        _post(client, "/marketplace", carol, {"title": "Bike", "university": "beta"})
        _post(client, "/marketplace", bob, {"title": "Lamp", "university": "alpha"})

        stats = client.get("/dashboard/stats", headers=alice.headers).get_json()
        assert stats["events"] == 3
        assert stats["studyGroups"] == 1
        assert stats["marketplace"] == 1

    def test_resolved_items_not_counted(self, client, alice):
        active = _post(client, "/lost-found", alice, {"title": "Keys"})
        resolved = _post(client, "/lost-found", alice, {"title": "Wallet"})
        client.put(f"/lost-found/{resolved['id']}", json={"status": "resolved"}, headers=alice.headers)

        stats = client.get("/dashboard/stats", headers=alice.headers).get_json()
        assert stats["lostFound"] == 1
        assert active["status"] == "active"

    def test_requires_auth(self, client):
        assert client.get("/dashboard/stats").status_code == 401
