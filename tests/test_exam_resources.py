"""Tests for blueprints/exam.py — exam resource sharing and recommendations."""

from __future__ import annotations


def _upload(client, account, **fields):
    body = {"course": "Medieval Poetry", "title": "Past paper", "type": "past-papers"}
    body.update(fields)
    resp = client.post("/exam-resources", json=body, headers=account.headers)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()


class TestUpload:
    def test_upload_defaults(self, client, alice):
        resource = _upload(client, alice)
        assert resource["id"].startswith("exam:")
        assert resource["uploaderId"] == alice.id
        assert resource["uploaderName"] == "Alice Andrews"
        assert resource["downloads"] == 0
        assert resource["helpful"] == 0

    def test_counters_cannot_be_seeded(self, client, alice):
        resource = _upload(client, alice, downloads=999, helpful=50)
        assert resource["downloads"] == 0
        assert resource["helpful"] == 0

    def test_missing_fields(self, client, alice):
        resp = client.post("/exam-resources", json={"course": "Maths"}, headers=alice.headers)
        assert resp.status_code == 400

    def test_unknown_type(self, client, alice):
        resp = client.post(
            "/exam-resources",
            json={"course": "Maths", "title": "x", "type": "video"},
            headers=alice.headers,
        )
        assert resp.status_code == 400
        assert "type must be one of" in resp.get_json()["error"]

    def test_list_is_public(self, client, alice):
        _upload(client, alice)
        assert len(client.get("/exam-resources").get_json()) == 1


class TestCounters:
    def test_download_and_helpful(self, client, alice, bob):
        resource = _upload(client, alice)
        client.post(f"/exam-resources/{resource['id']}/download", headers=bob.headers)
        resp = client.post(f"/exam-resources/{resource['id']}/download", headers=bob.headers)
        assert resp.get_json()["downloads"] == 2

        resp = client.post(f"/exam-resources/{resource['id']}/helpful", headers=bob.headers)
        assert resp.get_json()["helpful"] == 1

    def test_counter_on_unknown_resource(self, client, bob):
        resp = client.post("/exam-resources/exam:1/download", headers=bob.headers)
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Resource not found"}


class TestDelete:
    def test_only_uploader_can_delete(self, client, alice, bob):
        resource = _upload(client, alice)
        resp = client.delete(f"/exam-resources/{resource['id']}", headers=bob.headers)
        assert resp.status_code == 403

        resp = client.delete(f"/exam-resources/{resource['id']}", headers=alice.headers)
        assert resp.get_json() == {"message": "Resource deleted"}
        assert client.get("/exam-resources").get_json() == []

    def test_delete_missing(self, client, alice):
        resp = client.delete("/exam-resources/exam:1", headers=alice.headers)
        assert resp.status_code == 404


class TestResourceRecommendations:
    def test_connection_upload_ranked_first(self, client, alice, bob, carol):
        client.post("/connections/request", json={"targetUserId": bob.id}, headers=alice.headers)
        client.post("/connections/accept", json={"requesterId": alice.id}, headers=bob.headers)

        friend = _upload(client, bob, course="Medieval Poetry", type="notes")
        python = _upload(client, carol, course="Python basics", type="cheatsheet")

        resp = client.get("/exam-resources/recommendations", headers=alice.headers)
        assert resp.status_code == 200
        ranked = resp.get_json()
        assert [r["id"] for r in ranked][:2] == [friend["id"], python["id"]]
        assert ranked[0]["recommendationScore"] > ranked[1]["recommendationScore"]

    def test_requires_auth(self, client):
        assert client.get("/exam-resources/recommendations").status_code == 401
