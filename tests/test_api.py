"""
Pytest tests for the FastAPI endpoints via TestClient (fake provider, no network).
"""

from __future__ import annotations

from conftest import MIXER, SANCTIONED, WALLET


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ok"
    assert data["weights"] == "RXL-V1.6.3"
    assert data["lists"] == {"sanctioned": 1, "mixer": 1, "scam_cluster": 1}


def test_score_endpoint_shape(client):
    r = client.get("/score", params={"address": WALLET, "network": "eth"})
    assert r.status_code == 200
    data = r.json()
    assert data["address"] == WALLET
    assert data["network"] == "eth"
    assert data["risk_score"] == data["score"] == 38
    assert data["label"] == "Low"
    assert data["block"] is False
    assert data["sanctionHits"] == 0
    assert data["degraded"] is False
    assert data["feats"]["txCount"] == 1000
    explain = data["explain"]
    assert explain["baseScore"] == 15
    assert explain["rawContribution"] == 23
    assert explain["parts"]["velocity"]["details"]["bucket"] == "elevated"
    assert explain["notes"]


def test_score_cached_between_requests(client, provider):
    client.get("/score", params={"address": WALLET})
    r = client.get("/score", params={"address": WALLET})
    assert r.status_code == 200
    assert r.json()["cachedAt"] is not None
    assert len(provider.calls) == 1


def test_score_sanctioned(client):
    data = client.get("/score", params={"address": SANCTIONED}).json()
    assert data["score"] == 100
    assert data["block"] is True
    assert data["sanctionHits"] == 1
    assert "Sanctioned list match" in data["reasons"]


def test_score_malformed_address_400(client, provider):
    for bad in ("0x123", "", "hello"):
        r = client.get("/score", params={"address": bad})
        assert r.status_code == 400
        assert "Malformed address" in r.json()["detail"]
    r = client.get("/score")
    assert r.status_code == 400
    assert provider.calls == []


def test_neighbors(client):
    r = client.get("/neighbors", params={"address": WALLET, "limit": 3})
    assert r.status_code == 200
    data = r.json()
    assert data["nodes"][0] == WALLET
    assert len(data["nodes"]) == 4
    assert len(data["links"]) == 3
    assert all(link["a"] == WALLET and link["weight"] == 100 for link in data["links"])


def test_neighbors_malformed_address_400(client):
    r = client.get("/neighbors", params={"address": "0xzz"})
    assert r.status_code == 400


def test_neighbors_negative_limit_422(client):
    r = client.get("/neighbors", params={"address": WALLET, "limit": -1})
    assert r.status_code == 422


def test_batch_endpoint(client):
    body = {"addresses": [WALLET, "bogus", MIXER], "network": "eth", "concurrency": 2}
    r = client.post("/score/batch", json=body)
    assert r.status_code == 200
    results = r.json()["results"]
    assert [x["address"] for x in results] == [WALLET, "0xbogus", MIXER]
    assert results[0]["score"] == 38
    assert results[1]["degraded"] is True and results[1]["error"]
    assert results[2]["score"] >= 80


def test_batch_endpoint_validates_body(client):
    assert client.post("/score/batch", json={"addresses": []}).status_code == 422
    assert client.post("/score/batch", json={"addresses": [WALLET], "concurrency": 0}).status_code == 422
