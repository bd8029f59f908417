"""
WalletRisk API Python client.

Uses the requests library.

Usage:
    from backend_walletrisk.client import WalletRiskClient
    client = WalletRiskClient("http://localhost:8000")
    score = client.get_score("0xd8da6bf26964af9d7eed9e03e53415d37aa96045")
"""

from __future__ import annotations

from typing import Any

import requests


class WalletRiskClientError(Exception):
    """Raised when the API returns an error response."""

    def __init__(self, message: str, status_code: int | None = None, response: requests.Response | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class WalletRiskClient:
    """Client for the WalletRisk scoring API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        resp = self._session.request(method, url, params=params, json=json, timeout=self.timeout)
        if not resp.ok:
            is_json = resp.headers.get("content-type", "").startswith("application/json")
            detail = resp.json().get("detail", resp.text) if is_json else resp.text
            raise WalletRiskClientError(
                f"API error: {detail}",
                status_code=resp.status_code,
                response=resp,
            )
        return resp

    def get_score(self, address: str, network: str | None = None) -> dict[str, Any]:
        """Risk score, label, reasons and explanation for one address."""
        params: dict[str, Any] = {"address": address}
        if network:
            params["network"] = network
        return self._request("GET", "/score", params=params).json()

    def get_neighbors(self, address: str, network: str | None = None, limit: int | None = None) -> dict[str, Any]:
        """1-hop counterparty graph: {nodes, links}."""
        params: dict[str, Any] = {"address": address}
        if network:
            params["network"] = network
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", "/neighbors", params=params).json()

    def score_batch(
        self,
        addresses: list[str],
        network: str | None = None,
        concurrency: int | None = None,
    ) -> list[dict[str, Any]]:
        """Score many addresses; results[i] belongs to addresses[i] (max 500)."""
        if len(addresses) > 500:
            raise ValueError("max 500 addresses per request")
        body: dict[str, Any] = {"addresses": addresses}
        if network:
            body["network"] = network
        if concurrency is not None:
            body["concurrency"] = concurrency
        return self._request("POST", "/score/batch", json=body).json()["results"]

    def health(self) -> dict[str, Any]:
        """Liveness probe plus list snapshot info."""
        return self._request("GET", "/health").json()


# -----------------------------------------------------------------------------
# Example usage
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    client = WalletRiskClient("http://localhost:8000")

    print("Health:", client.health())

    try:
        score = client.get_score("0xd8da6bf26964af9d7eed9e03e53415d37aa96045")
        print("Score:", score.get("score"), score.get("label"), "reasons:", score.get("reasons"))
    except WalletRiskClientError as e:
        if e.status_code == 400:
            print("Malformed address")
        else:
            raise

    graph = client.get_neighbors("0xd8da6bf26964af9d7eed9e03e53415d37aa96045", limit=10)
    print("Neighbors:", len(graph["nodes"]) - 1)
