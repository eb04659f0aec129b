"""
tests/test_client.py

Pytest unit tests for CatalogClient. No network: a fake session is used.
"""

from __future__ import annotations

from typing import Any

import pytest
import requests

from harvester.client import CatalogClient, format_bound
from harvester.exceptions import RangeQueryError
from harvester.types import PriceRange, Product


class _FakeResponse:
    def __init__(self, *, status_code: int = 200, payload: Any = None, invalid_json: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}", response=self)  # type: ignore[arg-type]

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("not json")
        return self._payload


class _FakeSession:
    def __init__(self, outcome: _FakeResponse | Exception) -> None:
        self.headers: dict[str, str] = {}
        self.calls: list[dict[str, Any]] = []
        self._outcome = outcome

    def get(self, url: str, *, params: dict[str, str], timeout: float) -> _FakeResponse:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome

    def close(self) -> None:
        pass


def _client(outcome: _FakeResponse | Exception) -> tuple[CatalogClient, _FakeSession]:
    session = _FakeSession(outcome)
    client = CatalogClient(
        base_url="https://catalog.test/products",
        timeout_seconds=5.0,
        session=session,  # type: ignore[arg-type]
    )
    return client, session


class TestCatalogClient:
    def test_parses_page_and_sends_price_bounds(self) -> None:
        payload = {
            "total": 2,
            "count": 2,
            "products": [
                {"id": 1, "name": "Lamp", "price": 19.5},
                {"id": 2, "name": "Desk", "price": 120},
            ],
        }
        client, session = _client(_FakeResponse(payload=payload))

        result = client.query(PriceRange(0.0, 33333.5))

        assert result.match_count == 2
        assert result.products == [
            Product(id=1, name="Lamp", price=19.5),
            Product(id=2, name="Desk", price=120.0),
        ]
        assert session.calls == [
            {
                "url": "https://catalog.test/products",
                "params": {"minPrice": "0", "maxPrice": "33333.5"},
                "timeout": 5.0,
            }
        ]
        assert session.headers["Accept"] == "application/json"

    def test_http_error_is_wrapped(self) -> None:
        client, _ = _client(_FakeResponse(status_code=503, payload={}))

        with pytest.raises(RangeQueryError) as ctx:
            client.query(PriceRange(0.0, 1.0))
        assert "status=503" in str(ctx.value)

    def test_transport_error_is_wrapped(self) -> None:
        client, _ = _client(requests.ConnectionError("refused"))

        with pytest.raises(RangeQueryError):
            client.query(PriceRange(0.0, 1.0))

    def test_invalid_json_is_wrapped(self) -> None:
        client, _ = _client(_FakeResponse(invalid_json=True))

        with pytest.raises(RangeQueryError):
            client.query(PriceRange(0.0, 1.0))

    def test_schema_violation_is_wrapped(self) -> None:
        client, _ = _client(_FakeResponse(payload={"count": 0, "products": []}))

        with pytest.raises(RangeQueryError):
            client.query(PriceRange(0.0, 1.0))

    def test_negative_total_is_rejected(self) -> None:
        client, _ = _client(_FakeResponse(payload={"total": -1, "products": []}))

        with pytest.raises(RangeQueryError):
            client.query(PriceRange(0.0, 1.0))


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0.0, "0"),
        (100000.0, "100000"),
        (0.5, "0.5"),
        (1e-07, "0.0000001"),
        (1e16, "10000000000000000"),
    ],
)
def test_format_bound(value: float, expected: str) -> None:
    assert format_bound(value) == expected
