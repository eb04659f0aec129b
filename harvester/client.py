"""
harvester/client.py

HTTP client for catalog price range queries.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Protocol

import requests
from pydantic import ValidationError

from harvester.exceptions import RangeQueryError
from harvester.schemas import CatalogPagePayload
from harvester.types import PriceRange, QueryResult

logger = logging.getLogger(__name__)


class RangeQueryClient(Protocol):
    """
    Anything that can answer one price range query.
    """

    def query(self, price_range: PriceRange) -> QueryResult:
        ...


def format_bound(value: float) -> str:
    """
    Render a price bound as the shortest plain decimal string.
    """

    text = format(Decimal(repr(float(value))), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


class CatalogClient:
    """
    Performs single price range queries against the catalog endpoint.

    Retries and throttling are the caller's concern; every failure is raised
    as RangeQueryError.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()
        self._session.headers.setdefault("Accept", "application/json")

    def query(self, price_range: PriceRange) -> QueryResult:
        params = {
            "minPrice": format_bound(price_range.low),
            "maxPrice": format_bound(price_range.high),
        }
        try:
            response = self._session.get(
                self._base_url,
                params=params,
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            raise RangeQueryError(
                f"Catalog query failed status={status_code} range={price_range.as_pair()}"
            ) from exc
        except requests.RequestException as exc:
            raise RangeQueryError(
                f"Catalog query transport error range={price_range.as_pair()}: {exc}"
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise RangeQueryError(
                f"Catalog response was not valid JSON range={price_range.as_pair()}"
            ) from exc

        try:
            page = CatalogPagePayload.model_validate(payload)
        except ValidationError as exc:
            logger.debug("Rejected catalog payload range=%s errors=%s", price_range.as_pair(), exc)
            raise RangeQueryError(
                f"Catalog response did not match schema range={price_range.as_pair()}"
            ) from exc

        return page.to_query_result()

    def close(self) -> None:
        self._session.close()
