"""Client for the PokeAPI catalog endpoints."""

from __future__ import annotations

import logging
import socket
from typing import Any, Iterator, List, Optional

import requests

from pokecache.config import DEFAULT_CATALOG_BASE_URL, DEFAULT_INDEX_LIMIT, Settings
from pokecache.models import CatalogReference, DetailRecord

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """An upstream call failed. Retry policy belongs to the caller."""

    def __init__(self, message: str, *, reference: Optional[CatalogReference] = None):
        super().__init__(message)
        self.reference = reference


class TransportError(FetchError):
    """The upstream could not be reached or answered with an error status."""

    def __init__(
        self,
        message: str,
        *,
        reference: Optional[CatalogReference] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message, reference=reference)
        self.status_code = status_code


class DnsResolutionError(TransportError):
    """The upstream host name could not be resolved."""


class DecodeError(FetchError):
    """The response body was not valid JSON of the expected shape."""


class PokeAPIClient:
    """Client for the bulk index and per-item detail endpoints."""

    BASE_URL = DEFAULT_CATALOG_BASE_URL
    INDEX_LIMIT = DEFAULT_INDEX_LIMIT

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: float = 30.0,
        index_limit: int = INDEX_LIMIT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.index_limit = index_limit
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> PokeAPIClient:
        return cls(
            settings.catalog_base_url,
            timeout=settings.request_timeout,
            index_limit=settings.index_limit,
        )

    def fetch_index(self) -> List[CatalogReference]:
        """Fetch every catalog reference in a single bulk request."""
        payload = self._get_json(
            f"{self.base_url}/pokemon",
            params={"limit": self.index_limit},
        )
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise DecodeError("Bulk index response has no 'results' list.")

        try:
            references = [CatalogReference.from_index_entry(entry) for entry in results]
        except ValueError as exc:
            raise DecodeError(f"Malformed bulk index entry: {exc}") from exc

        logger.info("Fetched bulk index with %d references", len(references))
        return references

    def fetch_detail(self, reference: CatalogReference) -> DetailRecord:
        """Fetch and decode the detail record behind ``reference``."""
        payload = self._get_json(reference.locator, reference=reference)
        try:
            return DetailRecord.from_payload(payload)
        except ValueError as exc:
            raise DecodeError(str(exc), reference=reference) from exc

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> PokeAPIClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _get_json(
        self,
        url: str,
        *,
        params: Optional[dict] = None,
        reference: Optional[CatalogReference] = None,
    ) -> Any:
        try:
            response = self._session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            if _is_dns_failure(exc):
                raise DnsResolutionError(
                    f"Could not resolve host for {url}: {exc}", reference=reference
                ) from exc
            raise TransportError(
                f"Request to {url} failed: {exc}", reference=reference
            ) from exc

        if not response.ok:
            raise TransportError(
                f"Request to {url} failed: "
                f"{response.status_code} {response.text[:200]}",
                reference=reference,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(
                f"Invalid JSON from {url}: {exc}", reference=reference
            ) from exc


def _is_dns_failure(exc: BaseException) -> bool:
    # requests wraps urllib3 errors several layers deep; the root cause of a
    # name-resolution failure is always a socket.gaierror.
    return any(isinstance(link, socket.gaierror) for link in _error_chain(exc))


def _error_chain(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    stack: List[BaseException] = [exc]
    while stack:
        current = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        linked = [
            current.__cause__,
            current.__context__,
            getattr(current, "reason", None),
        ]
        linked.extend(arg for arg in current.args if isinstance(arg, BaseException))
        stack.extend(link for link in linked if isinstance(link, BaseException))


__all__ = [
    "DecodeError",
    "DnsResolutionError",
    "FetchError",
    "PokeAPIClient",
    "TransportError",
]
