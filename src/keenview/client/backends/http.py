"""HTTP API backend for KeenClient (remote analytics API)."""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from keenview import __version__
from keenview.client.models import Query, QueryResponse, build_multi_analysis_payload

log = logging.getLogger(__name__)

SDK_VERSION_HEADER = "Keen-Sdk"


class HttpBackend:
    """Backend that talks to the analytics API via JSON over HTTPS."""

    def __init__(
        self,
        base_url: str,
        project_id: str,
        write_key: str = "",
        read_key: str = "",
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.project_id = project_id
        self.write_key = write_key
        self.read_key = read_key
        self.timeout = timeout
        self.transport = transport

    def _client(self, api_key: str) -> httpx.Client:
        return httpx.Client(
            base_url=f"{self.base_url}/projects/{self.project_id}",
            headers={
                "Authorization": api_key,
                SDK_VERSION_HEADER: f"python-{__version__}",
            },
            timeout=self.timeout,
            transport=self.transport,
        )

    def _post_query(self, path: str, payload: dict[str, Any]) -> QueryResponse:
        log.debug("POST %s %s", path, payload)
        try:
            with self._client(self.read_key) as client:
                resp = client.post(path, json=payload)
        except httpx.TransportError as e:
            log.debug("Transport error for %s: %s", path, e)
            return QueryResponse(transport_error=str(e) or type(e).__name__)
        return QueryResponse(body=resp.content, status_code=resp.status_code)

    def submit_query(self, query: Query) -> QueryResponse:
        """Run a query via the API."""
        return self._post_query(
            f"/queries/{quote(query.query_type, safe='')}", query.to_payload()
        )

    def submit_multi_analysis(self, queries: list[Query]) -> QueryResponse:
        """Run a multi-analysis via the API."""
        return self._post_query("/queries/multi_analysis", build_multi_analysis_payload(queries))

    def send_event(self, collection: str, event: dict[str, Any]) -> bool:
        """Send a single event to the API."""
        try:
            with self._client(self.write_key) as client:
                resp = client.post(f"/events/{quote(collection, safe='')}", json=event)
        except httpx.TransportError as e:
            log.warning("Could not send event to %s: %s", collection, e)
            return False

        if resp.status_code >= 400:
            log.warning(
                "Event rejected by %s (HTTP %d): %s",
                collection,
                resp.status_code,
                resp.text,
            )
            return False
        return True
