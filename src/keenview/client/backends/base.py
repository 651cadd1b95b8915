"""Abstract backend protocol for KeenClient."""

from typing import Any, Protocol

from keenview.client.models import Query, QueryResponse


class AnalyticsBackend(Protocol):
    """Protocol that all backends must implement."""

    def submit_query(self, query: Query) -> QueryResponse:
        """Run a single analysis and return the raw response."""
        ...

    def submit_multi_analysis(self, queries: list[Query]) -> QueryResponse:
        """Run several analyses over the same collection in one request."""
        ...

    def send_event(self, collection: str, event: dict[str, Any]) -> bool:
        """Record one event. Returns False if it was not accepted."""
        ...
