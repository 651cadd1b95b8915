"""KeenClient facade — unified API over remote and local backends."""

import copy
import logging
from collections.abc import Callable
from concurrent.futures import Future
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from keenview.client.backends.base import AnalyticsBackend
from keenview.client.models import Query, QueryResponse, ResponseCallback
from keenview.errors import ValidationError
from keenview.validation import validate_event

if TYPE_CHECKING:
    from keenview.executor import QueryExecutor

log = logging.getLogger(__name__)

GlobalPropertiesFn = Callable[[str], dict[str, Any] | None]


class KeenClient:
    """Main client for sending events and running analyses.

    The backend and executor are passed in rather than looked up globally:

        backend = HttpBackend(settings.base_url, settings.project_id, ...)
        client = KeenClient(backend, QueryExecutor(backend))

        client.add_event({"view_name": "home", "action": "going to"}, "tab_views")

        query = Query("count", {"event_collection": "tab_views", "timeframe": "this_7_days"})
        client.run_async_query(query, on_response)

    Global properties are merged into every event.  Properties returned by
    ``global_properties_fn`` win over ``global_properties``, and the event's
    own properties win over both.
    """

    def __init__(
        self,
        backend: AnalyticsBackend,
        executor: "QueryExecutor | None" = None,
        global_properties: dict[str, Any] | None = None,
        global_properties_fn: GlobalPropertiesFn | None = None,
    ) -> None:
        self.backend = backend
        self.executor = executor
        self.global_properties = global_properties or {}
        self.global_properties_fn = global_properties_fn

    def build_event(
        self,
        event: dict[str, Any],
        collection: str,
        header_properties: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Merge global properties into *event* and stamp ``keen.timestamp``.

        The merged payload is validated as a whole, so global properties
        follow the same naming and serialization rules as the event.
        """
        validate_event(collection, event)

        merged: dict[str, Any] = copy.deepcopy(self.global_properties)
        if self.global_properties_fn is not None:
            dynamic = self.global_properties_fn(collection)
            if dynamic:
                if not isinstance(dynamic, dict):
                    raise ValidationError(
                        f"Global properties for {collection} must be a mapping, "
                        f"got {type(dynamic).__name__}"
                    )
                merged.update(copy.deepcopy(dynamic))
        merged.update(copy.deepcopy(event))

        keen = merged.get("keen") or {}
        if not isinstance(keen, dict):
            raise ValidationError(
                f"The 'keen' property must be a mapping, got {type(keen).__name__}"
            )
        keen = dict(keen)
        timestamp = (header_properties or {}).get("timestamp")
        if isinstance(timestamp, datetime):
            timestamp = timestamp.astimezone(UTC).isoformat()
        keen["timestamp"] = timestamp or keen.get("timestamp") or datetime.now(UTC).isoformat()
        merged["keen"] = keen

        validate_event(collection, merged)
        return merged

    def add_event(
        self,
        event: dict[str, Any],
        collection: str,
        header_properties: dict[str, Any] | None = None,
    ) -> bool:
        """Send an event to *collection*. Returns False if it was not accepted."""
        payload = self.build_event(event, collection, header_properties)
        sent = self.backend.send_event(collection, payload)
        if not sent:
            log.warning("Event for %s was not recorded", collection)
        return sent

    def run_query(self, query: Query) -> QueryResponse:
        """Run a query and wait for the raw response."""
        return self.backend.submit_query(query)

    def run_multi_analysis(self, queries: list[Query]) -> QueryResponse:
        """Run a multi-analysis and wait for the raw response."""
        return self.backend.submit_multi_analysis(queries)

    def run_async_query(
        self, query: Query, callback: ResponseCallback
    ) -> Future[QueryResponse]:
        """Run a query in the background; *callback* is called exactly once."""
        return self._require_executor().submit(query, callback)

    def run_async_multi_analysis(
        self, queries: list[Query], callback: ResponseCallback
    ) -> Future[QueryResponse]:
        """Run a multi-analysis in the background."""
        return self._require_executor().submit_multi_analysis(queries, callback)

    def _require_executor(self) -> "QueryExecutor":
        if self.executor is None:
            raise RuntimeError("KeenClient was created without a QueryExecutor")
        return self.executor

    def close(self) -> None:
        if self.executor is not None:
            self.executor.shutdown()
