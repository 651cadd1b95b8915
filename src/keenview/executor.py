"""Asynchronous query submission.

Each submission resolves to exactly one callback invocation carrying a
``QueryResponse``.  Backend exceptions are turned into transport errors so
the callback still fires.
"""

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from keenview.client.backends.base import AnalyticsBackend
from keenview.client.models import Query, QueryResponse, ResponseCallback

log = logging.getLogger(__name__)


class QueryExecutor:
    """Runs queries on a thread pool and hands each response to a callback."""

    def __init__(self, backend: AnalyticsBackend, max_workers: int = 4) -> None:
        self.backend = backend
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="keenview-query"
        )

    def submit(self, query: Query, callback: ResponseCallback) -> Future[QueryResponse]:
        """Run *query* in the background; *callback* receives the response."""
        return self._pool.submit(
            self._run, lambda: self.backend.submit_query(query), callback, query.query_type
        )

    def submit_multi_analysis(
        self, queries: list[Query], callback: ResponseCallback
    ) -> Future[QueryResponse]:
        """Run a multi-analysis in the background."""
        queries = list(queries)
        return self._pool.submit(
            self._run,
            lambda: self.backend.submit_multi_analysis(queries),
            callback,
            "multi_analysis",
        )

    def _run(
        self,
        call: Callable[[], QueryResponse],
        callback: ResponseCallback,
        label: str,
    ) -> QueryResponse:
        try:
            response = call()
        except Exception as e:
            log.exception("Query %s failed unexpectedly", label)
            response = QueryResponse(transport_error=str(e) or type(e).__name__)

        try:
            callback(response)
        except Exception:
            log.exception("Callback for query %s raised", label)
        return response

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> "QueryExecutor":
        return self

    def __exit__(self, *exc: object) -> None:
        self.shutdown()
