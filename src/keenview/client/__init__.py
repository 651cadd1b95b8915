"""keenview client library — send events and run analyses."""

from keenview.client.client import KeenClient
from keenview.client.models import Query, QueryResponse

__all__ = ["KeenClient", "Query", "QueryResponse"]
