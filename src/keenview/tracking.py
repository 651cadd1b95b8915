"""Screen view tracking.

Screens report when they are shown and hidden.  Each transition becomes one
event in the ``tab_views`` collection; failures are logged and otherwise
ignored so they never interrupt navigation.
"""

import logging

from keenview.client.client import KeenClient
from keenview.errors import KeenViewError

log = logging.getLogger(__name__)

DEFAULT_COLLECTION = "tab_views"
ACTION_APPEAR = "going to"
ACTION_DISAPPEAR = "leaving from"


class ScreenTracker:
    def __init__(self, client: KeenClient, collection: str = DEFAULT_COLLECTION) -> None:
        self.client = client
        self.collection = collection

    def appear(self, view_name: str) -> bool:
        return self._record(view_name, ACTION_APPEAR)

    def disappear(self, view_name: str) -> bool:
        return self._record(view_name, ACTION_DISAPPEAR)

    def _record(self, view_name: str, action: str) -> bool:
        event = {"view_name": view_name, "action": action}
        try:
            return self.client.add_event(event, self.collection)
        except KeenViewError as e:
            log.warning("Dropped %s event for %s: %s", action, view_name, e)
            return False
