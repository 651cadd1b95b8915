"""keenview - analytics events and queries for app screens."""

__version__ = "0.1.0"

from typing import TYPE_CHECKING  # noqa: E402

from keenview.client.models import Query  # noqa: E402
from keenview.config import Settings, load_settings  # noqa: E402
from keenview.errors import ConfigurationError  # noqa: E402
from keenview.validation import validate_key, validate_project_id  # noqa: E402

if TYPE_CHECKING:
    from keenview.client.client import KeenClient


def create_client(settings: Settings | None = None, backend: str = "http") -> "KeenClient":
    """Client factory for keenview.

    ``backend`` is ``http`` for the remote API or ``local`` for the
    in-memory evaluator.
    """
    from keenview.client.client import KeenClient
    from keenview.executor import QueryExecutor

    if settings is None:
        settings = load_settings()

    if backend == "local":
        from keenview.client.backends.local import LocalBackend

        selected = LocalBackend()
    elif backend == "http":
        if not validate_project_id(settings.project_id):
            raise ConfigurationError(
                "A valid project ID is required",
                hint="Set KEENVIEW_API_PROJECT_ID",
            )
        if not (validate_key(settings.read_key) or validate_key(settings.write_key)):
            raise ConfigurationError(
                "A read key or write key is required",
                hint="Set KEENVIEW_API_READ_KEY and/or KEENVIEW_API_WRITE_KEY",
            )
        from keenview.client.backends.http import HttpBackend

        selected = HttpBackend(
            settings.base_url,
            settings.project_id,
            write_key=settings.write_key,
            read_key=settings.read_key,
            timeout=settings.timeout,
        )
    else:
        raise ConfigurationError(f"Unknown backend: {backend}")

    if settings.max_workers < 1:
        raise ConfigurationError(
            f"executor.max_workers must be at least 1, got {settings.max_workers}"
        )

    return KeenClient(selected, QueryExecutor(selected, max_workers=settings.max_workers))


__all__ = ["Query", "Settings", "create_client", "load_settings", "__version__"]
