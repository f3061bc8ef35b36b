"""Request-scoped context for correlation IDs."""

from contextvars import ContextVar

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """Return the correlation ID bound to the current task, if any."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Bind a correlation ID to the current task."""
    correlation_id_var.set(correlation_id)
