"""Analysis ID context propagation for correlating logs of one event study.

Every call to ``run_event_study`` works on a single ticker and produces many
log lines (one per breakpoint and window). The analysis ID groups them.

Example:
    >>> from earnings_car.common.logging.context import AnalysisContext, get_analysis_id
    >>> with AnalysisContext("nvda-2024q1"):
    ...     get_analysis_id()
    'nvda-2024q1'
"""

from __future__ import annotations

import contextvars
import uuid
from types import TracebackType

_analysis_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "analysis_id", default=None
)


def generate_analysis_id() -> str:
    """Generate a new unique analysis ID (UUID v4 string)."""
    return str(uuid.uuid4())


def get_analysis_id() -> str | None:
    """Return the analysis ID of the current context, or None if unset."""
    return _analysis_id_var.get()


def set_analysis_id(analysis_id: str) -> None:
    """Set the analysis ID for the current context.

    Args:
        analysis_id: The analysis ID to set

    Raises:
        ValueError: If analysis_id is empty
    """
    if not analysis_id:
        raise ValueError("analysis_id cannot be empty")
    _analysis_id_var.set(analysis_id)


def clear_analysis_id() -> None:
    """Clear the analysis ID from the current context."""
    _analysis_id_var.set(None)


class AnalysisContext:
    """Context manager that scopes an analysis ID and restores the previous one.

    Example:
        >>> with AnalysisContext() as analysis_id:
        ...     logger.info("reconciling earnings")  # carries analysis_id
    """

    def __init__(self, analysis_id: str | None = None) -> None:
        self.analysis_id = analysis_id or generate_analysis_id()
        self._token: contextvars.Token[str | None] | None = None

    def __enter__(self) -> str:
        self._token = _analysis_id_var.set(self.analysis_id)
        return self.analysis_id

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _analysis_id_var.reset(self._token)
            self._token = None
