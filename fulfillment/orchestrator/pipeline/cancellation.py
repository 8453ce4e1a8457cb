"""
Cooperative cancellation for pipeline runs.

The coordinator checks the token before starting each step; a step that is
already running is never interrupted.
"""

import structlog

logger = structlog.get_logger(__name__)


class CancellationToken:
    """
    One-shot cancellation signal shared between a caller and one run.

    Example:
        >>> token = CancellationToken()
        >>> task = asyncio.create_task(coordinator.run(request, cancel_token=token))
        >>> token.cancel("customer withdrew order")
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: str | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str:
        return self._reason or "cancelled"

    def cancel(self, reason: str | None = None) -> None:
        """Signal cancellation. Later calls keep the first reason."""
        if self._cancelled:
            return
        self._reason = reason
        self._cancelled = True
        logger.debug("pipeline_cancel_requested", reason=self.reason)
