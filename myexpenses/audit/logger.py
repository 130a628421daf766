"""
Audit Logger

DESIGN DECISION: Every mutation and every sync attempt is logged.
Several failure modes in the engine are absorbed instead of
raised (startup load failures, background sync failures); the audit trail
is what keeps them observable.

The audit logger:
- Is async so it can sit on the same code paths as storage calls
- Never raises into the caller
- Keeps a bounded in-memory history for inspection and tests
"""

from collections import deque
from typing import Optional

import structlog

from myexpenses.models.audit import AuditEvent, AuditEventType, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events to the structured local log and remembers the most
    recent ones in memory.
    """

    def __init__(self, history_size: int = 500):
        """
        Initialize audit logger.

        Args:
            history_size: How many events to keep in memory.
                          0 disables the history.
        """
        self._history: deque[AuditEvent] = deque(maxlen=history_size)
        self._logger = structlog.get_logger("myexpenses.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the event was written to the local log.
        """
        self._history.append(event)
        log_dict = event.to_log_dict()

        try:
            if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
                self._logger.error("audit_event", **log_dict)
            elif event.severity == AuditSeverity.WARNING:
                self._logger.warning("audit_event", **log_dict)
            elif event.severity == AuditSeverity.DEBUG:
                self._logger.debug("audit_event", **log_dict)
            else:
                self._logger.info("audit_event", **log_dict)
        except Exception:
            # A broken log handler must not break a mutation
            return False

        return True

    def recent_events(
        self,
        limit: int = 100,
        event_type: Optional[AuditEventType] = None,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).

        Args:
            limit: Maximum number of events to return
            event_type: Only return events of this type
        """
        events = [
            event for event in reversed(self._history)
            if event_type is None or event.event_type == event_type
        ]
        return events[:limit]
