"""Base service logging mixin.

Every penalty engine service logs through a structlog logger bound with
its class name and component, plus the current correlation ID per
operation.

Usage:
    from penalty_engine.application.services.base import LoggingMixin

    class MyService(LoggingMixin):
        def __init__(self, repository: SomePort) -> None:
            self._repository = repository
            self._init_logger()

        async def do_something(self, user_id: str) -> None:
            log = self._log_operation("do_something", user_id=user_id)
            log.info("something_started")
"""

import structlog

from penalty_engine.infrastructure.observability.correlation import get_correlation_id


class LoggingMixin:
    """Mixin providing structured logging for services.

    Attributes:
        _log: The structlog BoundLogger for this service instance.
    """

    _log: structlog.BoundLogger

    def _init_logger(self, component: str = "penalty") -> None:
        """Bind the logger with service name and component.

        Should be called in __init__ after setting up dependencies.
        """
        self._log = structlog.get_logger().bind(
            service=self.__class__.__name__,
            component=component,
        )

    def _log_operation(
        self,
        operation: str,
        **context: object,
    ) -> structlog.BoundLogger:
        """Return an operation-scoped logger carrying the correlation ID.

        Example:
            log = self._log_operation("apply_penalty", user_id=user_id)
            log.info("sanction_applied", record_id=str(record.record_id))
        """
        return self._log.bind(
            operation=operation,
            correlation_id=get_correlation_id(),
            **context,
        )
