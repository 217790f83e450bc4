import logging
from decimal import Decimal
from typing import Any, Dict, Optional


class AppLogger:
    """Stdlib logger wrapper carrying bound key/value context.

    Records render as ``message | key=value key=value``. Context bound with
    :meth:`bind` is emitted first, per-call keywords after it, and a per-call
    keyword overrides a bound key of the same name.
    """

    def __init__(
        self,
        name: str,
        context: Optional[Dict[str, Any]] = None,
        _logger: Optional[logging.Logger] = None,
    ):
        self._logger = _logger or logging.getLogger(name)
        self._name = name
        self._context = context or {}

    def bind(self, **extra: Any) -> "AppLogger":
        merged = {**self._context, **extra}
        return AppLogger(self._name, merged, _logger=self._logger)

    def debug(self, message: str, **context: Any) -> None:
        self._log(logging.DEBUG, message, context)

    def info(self, message: str, **context: Any) -> None:
        self._log(logging.INFO, message, context)

    def warning(self, message: str, **context: Any) -> None:
        self._log(logging.WARNING, message, context)

    def error(self, message: str, **context: Any) -> None:
        self._log(logging.ERROR, message, context)

    def exception(self, message: str, **context: Any) -> None:
        """Log at ERROR level with the active exception attached."""
        self._log(logging.ERROR, message, context, exc_info=True)

    def _log(
        self,
        level: int,
        message: str,
        context: Dict[str, Any],
        exc_info: bool = False,
    ) -> None:
        if not self._logger.isEnabledFor(level):
            return
        payload = {**self._context, **context} if context else dict(self._context)
        self._logger.log(level, self._format(message, payload), exc_info=exc_info)

    @staticmethod
    def _format(message: str, context: Dict[str, Any]) -> str:
        if not context:
            return message
        ctx_str = " ".join(
            f"{key}={AppLogger._stringify(value)}" for key, value in context.items()
        )
        return f"{message} | {ctx_str}"

    @staticmethod
    def _stringify(value: Any) -> str:
        if value is None or isinstance(value, (str, int, float, bool, Decimal)):
            return str(value)
        if isinstance(value, (list, tuple, set, frozenset)):
            return "[" + ",".join(AppLogger._stringify(v) for v in value) + "]"
        return repr(value)


def get_logger(name: str, **context: Any) -> AppLogger:
    return AppLogger(name, context or None)
