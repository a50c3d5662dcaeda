import logging
import sys
from typing import TextIO

_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Renders keyword context passed to ``Log`` as sorted ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value for key, value in vars(record).items() if key not in _RECORD_ATTRS
        }
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{line} | {pairs}"


class Log:
    """Process-wide logging facade.

    Keyword arguments are attached to the record and rendered after the message,
    e.g. ``Log.info("Document claimed", document_id=doc_id)``. Names that clash
    with LogRecord attributes are prefixed with ``ctx_``.
    """

    _logger: logging.Logger = logging.getLogger("dealwire")

    @classmethod
    def configure(cls, log_level: str, stream: TextIO | None = None) -> None:
        cls._logger.setLevel(log_level.upper())
        if not cls._logger.handlers:
            handler = logging.StreamHandler(stream or sys.stdout)
            handler.setFormatter(
                ContextFormatter("%(asctime)s [%(levelname)s] %(threadName)s %(message)s")
            )
            cls._logger.addHandler(handler)

    @classmethod
    def info(cls, message: str, **kwargs: object) -> None:
        cls._logger.info(message, extra=cls._context(kwargs))

    @classmethod
    def error(cls, message: str, **kwargs: object) -> None:
        cls._logger.error(message, extra=cls._context(kwargs))

    @classmethod
    def warning(cls, message: str, **kwargs: object) -> None:
        cls._logger.warning(message, extra=cls._context(kwargs))

    @classmethod
    def debug(cls, message: str, **kwargs: object) -> None:
        cls._logger.debug(message, extra=cls._context(kwargs))

    @classmethod
    def exception(cls, message: str, **kwargs: object) -> None:
        """Log at ERROR level with the traceback of the exception being handled."""
        cls._logger.exception(message, extra=cls._context(kwargs))

    @staticmethod
    def _context(kwargs: dict[str, object]) -> dict[str, object]:
        return {
            (f"ctx_{key}" if key in _RECORD_ATTRS else key): value
            for key, value in kwargs.items()
        }
