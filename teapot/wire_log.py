"""Wire-traffic logging for the Teapot client.

``WireLogger`` is handed to a client at construction. Its level decides
how much of the traffic reaches the underlying ``logging.Logger``:

- ``LogLevel.INCOMING_AND_OUTGOING``: requests sent and responses received
- ``LogLevel.INCOMING``: responses received and errors
- ``LogLevel.ERROR``: errors only
- ``LogLevel.NONE``: nothing (the default; use it in production)
"""

import logging
from enum import IntEnum
from typing import Mapping

from teapot.models import Outcome, RequestDescriptor


class LogLevel(IntEnum):
    """How much traffic to log. A message is emitted when its level is at
    least the logger's current level."""

    INCOMING_AND_OUTGOING = 0
    INCOMING = 1
    ERROR = 2
    NONE = 3

    @classmethod
    def parse(cls, value: "str | int | LogLevel") -> "LogLevel":
        """Parse a level from its name (case-insensitive) or number."""
        if isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            try:
                return cls[key]
            except KeyError:
                return cls(int(key))
        return cls(value)


_STDLIB_LEVELS = {
    LogLevel.INCOMING_AND_OUTGOING: logging.DEBUG,
    LogLevel.INCOMING: logging.INFO,
    LogLevel.ERROR: logging.ERROR,
}


def format_body(data: bytes | None) -> str:
    """Format a body for logging."""
    if data is None:
        return "[no data]"
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return "[data not convertible to UTF-8 string]"


def format_headers(headers: Mapping[str, str] | None) -> str:
    """Format header fields for logging, one per line."""
    if headers is None:
        return "[no response received]"
    if not headers:
        return "[no headers available]"
    return "\n||\n\t".join(f"{key}: {value}" for key, value in headers.items())


class WireLogger:
    """Level-gated sink for request/response traffic.

    Attributes:
        level: The current ``LogLevel``.
        logger: Where emitted messages go.
    """

    def __init__(self, level: LogLevel = LogLevel.NONE, logger: logging.Logger | None = None) -> None:
        self.level = level
        self.logger = logger if logger is not None else logging.getLogger("teapot.wire")

    def _log(self, level: LogLevel, message: str) -> bool:
        if level < self.level:
            return False
        self.logger.log(_STDLIB_LEVELS[level], "TEAPOT - %s", message)
        return True

    def outgoing_log(self, message: str) -> bool:
        """Log outgoing traffic. Returns whether the message was emitted."""
        return self._log(LogLevel.INCOMING_AND_OUTGOING, message)

    def incoming_log(self, message: str) -> bool:
        """Log incoming traffic. Returns whether the message was emitted."""
        return self._log(LogLevel.INCOMING, message)

    def error_log(self, message: str) -> bool:
        """Log an error. Returns whether the message was emitted."""
        return self._log(LogLevel.ERROR, message)

    def log_request(self, request: RequestDescriptor) -> bool:
        if self.level > LogLevel.INCOMING_AND_OUTGOING:
            return False
        return self.outgoing_log(
            "\n||\n|| TEAPOT - SENDING REQUEST\n||\n"
            f"|| {request.verb.value} {request.url}\n||\n"
            f"|| Headers:\n|| \t{format_headers(request.headers)}\n||\n"
            f"|| Contents:\n|| \t{format_body(request.content)}\n"
        )

    def log_outcome(self, outcome: Outcome) -> bool:
        if outcome.status is None:
            return self.error_log(
                "\n||\n|| TEAPOT - NO RESPONSE\n||\n"
                f"|| Error:\n|| \t{outcome.error!r}\n||\n"
            )
        if outcome.error is not None:
            return self.error_log(
                "\n||\n|| TEAPOT - RECEIVED ERROR\n||\n"
                f"|| HTTP status code: {outcome.status}\n||\n"
                f"|| Error:\n|| \t{outcome.error}\n||\n"
                f"|| Headers:\n|| \t{format_headers(outcome.headers)}\n||\n"
                f"|| Contents:\n|| \t{format_body(outcome.body)}\n"
            )
        if self.level > LogLevel.INCOMING:
            return False
        return self.incoming_log(
            "\n||\n|| TEAPOT - RECEIVED DATA\n||\n"
            f"|| HTTP status code: {outcome.status}\n||\n"
            f"|| Headers:\n|| \t{format_headers(outcome.headers)}\n||\n"
            f"|| Contents:\n|| \t{format_body(outcome.body)}\n"
        )
