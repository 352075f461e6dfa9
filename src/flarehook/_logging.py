"""Logging utilities for flarehook."""

import logging
import sys
import time
from contextvars import ContextVar, Token

# Silent unless the application configures logging
_root = logging.getLogger("flarehook")
_root.addHandler(logging.NullHandler())

# Handler attached by the command line, replaced on reconfiguration
_cli_handler: logging.Handler | None = None

# Context variable for the domain a hook run is processing
_current_domain: ContextVar[str | None] = ContextVar("current_domain", default=None)

# Attributes every LogRecord carries; anything else came in through extra=
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def set_domain(domain: str | None) -> Token[str | None]:
    """Set current domain for logging context.

    Args:
        domain: Domain being processed.

    Returns:
        Token to reset the context.
    """
    return _current_domain.set(domain)


def reset_domain(token: Token[str | None]) -> None:
    """Reset domain context.

    Args:
        token: Token from set_domain() call.
    """
    _current_domain.reset(token)


def get_domain_extra() -> dict[str, str]:
    """Get domain info for log extra fields.

    Returns:
        Dict with 'domain', or empty dict when no domain is set.
    """
    domain = _current_domain.get()
    if domain is None:
        return {}
    return {"domain": domain}


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the flarehook namespace.

    Args:
        name: The module name (typically __name__).

    Returns:
        A logger instance for the module.
    """
    return logging.getLogger(name)


class KeyValueFormatter(logging.Formatter):
    """Formatter that appends extra= fields as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS}
        if not fields:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return f"{line} {pairs}"


def configure_cli_logging(verbose: bool = False) -> logging.Handler:
    """Attach a stderr handler to the flarehook logger.

    Used by the command line only; library consumers configure logging
    themselves.

    Args:
        verbose: Log at INFO when True, WARNING otherwise.

    Returns:
        The attached handler.
    """
    global _cli_handler
    if _cli_handler is not None:
        _root.removeHandler(_cli_handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(KeyValueFormatter("[%(levelname)s] %(message)s"))
    _root.addHandler(handler)
    _cli_handler = handler
    _root.setLevel(logging.INFO if verbose else logging.WARNING)
    return handler


class Timer:
    """Context manager for timing operations.

    Usage:
        with Timer() as t:
            # do work
        print(f"Elapsed: {t.elapsed_ms}ms")
    """

    def __init__(self) -> None:
        self.elapsed_ms: float = 0
        self._start: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000
