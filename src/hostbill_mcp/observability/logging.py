"""structlog setup for the HostBill MCP server.

Every record, whether emitted through structlog or the standard ``logging``
module, goes through one processor chain and is rendered on stderr. stdout
belongs to the JSON-RPC stream and never receives log output.

Credential-looking fields (``api_key``, ``password``, ``token`` and the like)
are masked in every event before rendering, so a stray keyword argument
cannot leak a HostBill secret.

Environment Variables:
    HOSTBILL_MCP_LOG_FORMAT: "json" for one JSON object per line, "console" (default)
    HOSTBILL_MCP_LOG_LEVEL: DEBUG, INFO (default), WARNING or ERROR
    HOSTBILL_MCP_SERVICE_NAME: value of the ``service`` field (default "hostbill-mcp")
    HOSTBILL_MCP_DEBUG: truthy to return raw internal error text to clients

Example:
    >>> from hostbill_mcp.observability.logging import configure_logging, get_logger
    >>> configure_logging(log_format="json", log_level="DEBUG")
    >>> get_logger("hostbill_mcp.session").info("session.probe.started", methods=12)
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

ENV_LOG_FORMAT = "HOSTBILL_MCP_LOG_FORMAT"
ENV_LOG_LEVEL = "HOSTBILL_MCP_LOG_LEVEL"
ENV_SERVICE_NAME = "HOSTBILL_MCP_SERVICE_NAME"
ENV_DEBUG = "HOSTBILL_MCP_DEBUG"

_DEFAULTS = {
    ENV_LOG_FORMAT: "console",
    ENV_LOG_LEVEL: "INFO",
    ENV_SERVICE_NAME: "hostbill-mcp",
}

REDACTED_PLACEHOLDER = "***REDACTED***"

# Matched as substrings of the lower-cased field name
_SECRET_MARKERS = (
    "password",
    "passwd",
    "token",
    "secret",
    "key",
    "authorization",
    "auth",
    "api_id",
)

_configured = False


def _looks_secret(name: str) -> bool:
    name = name.lower()
    return any(marker in name for marker in _SECRET_MARKERS)


def _mask(value: Any) -> Any:
    if isinstance(value, dict):
        return sanitize_for_logging(value)
    if isinstance(value, list):
        return [_mask(item) for item in value]
    return value


def sanitize_for_logging(data: dict[str, Any]) -> dict[str, Any]:
    """Copy ``data`` with the values of credential-looking fields masked.

    Nested dicts, and dicts inside lists, are masked as well. The input is
    left untouched.

    Example:
        >>> sanitize_for_logging({"call": "getClients", "api_key": "abc123"})
        {'call': 'getClients', 'api_key': '***REDACTED***'}
    """
    if not data:
        return {}
    return {
        name: REDACTED_PLACEHOLDER if _looks_secret(name) else _mask(value)
        for name, value in data.items()
    }


def redact_secrets(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """structlog processor masking credential-looking fields of an event."""
    for name in list(event_dict):
        if name == "event":
            continue
        if _looks_secret(name):
            event_dict[name] = REDACTED_PLACEHOLDER
        else:
            event_dict[name] = _mask(event_dict[name])
    return event_dict


def is_debug_mode() -> bool:
    """True when HOSTBILL_MCP_DEBUG is set to true, 1, yes or on."""
    return os.environ.get(ENV_DEBUG, "").strip().lower() in {"true", "1", "yes", "on"}


def _env(name: str) -> str:
    return os.environ.get(name) or _DEFAULTS[name]


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        redact_secrets,
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_format: str) -> Processor:
    if log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    service_name: str | None = None,
    force: bool = False,
) -> None:
    """Route structlog and stdlib logging to stderr.

    Arguments left as None fall back to the environment, then to the
    defaults. A second call is ignored unless ``force`` is set.
    """
    global _configured
    if _configured and not force:
        return

    chain = _pre_chain()
    structlog.configure(
        processors=[*chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format or _env(ENV_LOG_FORMAT)),
            ],
        )
    )

    level_name = (log_level or _env(ENV_LOG_LEVEL)).upper()
    root = logging.getLogger()
    root.handlers[:] = [handler]
    level = logging.getLevelName(level_name)
    root.setLevel(level if isinstance(level, int) else logging.INFO)

    structlog.contextvars.bind_contextvars(service=service_name or _env(ENV_SERVICE_NAME))
    _configured = True


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    return structlog.stdlib.get_logger(name)


def bind_context(**values: Any) -> None:
    """Attach ``values`` to every later log event in this context."""
    structlog.contextvars.bind_contextvars(**values)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
