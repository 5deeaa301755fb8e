"""
Logging configuration for ferret.

One package logger shared by adapters, tools and the entry points.
Extractors never log; their callers log what they report.
"""

import logging
import sys

# Package logger; child loggers are not used
logger = logging.getLogger("ferret")


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging for ferret.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    logger.setLevel(getattr(logging, level.upper()))

    # Idempotent: repeat calls only change the level
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)

        # stdout carries MCP/CLI output, so logs go to stderr
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)


# server.py and cli.py call configure_logging(); importing this module configures nothing.


def log_api_call(operation: str, path: str, **params: object) -> None:
    """Log a Graph request with its endpoint path."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if v is not None)
    suffix = f" ({param_str})" if param_str else ""
    logger.debug(f"Graph {operation}: GET {path}{suffix}")


def log_api_result(
    path: str,
    result_count: int | None = None,
    pages: int = 1,
    size: int | None = None,
) -> None:
    """Log a Graph response summary. Page count only when nextLink was followed."""
    parts = []
    if result_count is not None:
        parts.append(f"{result_count} results")
    if pages > 1:
        parts.append(f"{pages} pages")
    if size is not None:
        parts.append(f"{size} bytes")
    logger.debug(f"Graph GET {path}: {', '.join(parts) or 'ok'}")


def log_retry(attempt: int, max_attempts: int, delay_ms: int, reason: str) -> None:
    """Log a retry attempt."""
    logger.warning(
        f"Retry {attempt}/{max_attempts} in {delay_ms}ms: {reason}"
    )


def log_probe(container_id: str, container_name: str, outcome: str, reason: str = "") -> None:
    """Log one container probe. Plain misses at DEBUG, everything else at INFO."""
    if outcome == "found":
        logger.info(f"Probe: found in {container_name} ({container_id})")
        return
    suffix = f": {reason}" if reason else ""
    message = f"Probe: {outcome} in {container_name} ({container_id}){suffix}"
    if outcome == "not_found":
        logger.debug(message)
    else:
        logger.info(message)
