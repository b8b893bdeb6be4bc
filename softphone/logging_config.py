# softphone/logging_config.py
import logging

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging once for the API process.

    Uvicorn installs its own handlers for its loggers; we only make sure our
    `softphone.*` loggers end up somewhere readable.
    """
    global _configured
    if _configured:
        return

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _configured = True


def mask(value: str | None, keep: int = 6) -> str:
    """Shorten an account id / key for log lines."""
    if not value:
        return "MISSING"
    return f"{value[:keep]}..."
