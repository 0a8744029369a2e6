"""Process-wide logging setup in two steps.

``setup_logging`` must run before litellm is first imported: litellm
reads ``LITELLM_LOG`` at import time and attaches its own handlers.
``cleanup_third_party_handlers`` runs once every import is done and
strips those handlers, so litellm records reach the root handler only
once. Each step runs at most once per process.
"""

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
PACKAGE_LOGGER = "workstory"

_LITELLM_LOGGERS = ("LiteLLM", "LiteLLM Router", "LiteLLM Proxy")

# Chatty below WARNING
_SUPPRESSED_LOGGERS = (
    *_LITELLM_LOGGERS,
    "openai._base_client",
    "httpx",
    "httpcore",
)

_phase1_done = False
_phase2_done = False


def _level(name: str) -> int:
    value = logging.getLevelName(name.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {name!r}")
    return value


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger and quiet third-party loggers."""
    global _phase1_done  # noqa: PLW0603
    if _phase1_done:
        return
    root_level = _level(level)
    _phase1_done = True

    os.environ.setdefault("LITELLM_LOG", "WARNING")
    logging.basicConfig(
        level=root_level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )
    for name in _SUPPRESSED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def set_package_level(level: str) -> None:
    """Apply a configured level (``Settings.log_level``) to workstory only.

    Raises ValueError for a name ``logging`` does not know.
    """
    logging.getLogger(PACKAGE_LOGGER).setLevel(_level(level))


def cleanup_third_party_handlers() -> None:
    """Drop litellm's own handlers and let its records propagate."""
    global _phase2_done  # noqa: PLW0603
    if _phase2_done:
        return
    _phase2_done = True

    for name in _LITELLM_LOGGERS:
        lg = logging.getLogger(name)
        lg.handlers.clear()
        lg.propagate = True
