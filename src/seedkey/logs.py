from __future__ import annotations
import logging

import structlog

# level used until the host application or the CLI asks for output
QUIET = logging.CRITICAL

_state = {"debug": False, "json": True, "level": QUIET}


def configure_logging(debug: bool = False, json: bool = True, level: int = logging.INFO) -> None:
    """Install the structlog pipeline; ``debug`` lowers the level to DEBUG."""
    _state["debug"] = debug
    _state["json"] = json
    _state["level"] = level
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else level),
        cache_logger_on_first_use=False,
    )


def enable_debug() -> None:
    configure_logging(debug=True, json=_state["json"], level=_state["level"])


def disable_debug() -> None:
    configure_logging(debug=False, json=_state["json"], level=_state["level"])


def is_debug_enabled() -> bool:
    return _state["debug"]


def get_logger(module: str):
    return structlog.get_logger(module=module)


# Silent unless asked, so importing the library prints nothing. An
# application that configured structlog first keeps its own setup.
if not structlog.is_configured():
    configure_logging(level=QUIET)
