import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
import structlog


def configure_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Route structlog through the stdlib logging module.

    Logs go to stderr, and additionally to `log_file` if one is given. With `verbose`,
    debug messages are included.
    """
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        Path(log_file).parent.mkdir(exist_ok=True, parents=True)
        click.secho(f"Writing log to {log_file}", fg="yellow")
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=handlers,
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


class DummyStream:
    """Swallows greenlet tracebacks printed by the gevent hub. Errors are re-raised on join."""

    def write(self, content):
        pass
