import logging
import sys
import time
import traceback
import typing as t
from contextlib import contextmanager
from logging import LogRecord

import click
from tqdm import tqdm

logger = logging.getLogger(__name__)

# Root of the package logger hierarchy, even though __name__ is 'rinth.logging'
root_logger = logging.getLogger("rinth")


T = t.TypeVar("T")

if t.TYPE_CHECKING:

    class ProgressBar(tqdm[T]):
        """`tqdm` that is only shown for INFO or DEBUG logs"""

        pass

else:

    def ProgressBar(*args, **kwargs):
        kwargs["disable"] = kwargs.get(
            "disable", not root_logger.isEnabledFor(logging.INFO) or None
        )
        # keep finished bars around when debugging
        kwargs["leave"] = root_logger.isEnabledFor(logging.DEBUG) or kwargs.get(
            "leave", None
        )
        return tqdm(*args, **kwargs)


@contextmanager
def timed_progress(msg: str, loglevel: int = logging.INFO):
    """Times execution of the current context, then logs :param:`msg`.

    :param msg: Message to be logged. Formatted with a `time` kwarg."""
    start = time.perf_counter()
    yield
    end = time.perf_counter()
    # Carriage return ensures msg is printed properly after a progress bar
    logger.log(loglevel, "\r" + msg.format(time=end - start))


LOGLEVEL_STYLE: t.Dict[int, t.Dict[str, t.Any]] = {
    logging.CRITICAL: {"fg": "red", "bold": True},
    logging.ERROR: {"fg": "red", "bold": True},
    logging.WARNING: {"fg": "yellow"},
    logging.INFO: {},
    logging.DEBUG: {"fg": "blue", "italic": True},
}


class ClickFormatter(logging.Formatter):
    def formatMessage(self, record: LogRecord) -> str:
        style = LOGLEVEL_STYLE.get(record.levelno, {})
        if not style and root_logger.isEnabledFor(logging.DEBUG):
            style = {"italic": True}

        msg = record.getMessage()
        if style:
            prefix = click.style(record.levelname.lower() + ": ", **style)
            msg = "\n".join(prefix + line for line in msg.splitlines())
        return msg

    def formatException(self, ei) -> str:
        e_type, e, ei_tb = ei
        tb = "".join(traceback.format_tb(ei_tb))
        msg = "".join(traceback.format_exception_only(e_type, e)).rstrip("\n")
        return tb + click.style(msg, fg="red")


class EchoHandler(logging.Handler):
    def emit(self, record: LogRecord) -> None:
        try:
            with tqdm.external_write_mode(sys.stderr):
                click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(level: int = logging.INFO):
    """Attach a single :class:`EchoHandler` to the package logger."""
    for handler in list(root_logger.handlers):
        if isinstance(handler, EchoHandler):
            root_logger.removeHandler(handler)
    handler = EchoHandler()
    handler.setFormatter(ClickFormatter())
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # keep records out of the root logger
    root_logger.propagate = False
    return handler
