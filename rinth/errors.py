import logging
import typing as t

import click

logger = logging.getLogger(__name__)


class RinthError(Exception):
    """Base class for failures the core reports per mod."""


class NetworkError(RinthError):
    def __init__(self, url: str, reason: t.Any):
        self.url = url
        self.reason = reason
        super().__init__(f"request to {url} failed: {reason}")


class DecodeError(RinthError):
    def __init__(self, source: str, reason: t.Any):
        self.source = source
        self.reason = reason
        super().__init__(f"could not decode {source}: {reason}")


class NotFound(RinthError):
    """No published version satisfies the target game version and loaders."""

    def __init__(
        self, mod_id: str, target: str, loaders: t.Iterable[str] = ("fabric",)
    ):
        self.mod_id = mod_id
        self.target = target
        self.loaders = tuple(loaders)
        super().__init__(
            "could not find version of {} that satisfies target {} and {} loader".format(
                mod_id, target, "/".join(self.loaders)
            )
        )


class DownloadError(RinthError):
    def __init__(self, filename: str, reason: t.Any):
        self.filename = filename
        self.reason = reason
        super().__init__(f"could not download {filename}: {reason}")


class ExceptionCount(Exception):
    def __init__(self, count: int):
        self.count = count
        super().__init__()


class CommandError(click.ClickException):
    """A command could not perform the operation it was asked to."""

    def show(self, file: t.Optional[t.IO[t.Any]] = None) -> None:
        logger.error(self.format_message())


class TTYError(CommandError):
    def __init__(self, message: str) -> None:
        super().__init__("Could not read from stdin: " + message)
