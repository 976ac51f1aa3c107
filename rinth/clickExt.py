import logging
import os
import sys
import typing as t
from gettext import gettext as _
from io import UnsupportedOperation

import click

from rinth.baseUtils import partition
from rinth.errors import TTYError
from rinth.logging import setup_logging
from rinth.version import parse_exact


logger = logging.getLogger(__name__)


def is_tty():
    try:
        return sys.stdin.isatty()
    except UnsupportedOperation:
        return False


def confirm_ext(*params, default: bool, **attrs) -> bool:
    """Extension to :func:`click.confirm`.

    Throws a :class:`TTYError` if `stdin` is not a TTY.
    """
    if not is_tty():
        raise TTYError("not a tty.\nProvide a more specific query.")

    return click.confirm(*params, default=default, **attrs)


def validate_target_version(value: str):
    try:
        parse_exact(value)
    except ValueError:
        raise click.UsageError("i said *exact* version (e.g. 1.20.1)")
    return value.strip()


def prompt_target_version() -> str:
    """Ask for the exact game version to pin, until a valid one is given."""
    return click.prompt(
        "(exact) minecraft version",
        value_proc=validate_target_version,
        err=True,
    )


class CommandExt(click.Command):
    """Command that can be invoked by one or more aliases."""

    def __init__(self, *args, **kwargs) -> None:
        self.aliases: t.List[str] = list(kwargs.pop("aliases", []))
        super().__init__(*args, **kwargs)


loglevel_flags = {
    "--debug": logging.DEBUG,
    "--quiet": logging.ERROR,
}


class CatchErrorsGroup(click.Group):
    """Command group handling aliases, log level flags and unhandled errors."""

    def __init__(self, *args, **kwargs) -> None:
        self.aliases: t.Dict[str, str] = dict()
        super().__init__(*args, **kwargs)

    def add_command(self, cmd: click.Command, name: t.Optional[str] = None) -> None:
        super().add_command(cmd, name)
        for alias in getattr(cmd, "aliases", []):
            self.aliases[alias] = name or t.cast(str, cmd.name)

    def get_command(self, ctx: click.Context, cmd_name: str):
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))

    def resolve_command(self, ctx: click.Context, args: t.List[str]):
        # always report the canonical name
        _name, cmd, args = super().resolve_command(ctx, args)
        return cmd and cmd.name, cmd, args

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter):
        rows = []
        for name in self.list_commands(ctx):
            cmd = self.get_command(ctx, name)
            if cmd is None or cmd.hidden:
                continue
            names = ", ".join([name, *getattr(cmd, "aliases", [])])
            rows.append((names, cmd))
        if not rows:
            return
        limit = formatter.width - 6 - max(len(names) for names, _cmd in rows)
        with formatter.section(_("Commands")):
            formatter.write_dl(
                [(names, cmd.get_short_help_str(limit)) for names, cmd in rows]
            )

    def main(self, args=None, *params, **extra):
        argv = list(sys.argv[1:] if args is None else args)
        logflags, argv = partition(lambda arg: arg in loglevel_flags, argv)
        debug = "--debug" in logflags or os.getenv("RINTH_DEBUG", "").lower() in (
            "true",
            "yes",
            "1",
        )
        if logflags:
            setup_logging(loglevel_flags[logflags[-1]])
        elif debug:
            setup_logging(logging.DEBUG)
        else:
            setup_logging(logging.INFO)

        try:
            return super().main(argv, *params, **extra)
        except SystemExit as e:
            sys.exit(e.code)
        except Exception as e:
            if debug:
                logger.exception("An unhandled exception has occurred:")
            else:
                logger.error(
                    "An unhandled exception has occurred:\n  "
                    + click.style(repr(e), "red")
                )
                logger.error(
                    "Use the --debug flag to disable clean exception handling."
                )
            sys.exit(1)
