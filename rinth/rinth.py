#!/usr/bin/env python
import logging
import os
import typing as t
from importlib import import_module

import click

import rinth.clickExt as clickExt
from rinth.config import Workspace
from rinth.manifest import Manifest


# This should be the root module logger, even though __name__ is 'rinth.rinth'
logger = logging.getLogger("rinth")


def first_run_setup() -> Manifest:
    """Create an empty manifest pinned to a game version chosen by the user."""
    logger.info("No manifest found, setting up a new one.")
    return Manifest(clickExt.prompt_target_version())


@click.group(
    cls=clickExt.CatchErrorsGroup,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.pass_context
@click.version_option(package_name="rinth")
def cli(ctx: click.Context):
    """Download and update your mods!

    Tracked mods are pinned in a manifest (mods.json) next to the mod files."""
    ctx.obj = ctx.with_resource(Workspace(setup=first_run_setup))


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1)
@click.pass_context
def help(ctx: click.Context, command: t.List[str]):
    """Display help text for a command."""
    parent = t.cast(click.Context, ctx.parent)
    if not command:
        click.echo(cli.get_help(parent))
        return

    cmd_name = " ".join(command)
    cmd = cli.get_command(ctx, command[0])
    if not cmd or len(command) > 1:
        raise click.BadArgumentUsage(f"No help entry for '{cmd_name}'.", ctx)

    # ctx currently thinks it's for the help command, this corrects the usage text
    ctx.info_name = cmd.name
    click.echo(cmd.get_help(ctx))


cmd_folder = os.path.abspath(os.path.join(os.path.dirname(__file__), "commands"))
for filename in sorted(os.listdir(cmd_folder)):
    if filename.endswith(".py") and not filename.startswith("__"):
        import_module(f"rinth.commands.{filename[:-3]}")
