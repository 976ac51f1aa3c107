import logging
import os
import typing as t

import click
from click import echo

import rinth.clickExt as clickExt
from rinth.config import pass_workspace
from rinth.config import Workspace
from rinth.manifest import Manifest
from rinth.rinth import cli

logger = logging.getLogger(__name__)


def validate_version(ctx: click.Context, param: click.Parameter, value: t.Optional[str]):
    if value is None:
        return None
    try:
        return clickExt.validate_target_version(value)
    except click.UsageError as e:
        raise click.BadParameter(e.message, ctx, param)


@cli.command(cls=clickExt.CommandExt)
@click.argument("version", required=False, callback=validate_version)
@pass_workspace
def target(workspace: Workspace, version: t.Optional[str]):
    """Show or change the target game version.

    Changing it does not touch installed mods; run `update` afterwards to
    switch them to releases for the new version."""
    if version and not os.path.isfile(workspace.manifest_path):
        # no manifest yet: pin the given version instead of prompting for one
        workspace.setup = lambda: Manifest(version)
        echo(f"Target version set to {workspace.manifest.version}.")
        return

    manifest = workspace.manifest

    if not version:
        echo(manifest.version)
        return

    if manifest.version == version:
        echo(f"Target version is already {version}.")
        return

    previous, manifest.version = manifest.version, version
    logger.info(f"Target version changed from {previous} to {version}.")
    if manifest.mods:
        echo("Run `rinth update` to update your mods for the new version.")
