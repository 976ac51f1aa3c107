import logging
import os
import typing as t
from contextlib import contextmanager
from gettext import ngettext as _n

import click
import urllib3
from click import echo

import rinth.clickExt as clickExt
from rinth.config import pass_workspace
from rinth.config import Workspace
from rinth.downloading import download_artifact
from rinth.errors import CommandError
from rinth.errors import RinthError
from rinth.formatting import format_bytes
from rinth.formatting import format_columns
from rinth.formatting import format_mod
from rinth.logging import ProgressBar
from rinth.logging import timed_progress
from rinth.modmeta import Ambiguous
from rinth.modmeta import Artifact
from rinth.modmeta import BatchResult
from rinth.modmeta import Failure
from rinth.modmeta import Installed
from rinth.modmeta import ModState
from rinth.modmeta import RemoteMod
from rinth.reconcile import apply_updates
from rinth.reconcile import classify
from rinth.reconcile import classify_query
from rinth.reconcile import install_mod
from rinth.reconcile import install_pack
from rinth.reconcile import plan_update
from rinth.reconcile import remove_mod
from rinth.reconcile import Resolver
from rinth.resolve import resolve_artifact
from rinth.rinth import cli
from rinth.sources import fetch_mod_search
from rinth.sources import fetch_mod_versions
from rinth.sources import registry_timeout


logger = logging.getLogger(__name__)


@contextmanager
def reported_errors():
    """Turn a :class:`RinthError` into a failure of the whole command."""
    try:
        yield
    except RinthError as e:
        raise CommandError(str(e)) from e


def registry_resolver(workspace: Workspace) -> Resolver:
    config = workspace.config
    target = workspace.manifest.version

    def resolve(mod_id: str):
        records = fetch_mod_versions(config, mod_id)
        return resolve_artifact(
            mod_id,
            target,
            records,
            loaders=config.loaders,
            selection=config.artifact_selection,
        )

    return resolve


def artifact_downloader(workspace: Workspace):
    config = workspace.config
    http_pool = urllib3.PoolManager()
    timeout = registry_timeout(config)

    def download(artifact: Artifact):
        os.makedirs(workspace.directory, exist_ok=True)
        download_artifact(
            artifact,
            workspace.directory,
            config.downloading.atomic,
            pool_manager=http_pool,
            timeout=timeout,
        )
        echo(f"{click.style('downloaded', fg='bright_green')} {artifact.filename}")

    return download


def report_failures(failures: t.Sequence[Failure], action: str):
    for failure in failures:
        logger.error(f"Could not {action} {failure}")


def choose_candidate(candidates: t.Sequence[RemoteMod]) -> t.Optional[RemoteMod]:
    for i, mod in enumerate(candidates):
        question = "install {}?" if i == 0 else "what about {}?"
        if clickExt.confirm_ext(question.format(mod.title), default=False):
            return mod
    return None


@cli.command(no_args_is_help=True, cls=clickExt.CommandExt, aliases=["s"])
@click.argument("query", nargs=-1, required=True)
@pass_workspace
def search(workspace: Workspace, query: t.Tuple[str]):
    """Search the registry for mods."""
    with reported_errors():
        hits = fetch_mod_search(workspace, " ".join(query))

    if not hits:
        echo("No mods found.")
        return

    for mod in hits:
        echo(format_mod(mod))


@cli.command(cls=clickExt.CommandExt, aliases=["i"])
@click.argument("query", nargs=-1)
@pass_workspace
def install(workspace: Workspace, query: t.Tuple[str]):
    """Install a mod.

    Prompts for a search query if none is given. When several mods match and
    none has exactly that title, each one is offered in turn."""
    search_str = " ".join(query) or str(click.prompt("query", err=True))
    manifest = workspace.manifest

    with reported_errors():
        hits = fetch_mod_search(workspace, search_str)

    state: t.Union[ModState, Ambiguous, None] = classify_query(
        search_str, hits, manifest, workspace.file_exists
    )
    if isinstance(state, Ambiguous):
        chosen = choose_candidate(state.candidates)
        state = chosen and classify(chosen.id, manifest, workspace.file_exists)

    if state is None:
        raise CommandError("no mods found")

    if isinstance(state, Installed):
        echo("already installed!")
        return

    with reported_errors():
        mod = install_mod(
            state.id,
            manifest,
            registry_resolver(workspace),
            artifact_downloader(workspace),
        )
    logger.debug(f"Now tracking {mod}.")


@cli.command(no_args_is_help=True, cls=clickExt.CommandExt, aliases=["rm"])
@click.argument("query", nargs=-1, required=True)
@pass_workspace
def remove(workspace: Workspace, query: t.Tuple[str]):
    """Remove the first mod whose file name contains QUERY."""
    search_str = " ".join(query)
    removal = remove_mod(search_str, workspace.manifest, workspace.remove_file)
    if not removal:
        raise CommandError(f"can't find a mod matching '{search_str}'")

    if removal.file_deleted:
        echo(f"removed {removal.mod.filename}")
    else:
        logger.warning(
            f"can't find the file {removal.mod.filename}, removed it from the manifest anyway"
        )


@cli.command(cls=clickExt.CommandExt, aliases=["u"])
@pass_workspace
def update(workspace: Workspace):
    """Update all mods for the target game version."""
    manifest = workspace.manifest
    if not manifest.mods:
        echo("No mods to update.")
        return

    resolve = registry_resolver(workspace)
    with ProgressBar(
        total=len(manifest.mods), desc="checking", unit="mod", leave=False
    ) as bar:

        def checked(mod_id: str):
            try:
                return resolve(mod_id)
            finally:
                bar.update(1)

        pending, failures = plan_update(manifest, checked)
    report_failures(failures, "check")

    if not pending:
        echo("All mods up to date.")
        return

    echo(
        _n(
            "{count} mod will be updated:",
            "{count} mods will be updated:",
            len(pending),
        ).format(count=len(pending))
    )
    for pending_update in pending:
        echo("  " + str(pending_update))

    with timed_progress("Updated mods in {time:.3f} seconds."):
        result = apply_updates(
            manifest, pending, artifact_downloader(workspace), workspace.remove_file
        )
    report_failures(result.failures, "update")
    echo_summary(result, "updated")


@cli.command(cls=clickExt.CommandExt, aliases=["p"])
@pass_workspace
def pack(workspace: Workspace):
    """Install every mod in the manifest that is missing."""
    manifest = workspace.manifest
    if not manifest.mods:
        echo("No mods in pack!")
        return

    echo(click.style("downloading mods", fg="bright_cyan"))
    result = install_pack(manifest, artifact_downloader(workspace), workspace.file_exists)
    report_failures(result.failures, "download")
    echo_summary(result, "installed")


def echo_summary(result: BatchResult, verb: str):
    if not result.failures:
        echo(click.style("done!", fg="bright_green"))
        return
    logger.warning(
        _n(
            "{failed} mod failed, {done} {verb}.",
            "{failed} mods failed, {done} {verb}.",
            len(result.failures),
        ).format(failed=len(result.failures), done=len(result.succeeded), verb=verb)
    )


@cli.command(name="list", cls=clickExt.CommandExt, aliases=["ls"])
@pass_workspace
def list_mods(workspace: Workspace):
    """List tracked mods."""
    manifest = workspace.manifest
    echo(f"Target version: {click.style(manifest.version, fg='green')}")
    if not manifest.mods:
        echo("No mods tracked.")
        return

    def status(filename: str):
        if not workspace.file_exists(filename):
            return click.style("missing", fg="red")
        return format_bytes(os.path.getsize(workspace.path_for(filename)))

    echo(
        format_columns(
            {mod.id: f"{mod.filename} ({status(mod.filename)})" for mod in manifest.mods},
            prefix="  ",
        )
    )
