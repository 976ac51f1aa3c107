"""Decide which tracked mods are current, stale or missing, and apply the
resulting install/update/remove transitions to a :class:`Manifest`.

Every side effect goes through a callable passed in by the caller:

* ``resolve(mod_id) -> Artifact`` may raise any :class:`RinthError`.
* ``download(artifact)`` raises :class:`RinthError` on failure.
* ``exists(filename) -> bool`` and ``remove_file(filename) -> bool`` never raise.

Batch operations isolate per-mod :class:`RinthError` failures and report them
in a :class:`BatchResult`; other exceptions propagate.
"""
import logging
import os
import typing as t

from rinth.errors import RinthError
from rinth.manifest import Manifest
from rinth.modmeta import Ambiguous
from rinth.modmeta import Artifact
from rinth.modmeta import BatchResult
from rinth.modmeta import Failure
from rinth.modmeta import Installed
from rinth.modmeta import ModState
from rinth.modmeta import PendingUpdate
from rinth.modmeta import RemoteMod
from rinth.modmeta import Removal
from rinth.modmeta import TrackedMod
from rinth.modmeta import Uninstalled

logger = logging.getLogger(__name__)

Resolver = t.Callable[[str], Artifact]
Downloader = t.Callable[[Artifact], t.Any]
FileCheck = t.Callable[[str], bool]


def is_installed(mod_id: str, manifest: Manifest, exists: FileCheck = os.path.isfile):
    """A mod is installed only if it is tracked *and* its file is present."""
    mod = manifest.find(mod_id)
    return bool(mod and exists(mod.filename))


def classify(
    mod_id: str, manifest: Manifest, exists: FileCheck = os.path.isfile
) -> ModState:
    if is_installed(mod_id, manifest, exists):
        return Installed(mod_id)
    return Uninstalled(mod_id)


def classify_query(
    query: str,
    hits: t.Sequence[RemoteMod],
    manifest: Manifest,
    exists: FileCheck = os.path.isfile,
) -> t.Union[ModState, Ambiguous, None]:
    """Match a search :param:`query` against its :param:`hits`.

    :returns: `None` without hits, the state of the single hit or of the hit
        whose title equals the query (ignoring case), or :class:`Ambiguous` if
        the caller has to pick one.
    """
    if not hits:
        return None
    if len(hits) == 1:
        return classify(hits[0].id, manifest, exists)

    query = query.strip().lower()
    for hit in hits:
        if hit.title.lower() == query:
            return classify(hit.id, manifest, exists)

    return Ambiguous(tuple(hits))


def install_mod(
    mod_id: str, manifest: Manifest, resolve: Resolver, download: Downloader
) -> TrackedMod:
    """Resolve, download and track a single mod.

    :raises RinthError: if resolution or the download fails; the manifest is
        left untouched.
    """
    artifact = resolve(mod_id)
    download(artifact)
    mod = TrackedMod.from_artifact(mod_id, artifact)
    manifest.track(mod)
    return mod


def plan_update(
    manifest: Manifest, resolve: Resolver
) -> t.Tuple[t.List[PendingUpdate], t.List[Failure]]:
    """Re-resolve every tracked mod against the manifest's target version.

    A mod is stale when the resolved artifact's URL differs from the pinned
    one. Mods that fail to resolve are reported and do not stop the others.
    """
    pending: t.List[PendingUpdate] = []
    failures: t.List[Failure] = []
    for mod in manifest.mods:
        try:
            artifact = resolve(mod.id)
        except RinthError as e:
            logger.debug(f"Could not resolve {mod.id}: {e}")
            failures.append(Failure(mod.id, e))
            continue
        if artifact.url != mod.url:
            pending.append(PendingUpdate(mod.id, mod.filename, artifact))
    return pending, failures


def apply_update(
    update: PendingUpdate, download: Downloader, remove_file: FileCheck
) -> TrackedMod:
    """Replace the old file of a stale mod with its new artifact.

    A missing old file is not an error.

    :raises RinthError: if the download fails.
    """
    if not remove_file(update.old_filename):
        logger.debug(f"Old file '{update.old_filename}' was not removed.")
    download(update.artifact)
    return TrackedMod.from_artifact(update.id, update.artifact)


def apply_updates(
    manifest: Manifest,
    pending: t.Iterable[PendingUpdate],
    download: Downloader,
    remove_file: FileCheck,
) -> BatchResult:
    """Apply each update in turn; entries are only replaced on success."""
    result = BatchResult()
    for update in pending:
        try:
            mod = apply_update(update, download, remove_file)
        except RinthError as e:
            result.failures.append(Failure(update.id, e))
            continue
        manifest.track(mod)
        result.succeeded.append(mod)
    return result


def plan_pack(manifest: Manifest, exists: FileCheck = os.path.isfile):
    """Tracked mods whose files are missing."""
    return [mod for mod in manifest.mods if not exists(mod.filename)]


def install_pack(
    manifest: Manifest, download: Downloader, exists: FileCheck = os.path.isfile
) -> BatchResult:
    """Download the pinned artifact of every tracked mod that is missing."""
    result = BatchResult()
    for mod in plan_pack(manifest, exists):
        try:
            download(Artifact(mod.url, mod.filename))
        except RinthError as e:
            result.failures.append(Failure(mod.id, e))
            continue
        result.succeeded.append(mod)
    return result


def find_removal(query: str, manifest: Manifest) -> t.Optional[TrackedMod]:
    """First tracked mod whose filename contains :param:`query`, ignoring case."""
    query = query.strip().lower()
    if not query:
        return None
    return next((mod for mod in manifest.mods if query in mod.filename.lower()), None)


def remove_mod(
    query: str, manifest: Manifest, remove_file: FileCheck
) -> t.Optional[Removal]:
    """Stop tracking the first mod matching :param:`query` and delete its file.

    The entry is removed even if the file could not be deleted.
    """
    mod = find_removal(query, manifest)
    if not mod:
        return None
    deleted = remove_file(mod.filename)
    manifest.untrack(mod)
    return Removal(mod, deleted)
