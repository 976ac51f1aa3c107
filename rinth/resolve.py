"""Select the artifact to install for a mod and a target game version.

Resolution is a pure function of its inputs: records are walked in the order
the registry returned them and the first acceptable one wins.
"""
import logging
import typing as t

from rinth.errors import NotFound
from rinth.modmeta import Artifact
from rinth.modmeta import VersionRecord
from rinth.version import matches_game_version
from rinth.version import Version

logger = logging.getLogger(__name__)

DEFAULT_LOADERS = ("fabric",)

POSITIONAL = "positional"
FIRST = "first"
ARTIFACT_SELECTIONS = (POSITIONAL, FIRST)


def accepts_loader(record: VersionRecord, loaders: t.Collection[str]):
    return any(loader in record.loaders for loader in loaders)


def supports_version(record: VersionRecord, target: Version):
    return any(matches_game_version(v, target) for v in record.game_versions)


def select_artifact(
    record: VersionRecord, index: int, selection=POSITIONAL
) -> t.Optional[Artifact]:
    """Pick an artifact from a matched :param:`record`.

    With `positional` selection the artifact shares its index with the record's
    position among the loader-filtered records. `first` always takes the
    record's first file.
    """
    if selection == FIRST:
        index = 0
    elif selection != POSITIONAL:
        raise ValueError(f"Unknown artifact selection: '{selection}'.")
    if index < len(record.files):
        return record.files[index]
    return None


def resolve_artifact(
    mod_id: str,
    target: t.Union[str, Version],
    records: t.Iterable[VersionRecord],
    loaders: t.Collection[str] = DEFAULT_LOADERS,
    selection=POSITIONAL,
) -> Artifact:
    """Resolve the artifact of :param:`mod_id` to install for :param:`target`.

    :raises NotFound: if no record supports both the target and a loader.
    :raises ValueError: if :param:`target` is not a valid version.
    """
    if isinstance(target, str):
        target = Version.parse(target)

    candidates = (record for record in records if accepts_loader(record, loaders))
    for index, record in enumerate(candidates):
        if not supports_version(record, target):
            continue
        artifact = select_artifact(record, index, selection)
        if artifact:
            logger.debug(f"Resolved {mod_id} for {target}: {artifact.filename}")
            return artifact
        logger.debug(
            f"Matching record #{index} of {mod_id} has no artifact at that position, skipping."
        )

    raise NotFound(mod_id, str(target), loaders)
