import typing as t
from dataclasses import dataclass
from dataclasses import field

# Registry-internal namespace that must be stripped from search hit ids
LOCAL_PREFIX = "local-"


def normalize_id(mod_id: str) -> str:
    if mod_id.startswith(LOCAL_PREFIX):
        return mod_id[len(LOCAL_PREFIX) :]
    return mod_id


@dataclass(frozen=True)
class RemoteMod:
    """A mod returned by a registry search."""

    id: str
    title: str
    author: str = ""
    description: str = ""

    @classmethod
    def from_hit(cls, data: t.Dict[str, t.Any]):
        return cls(
            normalize_id(str(data["mod_id"])),
            str(data["title"]),
            str(data.get("author") or ""),
            str(data.get("description") or ""),
        )

    def __str__(self) -> str:
        return f"{self.title} ({self.id})"


@dataclass(frozen=True)
class Artifact:
    url: str
    filename: str

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]):
        return cls(str(data["url"]), str(data["filename"]))


@dataclass(frozen=True)
class VersionRecord:
    """One published release of a mod."""

    loaders: t.FrozenSet[str]
    game_versions: t.Tuple[str, ...]
    files: t.Tuple[Artifact, ...] = field(default=())

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]):
        return cls(
            frozenset(str(loader) for loader in data["loaders"]),
            tuple(str(version) for version in data["game_versions"]),
            tuple(Artifact.from_dict(file) for file in data["files"]),
        )


@dataclass
class TrackedMod:
    """A mod pinned in the manifest."""

    id: str
    url: str
    filename: str

    @classmethod
    def from_artifact(cls, mod_id: str, artifact: Artifact):
        return cls(mod_id, artifact.url, artifact.filename)

    def __str__(self) -> str:
        return f"{self.id} ({self.filename})"


@dataclass(frozen=True)
class Installed:
    id: str


@dataclass(frozen=True)
class Uninstalled:
    id: str


ModState = t.Union[Installed, Uninstalled]


@dataclass(frozen=True)
class Ambiguous:
    """Several search hits matched and none by exact title."""

    candidates: t.Tuple[RemoteMod, ...]


@dataclass(frozen=True)
class PendingUpdate:
    id: str
    old_filename: str
    artifact: Artifact

    def __str__(self) -> str:
        return f"{self.id}: {self.old_filename} -> {self.artifact.filename}"


@dataclass(frozen=True)
class Failure:
    id: str
    error: Exception

    def __str__(self) -> str:
        return f"{self.id}: {self.error}"


@dataclass
class BatchResult:
    succeeded: t.List[TrackedMod] = field(default_factory=list)
    failures: t.List[Failure] = field(default_factory=list)


@dataclass(frozen=True)
class Removal:
    mod: TrackedMod
    file_deleted: bool
