"""Persisted record of the tracked mods and the target game version.

The manifest is a JSON document::

    {"version": "1.20.1", "mods": [{"id": "...", "url": "...", "filename": "..."}]}

It is read once and written back whole; nothing is ever patched in place.
"""
import json
import logging
import os
import typing as t
from dataclasses import dataclass
from dataclasses import field

from rinth import fs
from rinth.errors import DecodeError
from rinth.modmeta import TrackedMod
from rinth.version import parse_exact

logger = logging.getLogger(__name__)

MANIFEST_NAME = "mods.json"


@dataclass
class Manifest:
    version: str
    mods: t.List[TrackedMod] = field(default_factory=list)

    def find(self, mod_id: str) -> t.Optional[TrackedMod]:
        return next((mod for mod in self.mods if mod.id == mod_id), None)

    def track(self, mod: TrackedMod):
        """Add :param:`mod`, replacing any entry with the same id in place."""
        for i, existing in enumerate(self.mods):
            if existing.id == mod.id:
                self.mods[i] = mod
                return
        self.mods.append(mod)

    def untrack(self, mod: TrackedMod):
        self.mods = [m for m in self.mods if m.id != mod.id]

    def to_dict(self) -> t.Dict[str, t.Any]:
        return {
            "version": self.version,
            "mods": [
                {"id": mod.id, "url": mod.url, "filename": mod.filename}
                for mod in self.mods
            ],
        }

    @classmethod
    def from_dict(cls, data: t.Any, source=MANIFEST_NAME):
        """:raises DecodeError: if :param:`data` is not a valid manifest."""
        if not isinstance(data, dict):
            raise DecodeError(source, "expected a JSON object")
        try:
            version = data["version"]
            mods = data["mods"]
        except KeyError as e:
            raise DecodeError(source, f"missing key {e}")
        if not isinstance(version, str):
            raise DecodeError(source, "'version' must be a string")
        if not isinstance(mods, list):
            raise DecodeError(source, "'mods' must be a list")
        try:
            parse_exact(version)
        except ValueError as e:
            raise DecodeError(source, e)

        tracked: t.List[TrackedMod] = []
        seen: t.Set[str] = set()
        for i, entry in enumerate(mods):
            try:
                mod = TrackedMod(
                    str(entry["id"]), str(entry["url"]), str(entry["filename"])
                )
            except (KeyError, TypeError) as e:
                raise DecodeError(source, f"invalid entry at index {i}: {e!r}")
            if mod.id in seen:
                raise DecodeError(source, f"duplicate mod id '{mod.id}'")
            seen.add(mod.id)
            tracked.append(mod)

        return cls(version, tracked)


def read_manifest(path: str) -> t.Optional[Manifest]:
    """Load the manifest at :param:`path`.

    :returns: `None` if no manifest exists yet.
    :raises DecodeError: if the file exists but cannot be used.
    """
    try:
        with open(path, encoding="utf-8") as file:
            data = json.load(file)
    except FileNotFoundError:
        return None
    except ValueError as e:
        raise DecodeError(path, e)

    manifest = Manifest.from_dict(data, source=path)
    logger.debug(f"Manifest loaded from '{path}' ({len(manifest.mods)} mods).")
    return manifest


def write_manifest(path: str, manifest: Manifest):
    # Use a temp file to avoid losing data if serialization fails
    directory = os.path.dirname(os.path.abspath(path))
    with fs.temporary_file(dir=directory, suffix=".json") as temp:
        with open(temp, "w", encoding="utf-8") as file:
            json.dump(manifest.to_dict(), file, indent=2)
            file.write("\n")
        fs.replace_file(temp, path)
    logger.debug(f"Manifest saved to '{path}'.")
