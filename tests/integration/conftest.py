import json
import os
import pathlib
from contextlib import contextmanager

import pytest
from click.testing import CliRunner

from rinth import downloading
from rinth import fs
from rinth import sources
from rinth.commands import mods
from rinth.errors import DownloadError
from rinth.errors import NetworkError
from rinth.modmeta import Artifact
from rinth.modmeta import RemoteMod
from rinth.modmeta import VersionRecord
from rinth.rinth import cli as rinth_cli


def pytest_collection_modifyitems(session, config, items):
    module = pathlib.Path(os.path.dirname(__file__))
    for item in items:
        if module == item.path.parent:
            item.add_marker(pytest.mark.integration_test)


def get_commands(cli, *, prefix=""):
    for cmd in cli.commands.values():
        if hasattr(cmd, "commands"):
            yield from get_commands(cmd, prefix=prefix + f"{cmd.name} ")
        else:
            cmd.qualified_name = prefix + cmd.name
            yield cmd


@pytest.fixture(
    scope="module",
    params=list(get_commands(rinth_cli)),
    ids=lambda cmd: cmd.qualified_name,
)
def command(request):
    yield request.param


@pytest.fixture(scope="function")
def runner():
    return CliRunner()


@pytest.fixture
def runner_result(runner, assertion_msg):
    @contextmanager
    def runner_result(*args, **kwargs):
        result = runner.invoke(rinth_cli, *args, **kwargs)
        error_msg = "=" * 10 + "\nCOMMAND OUTPUT\n\n" + result.output + "=" * 10
        with assertion_msg(error_msg):
            yield result

    return runner_result


@pytest.fixture(autouse=True)
def forbid_requests(monkeypatch):
    def mocked_open_url(url, *args, **kwargs):
        pytest.fail(f"Attempted to make a forbidden request: {url}")

    for module in (downloading, sources):
        monkeypatch.setattr(module, "open_url", mocked_open_url)


class FakeRegistry:
    """In-memory registry standing in for the search, version and download endpoints."""

    def __init__(self):
        self.hits = []
        self.versions = {}
        self.unreachable = set()
        self.broken = set()
        self.downloaded = []

    def publish(self, mod_id, title, *releases, author="someone"):
        """Add a mod; each release is a `(game_versions, filename)` pair."""
        self.hits.append(RemoteMod(mod_id, title, author, f"{title} description"))
        self.versions[mod_id] = [
            VersionRecord(
                frozenset(["fabric"]),
                tuple(game_versions),
                (Artifact(self.url(filename), filename),),
            )
            for game_versions, filename in releases
        ]

    @staticmethod
    def url(filename):
        return f"https://cdn.test/{filename}"

    def search(self, config, query):
        query = query.lower()
        return [
            hit for hit in self.hits if query in hit.title.lower() or query == hit.id
        ]

    def fetch_versions(self, config, mod_id):
        if mod_id in self.unreachable:
            raise NetworkError(f"https://registry.test/mod/{mod_id}/version", "timed out")
        return self.versions.get(mod_id, [])

    def download(self, artifact, directory, atomic=True, **kwargs):
        if artifact.url in self.broken:
            raise DownloadError(artifact.filename, "HTTP 503 Service Unavailable")
        path = fs.child_path(directory, artifact.filename)
        with open(path, "w") as file:
            file.write(artifact.url)
        self.downloaded.append(artifact.filename)
        return path


@pytest.fixture
def registry(monkeypatch):
    registry = FakeRegistry()
    monkeypatch.setattr(mods, "fetch_mod_search", registry.search)
    monkeypatch.setattr(mods, "fetch_mod_versions", registry.fetch_versions)
    monkeypatch.setattr(mods, "download_artifact", registry.download)
    return registry


@pytest.fixture
def manifest_file(mods_dir):
    """Write a manifest and create the files of the given installed mods"""

    def write(version="1.20.1", mods=(), installed=()):
        entries = [
            {"id": mod_id, "url": FakeRegistry.url(filename), "filename": filename}
            for mod_id, filename in mods
        ]
        path = os.path.join(mods_dir, "mods.json")
        with open(path, "w") as file:
            json.dump({"version": version, "mods": entries}, file)
        for filename in installed:
            with open(os.path.join(mods_dir, filename), "w") as file:
                file.write(FakeRegistry.url(filename))
        return path

    return write


@pytest.fixture
def read_manifest(mods_dir):
    def read():
        with open(os.path.join(mods_dir, "mods.json")) as file:
            return json.load(file)

    return read
