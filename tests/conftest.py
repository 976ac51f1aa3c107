import json
import logging
import os
from contextlib import contextmanager

import pytest

from rinth.manifest import Manifest
from rinth.modmeta import Artifact
from rinth.modmeta import TrackedMod
from rinth.modmeta import VersionRecord


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Never read the real user config"""
    config_file = os.path.join(tmp_path, "config", "config.yaml")
    monkeypatch.setenv("RINTH_CONFIG", config_file)
    monkeypatch.delenv("RINTH_DEBUG", raising=False)
    return config_file


@pytest.fixture(autouse=True)
def reset_logging():
    """The CLI detaches the package logger from the root logger, undo that
    so that `caplog` keeps working."""
    yield
    logger = logging.getLogger("rinth")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def mods_dir(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Working directory holding the manifest and mod files"""
    path = os.path.join(tmp_path, "mods")
    os.mkdir(path)
    monkeypatch.chdir(path)
    return path


@pytest.fixture
def data_file(request, tmp_path):
    data = request.param
    data_file = os.path.join(tmp_path, "data_file")

    # indicator for missing file
    if data is None:
        yield data_file
        return

    with open(data_file, "w") as file:
        file.write(data if isinstance(data, str) else json.dumps(data))
    yield data_file


@pytest.fixture(autouse=True)
def assertion_msg():
    @contextmanager
    def assertion_msg(msg: str):
        try:
            yield
        except AssertionError as e:
            e.args = (e.args[0] + "\n" + msg,)
            raise

    return assertion_msg


def record(game_versions, loaders=("fabric",), files=()):
    return VersionRecord(
        frozenset(loaders),
        tuple(game_versions),
        tuple(Artifact(url, filename) for url, filename in files),
    )


def manifest_of(*mods, version="1.20.1"):
    return Manifest(version, [TrackedMod(*mod) for mod in mods])


def touch(directory, *filenames):
    for filename in filenames:
        with open(os.path.join(directory, filename), "wb") as file:
            file.write(b"jar")
