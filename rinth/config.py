import logging
import os
import sys
import typing as t
from contextlib import AbstractContextManager
from dataclasses import dataclass
from dataclasses import field
from dataclasses import fields
from dataclasses import is_dataclass
from functools import update_wrapper

if sys.version_info < (3, 10):
    import typing_extensions as te
else:
    te = t
import yaml
from click import Context
from click import make_pass_decorator
from platformdirs import PlatformDirs

from rinth import fs
from rinth.errors import CommandError
from rinth.errors import DecodeError
from rinth.errors import ExceptionCount
from rinth.manifest import Manifest
from rinth.manifest import MANIFEST_NAME
from rinth.manifest import read_manifest
from rinth.manifest import write_manifest
from rinth.resolve import ARTIFACT_SELECTIONS
from rinth.resolve import DEFAULT_LOADERS
from rinth.resolve import POSITIONAL

logger = logging.getLogger(__name__)

T = t.TypeVar("T")

dirs = PlatformDirs("rinth", False)
CONFIG_DIR = dirs.user_config_dir
CONFIG_FILE = os.path.join(CONFIG_DIR, "config.yaml")


def get_config_file():
    return os.environ.get("RINTH_CONFIG", None) or CONFIG_FILE


# Defaults
REGISTRY_URL = "https://api.modrinth.com/api/v1"


@dataclass(frozen=True)
class Config:
    """The rinth configuration file uses the YAML format."""

    @dataclass(frozen=True)
    class Downloading:
        registry_url: str = REGISTRY_URL
        """Base URL of the mod registry API."""

        connect_timeout: int = 3
        read_timeout: int = 10
        """Request timeouts, in seconds."""

        atomic: bool = True
        """Download into a temporary file and only move it into place once complete."""

    loaders: t.List[str] = field(default_factory=lambda: list(DEFAULT_LOADERS))
    """Mod loaders a release must support to be installed."""

    artifact_selection: str = POSITIONAL
    """Which file of a matching release to download: `positional` or `first`."""

    mods_directory: t.Optional[str] = None
    """Folder holding the manifest and mod files. Defaults to the working directory."""

    manifest_name: str = MANIFEST_NAME

    downloading: Downloading = Downloading()
    """Options related to the registry and downloading files."""

    def __post_init__(self):
        if not self.loaders:
            raise ValueError("'loaders' must list at least one mod loader.")
        if self.artifact_selection not in ARTIFACT_SELECTIONS:
            raise ValueError(
                "'artifact_selection' must be one of: "
                + ", ".join(ARTIFACT_SELECTIONS)
            )


def read_yaml(path: str, type: t.Type[T]) -> t.Optional[T]:
    with open(path) as file:
        data = yaml.safe_load(file)
    if not data:
        return None
    if not isinstance(data, dict):
        logger.error(f"Expected an object in '{path}'.")
        raise ExceptionCount(1)
    return dataclass_fromdict(data, type)


def dataclass_fromdict(data: t.Dict[str, t.Any], field_type: t.Type[T]) -> T:
    type_fields = {f.name: f.type for f in fields(field_type) if f.init}
    errors = 0
    for k, v in data.items():
        if k not in type_fields:
            logger.error(f"Unknown key: '{k}'.")
            errors += 1
            continue
        # Only the base type is checked, so 'List[str]' is checked as 'list'
        checkable_type = t.get_origin(type_fields[k]) or type_fields[k]
        if checkable_type is t.Union:  # Optional type
            checkable_type = t.get_args(type_fields[k])
        if isinstance(type_fields[k], type) and is_dataclass(type_fields[k]):
            if not isinstance(v, dict):
                logger.error(f"Expected object for key '{k}'.")
                errors += 1
                continue
            try:
                data[k] = dataclass_fromdict(v, type_fields[k])
            except ExceptionCount as e:
                errors += e.count
        elif not isinstance(v, checkable_type) or (
            # bool is an int subclass, but not a valid number here
            isinstance(v, bool)
            and checkable_type is int
        ):
            logger.error(f"Invalid value for key '{k}': '{v}'.")
            errors += 1
    if errors:
        raise ExceptionCount(errors)

    try:
        return field_type(**data)
    except TypeError:
        import inspect

        required_args = [
            arg
            for arg in inspect.signature(field_type.__init__).parameters.values()
            if arg.default == inspect.Parameter.empty
        ]
        for arg in required_args:
            if arg.name != "self" and arg.name not in data:
                logger.error(f"Missing required key: '{arg.name}'")
                errors += 1
        if errors > 0:
            raise ExceptionCount(errors)
        raise  # In case the error comes from something else


class Workspace(AbstractContextManager):  # pyright: ignore[reportMissingTypeArgument]
    """Owns the configuration and the manifest for a single invocation.

    The manifest is read on first access and written back once, when the
    context exits.

    :param setup: Called to create a manifest when none exists yet.
    """

    _config: t.Optional[Config] = None
    _manifest: t.Optional[Manifest] = None

    def __init__(self, setup: t.Optional[t.Callable[[], Manifest]] = None):
        self.setup = setup

    @property
    def config(self) -> Config:
        if not self._config:
            path = get_config_file()
            try:
                self._config = read_yaml(path, Config) or Config()
                logger.debug(f"User config loaded from '{path}'.")
            except FileNotFoundError:
                self._config = Config()
            except ExceptionCount as e:
                raise CommandError(
                    f"{e.count} error(s) were encountered while loading config."
                )
            except (ValueError, yaml.YAMLError) as e:
                raise CommandError(f"Error loading config:\n  {e}")

        return self._config

    @property
    def directory(self) -> str:
        return os.path.abspath(self.config.mods_directory or os.getcwd())

    @property
    def manifest_path(self):
        return os.path.join(self.directory, self.config.manifest_name)

    @property
    def manifest(self) -> Manifest:
        if not self._manifest:
            try:
                manifest = read_manifest(self.manifest_path)
            except DecodeError as e:
                # Never treat a corrupt manifest as a missing one
                raise CommandError(str(e))
            if manifest is None:
                if not self.setup:
                    raise CommandError(f"No manifest found at '{self.manifest_path}'.")
                logger.debug(f"No manifest at '{self.manifest_path}', running setup.")
                manifest = self.setup()
            self._manifest = manifest

        return self._manifest

    def path_for(self, filename: str):
        return fs.child_path(self.directory, filename)

    def file_exists(self, filename: str) -> bool:
        try:
            return fs.isfile(self.path_for(filename))
        except ValueError:
            return False

    def remove_file(self, filename: str) -> bool:
        try:
            return fs.remove_file(self.path_for(filename))
        except ValueError as e:
            logger.warning(str(e))
            return False

    def save(self):
        if self._manifest is None:
            return
        os.makedirs(self.directory, exist_ok=True)
        write_manifest(self.manifest_path, self._manifest)

    def __enter__(self):
        return self

    def __exit__(self, *exec_details):
        self.save()


pass_workspace = make_pass_decorator(Workspace)

P = te.ParamSpec("P")
R = t.TypeVar("R")


def wrap_config_param(
    f: t.Callable[te.Concatenate[Config, P], R]
) -> t.Callable[te.Concatenate[t.Union[Context, Workspace, Config], P], R]:
    """Convenience wrapper to transform a passed Context or Workspace into a Config"""

    def wrapper(config, *args: P.args, **kwargs: P.kwargs) -> R:
        if isinstance(config, Context):
            config = config.ensure_object(Workspace)
        if isinstance(config, Workspace):
            config = config.config
        return f(config, *args, **kwargs)

    return update_wrapper(wrapper, f)
