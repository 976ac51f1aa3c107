import re
import typing as t
from dataclasses import dataclass
from dataclasses import field

_VERSION_PATTERN = re.compile(
    r"^(?P<core>[0-9]+(?:\.[0-9]+){1,2})(?:-(?P<tag>[0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$"
)


@dataclass(frozen=True)
class Version:
    """A game version in (partial) semver form.

    `Patch` is -1 for versions such as "1.20" which omit it. Build metadata is
    dropped while parsing, so it never takes part in comparisons.
    """

    Major: int
    Minor: int
    Patch: int = -1
    Tag: str = field(default="")

    @classmethod
    def parse(cls, version: str) -> "Version":
        """:raises ValueError: if :param:`version` is not a valid version string."""
        match = _VERSION_PATTERN.match(version.strip()) if version else None
        if not match:
            raise ValueError("%s is not a valid Version string." % version)
        parts = [int(n) for n in match["core"].split(".")]
        parts += [-1] * (3 - len(parts))
        return cls(*parts, Tag=match["tag"] or "")  # type: ignore

    @classmethod
    def is_valid(cls, version: str):
        try:
            cls.parse(version)
            return True
        except ValueError:
            return False

    @property
    def is_exact(self):
        return self.Patch != -1

    def __str__(self):
        out = "{}.{}".format(self.Major, self.Minor)
        if self.Patch != -1:
            out += ".{}".format(self.Patch)
        if self.Tag:
            out += "-{}".format(self.Tag)
        return out


def parse_exact(version: str) -> Version:
    """Parse a version that must include all of MAJOR.MINOR.PATCH.

    :raises ValueError: for malformed or partial versions."""
    parsed = Version.parse(version)
    if not parsed.is_exact:
        raise ValueError(f"{version} is not an exact version (expected MAJOR.MINOR.PATCH).")
    return parsed


def matches_requirement(requirement: str, target: Version) -> bool:
    """Check an "=<version>" requirement against :param:`target`.

    Only exact equality is supported. Malformed requirements never match.
    """
    if not requirement.startswith("="):
        return False
    try:
        required = Version.parse(requirement[1:])
    except ValueError:
        return False
    return required == target


def matches_game_version(game_version: str, target: t.Union[str, Version]) -> bool:
    if isinstance(target, str):
        target = Version.parse(target)
    return matches_requirement("=" + game_version, target)
