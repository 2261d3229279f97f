"""Project model: packaging traits, build systems and the scanned tree."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Trait(str, Enum):
    """A boolean characteristic of an upstream project relevant to packaging."""

    USES_ALTERNATE_BUILD_SYSTEM = "uses-alternate-build-system"
    PRODUCES_SHARED_LIBRARY = "produces-shared-library"
    IS_WORKSPACE = "is-workspace"
    BUNDLES_WEB_ASSETS = "bundles-web-assets"
    VENDORS_NATIVE_LIBRARY = "vendors-native-library"
    HOSTS_LANGUAGE_EXTENSION = "hosts-language-extension"

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, name):
        """Look a trait up by its hyphenated name."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            known = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown trait '{name}'. Known traits: {known}") from None


class BuildSystem(str, Enum):
    CARGO = "cargo"
    MESON = "meson"
    CMAKE = "cmake"
    AUTOTOOLS = "autotools"
    MAKE = "make"
    MATURIN = "maturin"
    UNKNOWN = "unknown"

    def __str__(self):
        return self.value


# Build systems that drive cargo from outside.
ALTERNATE_BUILD_SYSTEMS = frozenset(
    {BuildSystem.MESON, BuildSystem.CMAKE, BuildSystem.AUTOTOOLS, BuildSystem.MAKE}
)

# debhelper's name for each build system (dh --buildsystem=...).
DH_BUILD_SYSTEMS = {
    BuildSystem.CARGO: "cargo",
    BuildSystem.MESON: "meson",
    BuildSystem.CMAKE: "cmake",
    BuildSystem.AUTOTOOLS: "autoconf",
    BuildSystem.MAKE: "makefile",
    BuildSystem.MATURIN: "pybuild",
}


@dataclass(frozen=True)
class ProjectTree:
    """Read-once snapshot of an upstream source tree.

    ``files`` holds POSIX paths relative to ``root``. ``manifests`` maps the
    relative path of every ``Cargo.toml`` to its parsed content, the root
    manifest under ``"Cargo.toml"``. ``pyprojects`` does the same for every
    ``pyproject.toml``.
    """

    root: str
    files: frozenset
    manifests: dict = field(default_factory=dict)
    pyprojects: dict = field(default_factory=dict)
    has_lockfile: bool = False

    @property
    def root_manifest(self):
        return self.manifests.get("Cargo.toml", {})

    def has_file(self, *names):
        return any(name in self.files for name in names)

    def files_named(self, name):
        return sorted(f for f in self.files if f == name or f.endswith("/" + name))


@dataclass(frozen=True)
class Project:
    """The upstream project as seen at packaging time."""

    root: str
    name: Optional[str]
    version: Optional[str]
    build_system: BuildSystem
    has_lockfile: bool
    traits: frozenset = frozenset()
    lib_name: Optional[str] = None
    python_module: Optional[str] = None
    python_dir: Optional[str] = None
    web_dir: Optional[str] = None

    def sorted_traits(self):
        return sorted(self.traits, key=lambda t: t.value)
