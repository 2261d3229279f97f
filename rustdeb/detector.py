"""Trait detection for upstream Cargo projects.

The tree is read once by :func:`scan_tree`; every rule afterwards is a pure
function of that snapshot, so detection is idempotent and the rules for
different traits never depend on each other. A project that matches no rule
is a plain single-binary crate and takes the default packaging path.
"""

import os
import posixpath

import toml

from .cli_logger import logger
from .config import get_section
from .traits import (
    ALTERNATE_BUILD_SYSTEMS,
    BuildSystem,
    Project,
    ProjectTree,
    Trait,
)

IGNORED_DIRS = frozenset({".git", "target", "node_modules", "debian", ".cargo"})
C_SOURCE_SUFFIXES = (".c", ".cc", ".cpp", ".cxx")

SHARED_CRATE_TYPES = frozenset({"cdylib", "dylib"})
EXTENSION_CRATES = frozenset({"pyo3", "cpython"})
EXTENSION_BACKENDS = ("maturin", "setuptools_rust", "setuptools-rust")
WEB_EMBED_CRATES = frozenset({"rust-embed", "include_dir"})
VENDORING_FEATURES = frozenset({"vendored", "bundled", "static"})
NATIVE_BUILD_CRATES = frozenset({"cc", "cmake"})

DEPENDENCY_SECTIONS = ("dependencies", "build-dependencies")

# trait -> list of rules; a trait is present when any of its rules matches.
DETECTORS = {}


def register_detector(trait):
    """Register a detection rule for ``trait``."""
    def decorator(func):
        DETECTORS.setdefault(trait, []).append(func)
        return func
    return decorator


def _read_toml(path):
    try:
        with open(path, "r", encoding="utf-8") as f:
            return toml.load(f)
    except toml.TomlDecodeError as e:
        logger.warning(f"Could not parse {path}: {e}. Treating it as empty.")
    except IOError as e:
        logger.warning(f"Could not read {path}: {e}. Treating it as empty.")
    return {}


def _is_vendored_crate_dir(path):
    return os.path.exists(os.path.join(path, ".cargo-checksum.json"))


def scan_tree(path="."):
    """Read the project tree once into a :class:`ProjectTree`."""
    root = os.path.abspath(path)
    files = set()
    manifests = {}
    pyprojects = {}

    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames
            if d not in IGNORED_DIRS and not _is_vendored_crate_dir(os.path.join(dirpath, d))
        )
        rel_dir = os.path.relpath(dirpath, root).replace(os.sep, "/")
        for name in sorted(filenames):
            rel_path = name if rel_dir == "." else f"{rel_dir}/{name}"
            files.add(rel_path)
            if name == "Cargo.toml":
                manifests[rel_path] = _read_toml(os.path.join(dirpath, name))
            elif name == "pyproject.toml":
                pyprojects[rel_path] = _read_toml(os.path.join(dirpath, name))

    return ProjectTree(
        root=root,
        files=frozenset(files),
        manifests=manifests,
        pyprojects=pyprojects,
        has_lockfile="Cargo.lock" in files,
    )


def _as_tree(tree_or_path):
    if isinstance(tree_or_path, ProjectTree):
        return tree_or_path
    return scan_tree(tree_or_path)


# -------------------- Manifest helpers --------------------

def _workspace_dependencies(tree):
    workspace = tree.root_manifest.get("workspace", {})
    return workspace.get("dependencies", {}) if isinstance(workspace, dict) else {}


def _dependency_tables(manifest, sections):
    for section in sections:
        table = manifest.get(section)
        if isinstance(table, dict):
            yield table
    targets = manifest.get("target", {})
    if isinstance(targets, dict):
        for target in targets.values():
            if not isinstance(target, dict):
                continue
            for section in sections:
                table = target.get(section)
                if isinstance(table, dict):
                    yield table


def iter_dependencies(tree, sections=DEPENDENCY_SECTIONS):
    """Yield ``(crate_name, features)`` for every declared dependency.

    Renamed dependencies are reported under their real crate name and
    ``workspace = true`` entries inherit the workspace declaration.
    """
    inherited = _workspace_dependencies(tree)
    for name, spec in inherited.items():
        yield _dependency_entry(name, spec)

    for manifest in tree.manifests.values():
        for table in _dependency_tables(manifest, sections):
            for name, spec in table.items():
                if isinstance(spec, dict) and spec.get("workspace") is True:
                    base = inherited.get(name, {})
                    crate, features = _dependency_entry(name, base)
                    yield crate, features | frozenset(spec.get("features", []))
                else:
                    yield _dependency_entry(name, spec)


def _dependency_entry(name, spec):
    if isinstance(spec, dict):
        return spec.get("package", name), frozenset(spec.get("features", []))
    return name, frozenset()


def _dependency_names(tree, sections=DEPENDENCY_SECTIONS):
    return {name for name, _ in iter_dependencies(tree, sections)}


def _crate_types(manifest):
    lib = manifest.get("lib", {})
    if not isinstance(lib, dict):
        return set()
    crate_types = lib.get("crate-type", lib.get("crate_type", []))
    if isinstance(crate_types, str):
        crate_types = [crate_types]
    return set(crate_types)


def _build_backend(pyproject):
    build_system = pyproject.get("build-system", {})
    backend = build_system.get("build-backend", "") or ""
    requires = " ".join(build_system.get("requires", []))
    return backend, requires


def _extension_pyproject(tree):
    """Return the relative path of the first pyproject that builds Rust code."""
    for rel_path in sorted(tree.pyprojects):
        backend, requires = _build_backend(tree.pyprojects[rel_path])
        if any(name in backend or name in requires for name in EXTENSION_BACKENDS):
            return rel_path
    return None


# -------------------- Build system --------------------

def detect_build_system(tree_or_path):
    """Return the single build system that drives the upstream build."""
    tree = _as_tree(tree_or_path)
    if tree.has_file("meson.build"):
        return BuildSystem.MESON
    if tree.has_file("CMakeLists.txt"):
        return BuildSystem.CMAKE
    if tree.has_file("configure.ac", "configure.in", "configure"):
        return BuildSystem.AUTOTOOLS
    pyproject = tree.pyprojects.get("pyproject.toml")
    if pyproject and "maturin" in _build_backend(pyproject)[0]:
        return BuildSystem.MATURIN
    if tree.has_file("Cargo.toml"):
        return BuildSystem.CARGO
    if tree.has_file("Makefile", "GNUmakefile"):
        return BuildSystem.MAKE
    return BuildSystem.UNKNOWN


# -------------------- Detection rules --------------------

@register_detector(Trait.USES_ALTERNATE_BUILD_SYSTEM)
def _uses_alternate_build_system(tree):
    return detect_build_system(tree) in ALTERNATE_BUILD_SYSTEMS


@register_detector(Trait.PRODUCES_SHARED_LIBRARY)
def _produces_shared_library(tree):
    return any(_crate_types(m) & SHARED_CRATE_TYPES for m in tree.manifests.values())


@register_detector(Trait.IS_WORKSPACE)
def _is_workspace(tree):
    return isinstance(tree.root_manifest.get("workspace"), dict)


@register_detector(Trait.BUNDLES_WEB_ASSETS)
def _has_package_json(tree):
    return bool(tree.files_named("package.json"))


@register_detector(Trait.BUNDLES_WEB_ASSETS)
def _embeds_web_assets(tree):
    return bool(_dependency_names(tree) & WEB_EMBED_CRATES)


@register_detector(Trait.VENDORS_NATIVE_LIBRARY)
def _enables_vendoring_feature(tree):
    for name, features in iter_dependencies(tree):
        if features & VENDORING_FEATURES:
            return True
        if name.endswith("-src"):
            return True
    return False


@register_detector(Trait.VENDORS_NATIVE_LIBRARY)
def _compiles_bundled_sources(tree):
    if not _dependency_names(tree, ("build-dependencies",)) & NATIVE_BUILD_CRATES:
        return False
    return any(f.endswith(C_SOURCE_SUFFIXES) for f in tree.files)


@register_detector(Trait.HOSTS_LANGUAGE_EXTENSION)
def _depends_on_binding_crate(tree):
    return bool(_dependency_names(tree) & EXTENSION_CRATES)


@register_detector(Trait.HOSTS_LANGUAGE_EXTENSION)
def _built_by_python_backend(tree):
    return _extension_pyproject(tree) is not None


def detect_traits(tree_or_path):
    """Return the frozenset of traits that apply to the project."""
    tree = _as_tree(tree_or_path)
    return frozenset(
        trait for trait, rules in DETECTORS.items()
        if any(rule(tree) for rule in rules)
    )


# -------------------- Project --------------------

def _primary_package(tree):
    """Return ``(manifest_path, package_table)`` of the crate being packaged."""
    root_package = tree.root_manifest.get("package")
    if isinstance(root_package, dict):
        return "Cargo.toml", root_package

    members = [
        (rel_path, manifest) for rel_path, manifest in sorted(tree.manifests.items())
        if rel_path != "Cargo.toml" and isinstance(manifest.get("package"), dict)
    ]
    for rel_path, manifest in members:
        crate_dir = posixpath.dirname(rel_path)
        if manifest.get("bin") or posixpath.join(crate_dir, "src/main.rs") in tree.files:
            return rel_path, manifest["package"]
    if members:
        return members[0][0], members[0][1]["package"]
    return None, {}


def _package_version(tree, package):
    version = package.get("version")
    if isinstance(version, dict) and version.get("workspace") is True:
        workspace = tree.root_manifest.get("workspace", {})
        return workspace.get("package", {}).get("version")
    return version


def _lib_name(tree, crate_name):
    for manifest in tree.manifests.values():
        if _crate_types(manifest) & SHARED_CRATE_TYPES:
            lib_name = manifest.get("lib", {}).get("name")
            if lib_name:
                return lib_name
            package_name = manifest.get("package", {}).get("name")
            if package_name:
                return package_name.replace("-", "_")
    return crate_name.replace("-", "_") if crate_name else None


def _apply_trait_overrides(traits, conf):
    section = get_section(conf, "traits")
    traits = set(traits)
    for key, add in (("include", True), ("exclude", False)):
        names = section.get(key, [])
        if not isinstance(names, list):
            logger.warning(f"Ignoring [traits] {key}: expected a list of trait names, got {names!r}.")
            continue
        for name in names:
            if not isinstance(name, str):
                logger.warning(f"Ignoring [traits] {key} entry {name!r}: expected a trait name.")
                continue
            try:
                trait = Trait.parse(name)
            except ValueError as e:
                logger.warning(f"Ignoring [traits] {key} entry: {e}")
                continue
            if add:
                traits.add(trait)
            else:
                traits.discard(trait)
    return frozenset(traits)


def load_project(path=".", conf=None):
    """Scan ``path`` and build the :class:`Project` being packaged."""
    tree = scan_tree(path)
    if not tree.files:
        logger.warning(f"No files found under {tree.root}.")

    build_system = detect_build_system(tree)
    traits = _apply_trait_overrides(detect_traits(tree), conf or {})

    _, package = _primary_package(tree)
    name = package.get("name")
    version = _package_version(tree, package)

    python_module = python_dir = None
    pyproject_path = _extension_pyproject(tree)
    if pyproject_path:
        pyproject = tree.pyprojects[pyproject_path]
        python_module = pyproject.get("project", {}).get("name")
        python_dir = posixpath.dirname(pyproject_path) or "."

    package_json = tree.files_named("package.json")
    web_dir = (posixpath.dirname(package_json[0]) or ".") if package_json else None

    return Project(
        root=tree.root,
        name=name,
        version=version,
        build_system=build_system,
        has_lockfile=tree.has_lockfile,
        traits=traits,
        lib_name=_lib_name(tree, name),
        python_module=python_module,
        python_dir=python_dir,
        web_dir=web_dir,
    )
