import posixpath
import re

from .config import DEFAULT_CARGO_HOME, DEFAULT_INSTALL_DIR, get_section
from .traits import DH_BUILD_SYSTEMS

# Rust target triple -> Debian multiarch tuple.
TRIPLE_MAP = {
    "x86_64-unknown-linux-gnu": "x86_64-linux-gnu",
    "i686-unknown-linux-gnu": "i386-linux-gnu",
    "aarch64-unknown-linux-gnu": "aarch64-linux-gnu",
    "armv7-unknown-linux-gnueabihf": "arm-linux-gnueabihf",
    "arm-unknown-linux-gnueabi": "arm-linux-gnueabi",
    "powerpc64le-unknown-linux-gnu": "powerpc64le-linux-gnu",
    "powerpc64-unknown-linux-gnu": "powerpc64-linux-gnu",
    "s390x-unknown-linux-gnu": "s390x-linux-gnu",
    "riscv64gc-unknown-linux-gnu": "riscv64-linux-gnu",
    "mips64el-unknown-linux-gnuabi64": "mips64el-linux-gnuabi64",
    "loongarch64-unknown-linux-gnu": "loongarch64-linux-gnu",
}

# The debian/ directory as debian/rules sees it.
DEBIAN_DIR = "$(CURDIR)/debian"

# Where the unpacked vendor bundle lives, relative to the source root.
SOURCE_VENDOR_DIR = "vendor"

# Resolved by cargo relative to debian/, the parent of the default CARGO_HOME.
DEFAULT_VENDOR_DIR = "../vendor"

PARAMETER_NAME_RE = re.compile(r"^[A-Z][A-Z0-9_]*$")


def multiarch_for(rust_type):
    """Return the multiarch tuple for a Rust triple, or None if unknown."""
    if not rust_type:
        return None
    if rust_type in TRIPLE_MAP:
        return TRIPLE_MAP[rust_type]
    parts = rust_type.split("-")
    if len(parts) == 4 and parts[1] == "unknown":
        return f"{parts[0]}-{parts[2]}-{parts[3]}"
    return None


def cargo_home_in_debian(cargo_home):
    """CARGO_HOME relative to debian/, or None when it lies outside debian/."""
    prefix = DEBIAN_DIR + "/"
    if not cargo_home or not cargo_home.startswith(prefix):
        return None
    rel_path = posixpath.normpath(cargo_home[len(prefix):])
    if rel_path == "." or rel_path == ".." or rel_path.startswith("../"):
        return None
    return rel_path


def default_vendor_dir(cargo_home):
    """VENDOR_DIR as cargo resolves it from $CARGO_HOME/config.toml.

    cargo reads relative paths in that file against the parent of
    CARGO_HOME, so the path back to the source root depends on its depth.
    """
    rel_path = cargo_home_in_debian(cargo_home)
    if rel_path is None:
        return DEFAULT_VENDOR_DIR
    config_parent = posixpath.dirname(posixpath.join("debian", rel_path))
    return posixpath.relpath(SOURCE_VENDOR_DIR, config_parent)


def debian_package_name(crate_name):
    """Debian binary package name for a crate: lowercase, no underscores."""
    name = crate_name.lower().replace("_", "-")
    return re.sub(r"[^a-z0-9+.-]", "", name)


def parse_assignments(assignments):
    """Parse ``NAME=VALUE`` strings from the command line."""
    params = {}
    for assignment in assignments:
        name, sep, value = assignment.partition("=")
        name = name.strip()
        if not sep or not PARAMETER_NAME_RE.match(name):
            raise ValueError(f"Invalid parameter assignment '{assignment}'. Use NAME=VALUE with an uppercase NAME.")
        params[name] = value
    return params


def derive_parameters(project, conf=None, overrides=None):
    """Build the parameter mapping used to render recipes.

    Command-line ``overrides`` win over the configuration, which wins over
    what was found in the project. Values nobody knows are left as None so
    rendering reports them.
    """
    conf = conf or {}
    package = get_section(conf, "package")
    build = get_section(conf, "build")
    python = get_section(conf, "python")
    web = get_section(conf, "web")

    params = {
        "CRATE": project.name,
        "VERSION": project.version,
        "LIB_NAME": project.lib_name,
        "BUILD_SYSTEM": DH_BUILD_SYSTEMS.get(project.build_system),
        "PYBUILD_NAME": project.python_module,
        "PYBUILD_DIR": project.python_dir,
        "WEB_DIR": project.web_dir,
        "INSTALL_DIR": DEFAULT_INSTALL_DIR,
        "CARGO_HOME": DEFAULT_CARGO_HOME,
        # Without a lockfile there is no vendored source to build from.
        "CARGO_NET_OFFLINE": "true" if project.has_lockfile else "false",
    }

    configured = {
        "CRATE": package.get("crate"),
        "VERSION": package.get("version"),
        "PACKAGE": package.get("name"),
        "LIB_NAME": package.get("lib_name"),
        "DEB_HOST_RUST_TYPE": build.get("target"),
        "INSTALL_DIR": build.get("install_dir"),
        "CARGO_HOME": build.get("cargo_home"),
        "BUILD_SYSTEM": build.get("build_system"),
        "VENDOR_DIR": build.get("vendor_dir"),
        "PYBUILD_NAME": python.get("name"),
        "PYBUILD_DIR": python.get("dir"),
        "WEB_DIR": web.get("dir"),
    }
    if "offline" in build:
        configured["CARGO_NET_OFFLINE"] = "true" if build["offline"] else "false"
    configured.update(get_section(conf, "parameters"))

    explicit = set()
    for source in (configured, overrides or {}):
        for name, value in source.items():
            if value is not None:
                params[name] = str(value)
                explicit.add(name)

    crate = params.get("CRATE")
    if crate != project.name and "LIB_NAME" not in explicit:
        # The scanned library name belongs to another crate.
        params["LIB_NAME"] = None
    if crate:
        if params.get("PACKAGE") is None:
            params["PACKAGE"] = debian_package_name(crate)
        if params.get("LIB_NAME") is None:
            params["LIB_NAME"] = crate.replace("-", "_")
    if params.get("PYBUILD_NAME") is None:
        params["PYBUILD_NAME"] = params.get("LIB_NAME")
    if params.get("PYBUILD_DIR") is None:
        params["PYBUILD_DIR"] = "."
    if params.get("WEB_DIR") is None:
        params["WEB_DIR"] = "."
    if params.get("VENDOR_DIR") is None:
        params["VENDOR_DIR"] = default_vendor_dir(params.get("CARGO_HOME"))
    if params.get("DEB_HOST_MULTIARCH") is None:
        params["DEB_HOST_MULTIARCH"] = multiarch_for(params.get("DEB_HOST_RUST_TYPE"))
    return params
