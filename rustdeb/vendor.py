"""Vendor bundles: the pinned crate sources an offline build needs.

A bundle is created once per package version from ``Cargo.lock`` and is
never rewritten. A version bump produces a new bundle which supersedes the
older ones.
"""

import os
import re
import shutil
from dataclasses import dataclass

import toml
from packaging.version import parse as parse_version, InvalidVersion

from .cli_logger import logger
from .errors import VendorBundleExistsError, VendoringFailedError
from .utils.command_executor import run_shell_command
from .utils.file_manager import create_tar_xz

LOCKFILE = "Cargo.lock"
VENDOR_DIRNAME = "vendor"
BUNDLE_COMPONENT = "vendor"


@dataclass(frozen=True)
class LockedPackage:
    name: str
    version: str
    source: str = None
    checksum: str = None

    @property
    def from_registry(self):
        return bool(self.source) and self.source.startswith("registry+")


@dataclass(frozen=True)
class VendorBundle:
    package: str
    version: str
    platform: str
    path: str
    crates: tuple = ()


def read_lockfile(project_root):
    """Parse Cargo.lock into a list of :class:`LockedPackage`."""
    lock_path = os.path.join(project_root, LOCKFILE)
    if not os.path.exists(lock_path):
        raise FileNotFoundError(f"{lock_path} (run 'cargo generate-lockfile' upstream first)")
    with open(lock_path, "r", encoding="utf-8") as f:
        data = toml.load(f)
    return [
        LockedPackage(
            name=entry["name"],
            version=entry["version"],
            source=entry.get("source"),
            checksum=entry.get("checksum"),
        )
        for entry in data.get("package", [])
    ]


def bundle_filename(package, version):
    return f"{package}_{version}.orig-{BUNDLE_COMPONENT}.tar.xz"


def find_bundles(output_dir, package):
    """Return ``(version, path)`` for every vendor bundle of ``package``."""
    if not os.path.isdir(output_dir):
        return []
    pattern = re.compile(
        rf"^{re.escape(package)}_(?P<version>.+)\.orig-{BUNDLE_COMPONENT}\.tar\.xz$"
    )
    bundles = []
    for name in sorted(os.listdir(output_dir)):
        match = pattern.match(name)
        if match:
            bundles.append((match.group("version"), os.path.join(output_dir, name)))
    return bundles


def superseded_bundles(output_dir, package, version):
    """Paths of bundles for versions older than ``version``."""
    try:
        current = parse_version(version)
    except InvalidVersion as e:
        logger.error(f"Failed to parse version '{version}': {e}")
        return []

    superseded = []
    for other_version, path in find_bundles(output_dir, package):
        try:
            if parse_version(other_version) < current:
                superseded.append(path)
        except InvalidVersion as e:
            logger.error(f"Failed to parse version '{other_version}' from bundle '{path}': {e}")
            continue
    return superseded


def vendor_command(platform, vendor_dir):
    """cargo invocation that vendors the locked crates for ``platform``."""
    if shutil.which("cargo-vendor-filterer"):
        return ["cargo", "vendor-filterer", f"--platform={platform}", vendor_dir]
    logger.warning("cargo-vendor-filterer not found; vendoring crates for every platform.")
    return ["cargo", "vendor", "--locked", "--versioned-dirs", vendor_dir]


def run_cargo_vendor(project_root, vendor_dir, platform, verbose=False):
    command = vendor_command(platform, vendor_dir)
    logger.info(f"Running: {' '.join(command)}")
    output, process = run_shell_command(command, stream_output=True, cwd=project_root)
    for line in output:
        if verbose:
            logger.step_info(line.rstrip(), indent=2)
    if process.returncode != 0:
        raise VendoringFailedError(
            f"'{' '.join(command)}' exited with status {process.returncode}"
        )


def create_vendor_bundle(project_root, package, version, output_dir, platform,
                         reuse_vendor_dir=False, prune=False, verbose=False):
    """Vendor the locked dependencies and archive them as a bundle."""
    locked = read_lockfile(project_root)
    bundle_path = os.path.join(output_dir, bundle_filename(package, version))
    if os.path.exists(bundle_path):
        raise VendorBundleExistsError(bundle_path)

    vendor_dir = os.path.join(project_root, VENDOR_DIRNAME)
    if reuse_vendor_dir and os.path.isdir(vendor_dir):
        logger.info(f"Reusing existing vendor directory {vendor_dir}")
    else:
        run_cargo_vendor(project_root, VENDOR_DIRNAME, platform, verbose=verbose)
    if not os.path.isdir(vendor_dir):
        raise VendoringFailedError(f"cargo did not create {vendor_dir}")

    crates = tuple(sorted(
        name for name in os.listdir(vendor_dir)
        if os.path.isdir(os.path.join(vendor_dir, name))
    ))
    registry_crates = sum(1 for p in locked if p.from_registry)
    logger.info(f"Vendored {len(crates)} of {registry_crates} locked registry crates for {platform}.")

    create_tar_xz(vendor_dir, bundle_path, arcname=VENDOR_DIRNAME)
    logger.success(f"Created vendor bundle {bundle_path}")

    for old_path in superseded_bundles(output_dir, package, version):
        if prune:
            os.remove(old_path)
            logger.info(f"Removed superseded bundle {old_path}")
        else:
            logger.warning(f"Bundle {old_path} is superseded by {os.path.basename(bundle_path)}")

    return VendorBundle(
        package=package,
        version=version,
        platform=platform,
        path=bundle_path,
        crates=crates,
    )
