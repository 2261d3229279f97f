import click
import shutil
import sys
from .. import config as config_module
from ..cli_logger import logger
from ..detector import load_project
from ..traits import Trait

REQUIRED_TOOLS = {
    "cargo": "cargo",
    "rustc": "rustc",
    "dh": "debhelper",
    "dpkg-buildpackage": "dpkg-dev",
    "dpkg-architecture": "dpkg-dev",
}

# Tools only some recipes need.
TRAIT_TOOLS = {
    Trait.BUNDLES_WEB_ASSETS: {"npm": "npm"},
    Trait.HOSTS_LANGUAGE_EXTENSION: {"pybuild": "dh-python"},
    Trait.USES_ALTERNATE_BUILD_SYSTEM: {"make": "make"},
    Trait.VENDORS_NATIVE_LIBRARY: {"pkg-config": "pkg-config"},
}

OPTIONAL_TOOLS = {
    "cargo-vendor-filterer": "cargo-vendor-filterer (cargo install)",
}


def check_environment(path="."):
    """Check that the packaging tools for this project are installed."""
    logger.info("Checking packaging environment...")
    all_ok = True

    for tool, provider in REQUIRED_TOOLS.items():
        if shutil.which(tool):
            logger.step_info(f"found {tool}", indent=2)
        else:
            logger.warning(f"{tool} not found. Install {provider}.")
            all_ok = False

    conf = config_module.load_config(path=path)
    if not conf:
        logger.warning(f"No {config_module.CONFIG_FILE} found. Run 'rustdeb init' to create one.")
    project = load_project(path, conf)
    for trait in project.sorted_traits():
        for tool, provider in TRAIT_TOOLS.get(trait, {}).items():
            if shutil.which(tool):
                logger.step_info(f"found {tool} ({trait})", indent=2)
            else:
                logger.warning(f"{tool} not found but needed for {trait}. Install {provider}.")
                all_ok = False

    if not project.has_lockfile:
        logger.warning("Cargo.lock is missing; the vendor bundle cannot be created.")
        all_ok = False

    for tool, provider in OPTIONAL_TOOLS.items():
        if not shutil.which(tool):
            logger.info(f"Optional: {provider} filters the vendor bundle by platform.")

    return all_ok


@click.command()
@click.pass_context
def doctor(ctx):
    """Check if the tools needed to build the package are installed."""
    try:
        if check_environment(ctx.obj["path"]):
            logger.success("Environment check completed successfully.")
        else:
            logger.error("Environment check found issues. Please review the warnings above.")
    except Exception as e:
        logger.error(f"An unexpected error occurred during environment check: {e}")
        logger.info("Please check the log file for more details.")
        logger.exception(*sys.exc_info())
