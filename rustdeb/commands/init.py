import click
import os
import sys
import toml
from .. import config as config_module
from ..cli_logger import logger
from ..detector import load_project
from ..parameters import debian_package_name
from ..utils.command_executor import query_host_rust_type


def _get_default_config(project):
    crate = project.name or "mycrate"
    build = {
        "install_dir": config_module.DEFAULT_INSTALL_DIR,
        "cargo_home": config_module.DEFAULT_CARGO_HOME,
        "offline": project.has_lockfile,
    }
    # Left unset when unknown so render asks dpkg-architecture at render time.
    target = query_host_rust_type()
    if target:
        build["target"] = target
    return {
        "package": {
            "name": debian_package_name(crate),
            "crate": crate,
            "version": project.version or "0.1.0",
        },
        "build": build,
        "traits": {
            "include": [],
            "exclude": [],
        },
    }


def _prompt_for_input(prompt, default, validation_func=None, **kwargs):
    while True:
        value = click.prompt(prompt, default=default, **kwargs)
        if validation_func is None or validation_func(value):
            return value
        else:
            logger.warning(f"Invalid input for {prompt}. Please try again.")


def _prompt_for_list_input(prompt, default):
    while True:
        value_str = click.prompt(prompt, default=default)
        # Allow empty list if the input string was empty
        if not value_str.strip():
            return []
        values = [v.strip() for v in value_str.split(',') if v.strip()]
        if values:
            return values
        else:
            logger.warning(f"Invalid input for {prompt}. Please provide a comma-separated list of values.")


def _valid_package_name(value):
    return bool(value) and debian_package_name(value) == value


@click.command()
@click.option('--non-interactive', is_flag=True, help='Run in non-interactive mode using values found in Cargo.toml.')
@click.option('--config-file', type=click.Path(exists=True), help='Path to a TOML file with configuration values.')
@click.pass_context
def init(ctx, non_interactive, config_file):
    """Create rustdeb.toml for the upstream project."""
    logger.info("Initializing rustdeb configuration.")
    path = ctx.obj["path"]

    conf = {}
    if config_file:
        logger.info(f"Loading configuration from {config_file}")
        with open(config_file, 'r') as f:
            conf = toml.load(f)
    else:
        defaults = _get_default_config(load_project(path))
        if non_interactive:
            logger.info("Running in non-interactive mode with detected values.")
            conf = defaults
        else:
            logger.info("Please provide the following details:")
            try:
                package = defaults["package"]
                build = defaults["build"]
                crate = _prompt_for_input("Crate name", package["crate"])
                version = _prompt_for_input("Upstream version", package["version"])
                package_name = _prompt_for_input(
                    "Debian package name", package["name"], validation_func=_valid_package_name
                )
                target = _prompt_for_input(
                    "Rust target triple (leave empty to ask dpkg-architecture at render time)",
                    build.get("target", ""),
                ).strip()
                install_dir = _prompt_for_input("Binary install directory", build["install_dir"])
                include = _prompt_for_list_input("Extra traits to declare (comma-separated, leave empty for none)", "")

                build_conf = dict(build, install_dir=install_dir)
                build_conf.pop("target", None)
                if target:
                    build_conf["target"] = target

                conf = {
                    "package": {
                        "name": package_name,
                        "crate": crate,
                        "version": version,
                    },
                    "build": build_conf,
                    "traits": {
                        "include": include,
                        "exclude": [],
                    },
                }
            except click.Abort:
                logger.warning("\nInitialization aborted by user.")
                return

    try:
        if config_module.save_config(conf, path=path):
            logger.success(f"Configuration saved to {os.path.join(path, config_module.CONFIG_FILE)}")
            logger.info("Next steps: Run 'rustdeb detect' and 'rustdeb render -o debian'.")
    except Exception as e:
        logger.error(f"An unexpected error occurred while saving configuration file: {e}")
        logger.exception(*sys.exc_info())
