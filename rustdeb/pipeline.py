"""detect -> select -> render, as used by the commands."""

import posixpath

from .cli_logger import logger
from .detector import load_project
from .errors import InvalidParameterError
from .parameters import DEBIAN_DIR, cargo_home_in_debian, derive_parameters
from .recipes import build_registry
from .renderer import render_cargo_config, render_rules
from .selector import select_recipes
from .utils.command_executor import query_host_rust_type


def plan(path, conf):
    """Detect the project and select its recipes."""
    project = load_project(path, conf)
    registry = build_registry(conf)
    recipes = select_recipes(project.traits, registry)
    return project, recipes


def resolve_parameters(project, conf, overrides=None):
    params = derive_parameters(project, conf, overrides)
    if params.get("DEB_HOST_RUST_TYPE") is None:
        triple = query_host_rust_type()
        if triple:
            logger.info(f"Using host Rust type {triple} from dpkg-architecture.")
            params = derive_parameters(project, conf, dict(overrides or {}, DEB_HOST_RUST_TYPE=triple))
    return params


def render_control_files(path, conf, overrides=None):
    """Return ``(project, recipes, files)``; files maps debian/ paths to text."""
    project, recipes = plan(path, conf)
    params = resolve_parameters(project, conf, overrides)
    files = {"rules": render_rules(recipes, params)}
    if project.has_lockfile:
        cargo_home = cargo_home_in_debian(params.get("CARGO_HOME"))
        if cargo_home is None:
            raise InvalidParameterError(
                "CARGO_HOME", params.get("CARGO_HOME"),
                f"the vendored-source config is written into debian/, so it must lie under {DEBIAN_DIR}/",
            )
        files[posixpath.join(cargo_home, "config.toml")] = render_cargo_config(params)
    return project, recipes, files
