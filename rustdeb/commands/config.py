import click
import os
import sys
import json
import toml
from .. import config as config_module
from ..cli_logger import logger
from ..parameters import PARAMETER_NAME_RE
from ..traits import Trait

NOT_FOUND = "Error: No rustdeb.toml found. Please run 'rustdeb init' first."

# Top-level tables the pipeline reads.
KNOWN_SECTIONS = ("package", "build", "python", "web", "traits", "recipes", "parameters")


def _load(ctx):
    """Return the configuration, or None after reporting that it is missing."""
    conf = config_module.load_config(path=ctx.obj["path"])
    if not conf:
        logger.error(NOT_FOUND)
        return None
    return conf


def _config_file(ctx):
    return os.path.join(ctx.obj["path"], config_module.CONFIG_FILE)


def _parse_value(value):
    """Interpret a command-line value as a TOML scalar or array, else a string."""
    try:
        return toml.loads(f"value = {value}")["value"]
    except toml.TomlDecodeError:
        return value


def _check_value(keys, value):
    """Return an error message when ``value`` cannot be used at ``keys``."""
    section = keys[0]
    if section == "traits" and keys[1:] in (["include"], ["exclude"]):
        names = value if isinstance(value, list) else [value]
        for name in names:
            try:
                Trait.parse(str(name))
            except ValueError as e:
                return str(e)
    if section == "parameters" and len(keys) == 2 and not PARAMETER_NAME_RE.match(keys[1]):
        return f"Parameter names are uppercase placeholders such as INSTALL_DIR, not '{keys[1]}'."
    if section == "build" and keys[1:] == ["offline"] and not isinstance(value, bool):
        return "build.offline must be true or false."
    return None


@click.group()
@click.pass_context
def config(ctx):
    """View or edit the rustdeb.toml configuration file."""
    pass

@config.command()
@click.pass_context
def view(ctx):
    """View the contents of the rustdeb.toml file."""
    if _load(ctx) is None:
        return
    try:
        with open(_config_file(ctx), 'r') as f:
            click.echo(f.read())
    except IOError as e:
        logger.error(f"Error reading rustdeb.toml at {_config_file(ctx)}: {e}")
        logger.info("Please check file permissions.")

@config.command()
@click.pass_context
def edit(ctx):
    """Edit the rustdeb.toml file in your default editor."""
    if _load(ctx) is None:
        return
    try:
        click.edit(filename=_config_file(ctx))
    except click.ClickException as e:
        logger.error(f"Click error editing rustdeb.toml: {e}")
        logger.info("This might indicate an issue with your editor configuration or environment variables.")
    except Exception as e:
        logger.error(f"An unexpected error occurred while editing rustdeb.toml: {e}")
        logger.exception(*sys.exc_info())

@config.command(name="list")
@click.pass_context
def list_values(ctx):
    """List all configuration keys and values."""
    conf = _load(ctx)
    if conf is not None:
        click.echo(json.dumps(conf, indent=4))

@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get a value, e.g. 'build.target' or 'traits.include'."""
    conf = _load(ctx)
    if conf is None:
        return

    value = conf
    try:
        for k in key.split('.'):
            value = value[k]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in rustdeb.toml")
        return
    click.echo(json.dumps(value) if isinstance(value, (list, dict)) else value)

@config.command(name="set")
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_value(ctx, key, value):
    """Set a value; VALUE is read as TOML when it parses, else as a string."""
    conf = _load(ctx)
    if conf is None:
        return

    keys = key.split('.')
    parsed = _parse_value(value)
    problem = _check_value(keys, parsed)
    if problem:
        logger.error(f"Error: Not setting '{key}'. {problem}")
        return
    if keys[0] not in KNOWN_SECTIONS:
        logger.warning(f"'{keys[0]}' is not a section rustdeb reads; the value is stored but unused.")

    table = conf
    for k in keys[:-1]:
        table = table.setdefault(k, {})
        if not isinstance(table, dict):
            logger.error(f"Error: '{k}' in '{key}' is a value, not a table.")
            return
    table[keys[-1]] = parsed

    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Set '{key}' to {parsed!r}")

@config.command()
@click.argument('key')
@click.pass_context
def unset(ctx, key):
    """Remove a key; the detected or default value applies again."""
    conf = _load(ctx)
    if conf is None:
        return

    *parents, last = key.split('.')
    table = conf
    try:
        for k in parents:
            table = table[k]
        del table[last]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in rustdeb.toml")
        return
    if config_module.save_config(conf, path=ctx.obj["path"]):
        logger.info(f"Unset '{key}'")
