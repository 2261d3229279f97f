import toml
import os
from .cli_logger import logger

CONFIG_FILE = "rustdeb.toml"

DEFAULT_CARGO_HOME = "$(CURDIR)/debian/cargo_home"
DEFAULT_INSTALL_DIR = "usr/bin"

def load_config(path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Loading configuration from {config_path}")
    if os.path.exists(config_path):
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = os.path.join(path, CONFIG_FILE)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
        return True
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False

def get_section(conf, name):
    """Return a config table, treating a missing or malformed one as empty."""
    section = conf.get(name, {}) if conf else {}
    if not isinstance(section, dict):
        logger.warning(f"Ignoring [{name}] in {CONFIG_FILE}: expected a table.")
        return {}
    return section
