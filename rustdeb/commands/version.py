import click
import importlib.metadata
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of rustdeb."""
    try:
        ver = importlib.metadata.version("rustdeb")
        logger.info(f"rustdeb version {ver}")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of rustdeb. Is it installed correctly?")
