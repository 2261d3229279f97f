import functools
import click
import sys # Import sys for sys.exc_info()
from .cli_logger import logger
from .errors import RustdebError

def handle_exceptions(func):
    """A decorator to handle common exceptions for CLI commands.

    Pipeline failures are reported by name and end the command with exit
    status 1.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
        except RustdebError as e:
            logger.error(f"Error: {e}")
            sys.exit(1)
        except FileNotFoundError as e:
            logger.error(f"Error: File not found - {e}")
            logger.exception(*sys.exc_info()) # Log traceback for FileNotFoundError
            sys.exit(1)
        except click.ClickException as e:
            logger.error(f"CLI Error: {e}")
            logger.exception(*sys.exc_info()) # Log traceback for ClickException
            sys.exit(1)
        except Exception as e:
            logger.error(f"\nAn unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
            sys.exit(1)
    return wrapper
