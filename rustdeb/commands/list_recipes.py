import click
from .. import config as config_module
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..recipes import build_registry
from ..renderer import placeholders

@click.command(name="list-recipes")
@click.pass_context
@handle_exceptions
def list_recipes(ctx):
    """List the available recipe fragments in precedence order."""
    conf = config_module.load_config(path=ctx.obj["path"])
    registry = build_registry(conf)
    logger.info("Available recipes:")
    for recipe in registry:
        keys = ", ".join(sorted(t.value for t in recipe.traits)) or "always"
        logger.step_info(f"{recipe.name} [{keys}]", indent=2)
        if recipe.description:
            logger.step_info(recipe.description, indent=4)
        if recipe.variables:
            logger.step_info(f"exports: {', '.join(recipe.variables)}", indent=4)
        if recipe.targets:
            logger.step_info(f"targets: {', '.join(recipe.targets)}", indent=4)
        names = sorted(placeholders(recipe))
        if names:
            logger.step_info(f"placeholders: {', '.join(names)}", indent=4)
