import click
from .. import config as config_module
from .. import pipeline
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..selector import winning_targets

@click.command()
@click.pass_context
@handle_exceptions
def select(ctx):
    """Show which recipe fragments apply, in precedence order."""
    path = ctx.obj["path"]
    conf = config_module.load_config(path=path)
    project, recipes = pipeline.plan(path, conf)

    traits = ", ".join(t.value for t in project.sorted_traits()) or "none"
    logger.info(f"Traits: {traits}")

    winners = winning_targets(recipes)
    for position, recipe in enumerate(recipes, start=1):
        logger.info(f"{position}. {recipe.name}")
        won = [target for target, name in winners.items() if name == recipe.name]
        if won:
            logger.step_info(f"provides: {', '.join(won)}", indent=5)
        else:
            logger.step_info("fully overridden by later recipes", indent=5)
