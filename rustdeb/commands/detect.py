import click
import json
from .. import config as config_module
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..detector import load_project

@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@click.pass_context
@handle_exceptions
def detect(ctx, as_json):
    """Detect the packaging traits of the upstream project."""
    path = ctx.obj["path"]
    with logger.stdout_reserved(as_json):
        conf = config_module.load_config(path=path)
        project = load_project(path, conf)

    if as_json:
        click.echo(json.dumps({
            "name": project.name,
            "version": project.version,
            "build_system": project.build_system.value,
            "lockfile": project.has_lockfile,
            "traits": [t.value for t in project.sorted_traits()],
        }, indent=4))
        return

    logger.info(f"Project: {project.name or '(unnamed)'} {project.version or ''}".rstrip())
    logger.step_info(f"Build system: {project.build_system}", indent=2)
    logger.step_info(f"Cargo.lock:   {'present' if project.has_lockfile else 'missing'}", indent=2)
    if not project.has_lockfile:
        logger.warning("No Cargo.lock found; an offline build cannot pin its dependencies.")
    if not project.traits:
        logger.success("No special traits detected: plain single-binary crate.")
        return
    logger.info("Detected traits:")
    for trait in project.sorted_traits():
        logger.step_info(f"- {trait}", indent=2)
