import click
import os
from .. import config as config_module
from .. import pipeline
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..parameters import parse_assignments

@click.command()
@click.option("--output", "-o", type=click.Path(file_okay=False), default=None,
              help="Write the files into this debian/ directory (relative to --path) instead of printing debian/rules.")
@click.option("--target", default=None, help="Rust target triple (DEB_HOST_RUST_TYPE).")
@click.option("--crate", "crate_name", default=None, help="Crate name to package.")
@click.option("--version", "crate_version", default=None, help="Upstream version.")
@click.option("--package", "package_name", default=None, help="Debian binary package name.")
@click.option("--set", "assignments", multiple=True, metavar="NAME=VALUE",
              help="Set any recipe placeholder. May be repeated.")
@click.pass_context
@handle_exceptions
def render(ctx, output, target, crate_name, crate_version, package_name, assignments):
    """Render debian/rules for the upstream project."""
    path = ctx.obj["path"]
    with logger.stdout_reserved(output is None):
        _render(path, output, assignments, target, crate_name, crate_version, package_name)


def _render(path, output, assignments, target, crate_name, crate_version, package_name):
    conf = config_module.load_config(path=path)

    try:
        overrides = parse_assignments(assignments)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--set")
    overrides.update({
        name: value for name, value in (
            ("DEB_HOST_RUST_TYPE", target),
            ("CRATE", crate_name),
            ("VERSION", crate_version),
            ("PACKAGE", package_name),
        ) if value is not None
    })

    project, recipes, files = pipeline.render_control_files(path, conf, overrides)
    logger.info(f"Rendered recipes: {', '.join(r.name for r in recipes)}")

    if output is None:
        click.echo(files["rules"], nl=False)
        return

    output_dir = output if os.path.isabs(output) else os.path.join(path, output)
    for rel_path, text in files.items():
        file_path = os.path.join(output_dir, rel_path)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "w") as f:
            f.write(text)
        if rel_path == "rules":
            os.chmod(file_path, 0o755)
        logger.step_info(f"wrote {file_path}", indent=2)
    logger.success(f"Build control files written to {output_dir}")
