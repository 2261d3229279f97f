import click
import os
import sys
from .. import config as config_module
from .. import pipeline
from .. import vendor as vendor_module
from ..cli_logger import logger
from ..decorators import handle_exceptions
from ..detector import load_project

@click.command()
@click.option("--output", "-o", type=click.Path(file_okay=False), default="..",
              help="Directory that receives the bundle (default: parent of the project).")
@click.option("--target", default=None, help="Rust target triple to filter crates for.")
@click.option("--reuse", is_flag=True, help="Archive an existing vendor/ directory instead of running cargo.")
@click.option("--prune", is_flag=True, help="Delete bundles of older versions.")
@click.option("--verbose", "-v", is_flag=True, help="Show cargo output.")
@click.pass_context
@handle_exceptions
def vendor(ctx, output, target, reuse, prune, verbose):
    """Create the vendored dependency bundle for this version."""
    path = ctx.obj["path"]
    conf = config_module.load_config(path=path)
    project = load_project(path, conf)
    overrides = {"DEB_HOST_RUST_TYPE": target} if target else None
    params = pipeline.resolve_parameters(project, conf, overrides)

    missing = [name for name in ("PACKAGE", "VERSION", "DEB_HOST_RUST_TYPE") if not params.get(name)]
    if missing:
        logger.error(f"Error: cannot name the bundle, missing {', '.join(missing)}.")
        logger.info("Set them in rustdeb.toml or pass --target.")
        sys.exit(1)

    output_dir = os.path.join(path, output) if not os.path.isabs(output) else output
    bundle = vendor_module.create_vendor_bundle(
        project.root,
        params["PACKAGE"],
        params["VERSION"],
        os.path.abspath(output_dir),
        params["DEB_HOST_RUST_TYPE"],
        reuse_vendor_dir=reuse,
        prune=prune,
        verbose=verbose,
    )
    logger.info(f"{len(bundle.crates)} crates in {os.path.basename(bundle.path)}")
