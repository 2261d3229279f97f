import click
from .commands.config import config
from .commands.detect import detect
from .commands.doctor import doctor
from .commands.init import init
from .commands.list_recipes import list_recipes
from .commands.log import log
from .commands.render import render
from .commands.select import select
from .commands.vendor import vendor
from .commands.version import version


@click.group()
@click.option("--path", "-p", default=".", help="Path to the upstream project directory.")
@click.pass_context
def cli(ctx, path):
    """rustdeb: package Rust projects for Debian."""
    ctx.obj = {"path": path}

cli.add_command(init)
cli.add_command(detect)
cli.add_command(select)
cli.add_command(render)
cli.add_command(vendor)
cli.add_command(list_recipes)
cli.add_command(doctor)
cli.add_command(config)
cli.add_command(version)
cli.add_command(log)

if __name__ == '__main__':
    try:
        cli()
    except Exception as e:
        click.echo(f"An unexpected error occurred: {e}", err=True)
        click.echo("Please report this issue to the rustdeb developers.", err=True)
