"""shoptrace CLI"""

import click

from shoptrace import __version__
from shoptrace.cli.config import config
from shoptrace.cli.demo import demo
from shoptrace.cli.validate import validate

from .debug import add_debug_option


@click.group()
@click.version_option(__version__, prog_name="shoptrace")
@click.pass_context
def cli(ctx):
    """
    shoptrace: session analytics and tracing for a simulated storefront.
    """
    ctx.ensure_object(dict)


cli.add_command(add_debug_option(demo))
cli.add_command(add_debug_option(validate))
cli.add_command(add_debug_option(config))
for _command in config.commands.values():
    add_debug_option(_command)

add_debug_option(cli)

if __name__ == "__main__":
    cli(obj={})
