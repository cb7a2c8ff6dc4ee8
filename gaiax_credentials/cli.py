from typing import Optional

import click
from pydantic import ValidationError

from gaiax_credentials.commands.credentials import credentials
from gaiax_credentials.commands.did import did
from gaiax_credentials.commands.vp import vp
from gaiax_credentials.config import load_settings
from gaiax_credentials.logging import configure_logging


@click.group()
@click.version_option("0.1.0", prog_name="gaiax-credentials")
@click.option(
    "--config",
    "config_file",
    envvar="GAIAX_CONFIG_FILE",
    type=click.Path(exists=True, dir_okay=False, readable=True),
    help="YAML configuration file (defaults to ./config.yaml).",
)
@click.option("--log-level", help="Override the configured logging level.")
@click.pass_context
def cli(ctx: click.Context, config_file: Optional[str], log_level: Optional[str]):
    """CLI to help in the process of building and signing Gaia-X credentials"""
    overrides = {"log_level": log_level} if log_level else {}
    try:
        settings = load_settings(config_file, **overrides)
    except ValidationError as e:
        click.echo(click.style(f"Error: invalid configuration: {e}", fg="red"), err=True)
        ctx.exit(1)
    configure_logging(settings)
    ctx.obj = settings


cli.add_command(did)
cli.add_command(credentials)
cli.add_command(vp)


if __name__ == "__main__":
    cli()
