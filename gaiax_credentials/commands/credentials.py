import asyncio

import click

from gaiax_credentials.config import Settings
from gaiax_credentials.exceptions import GaiaxCredentialsError
from gaiax_credentials.pipeline import CredentialPipeline
from gaiax_credentials.utils import exit_with_error


@click.command("credentials")
@click.pass_obj
def credentials(settings: Settings):
    """Build the Verifiable Credentials"""
    click.echo(click.style("\nBuilding Verifiable Credentials", bold=True))
    click.echo("=" * 50)

    pipeline = CredentialPipeline(settings)
    try:
        result = asyncio.run(pipeline.build_credentials())
    except GaiaxCredentialsError as e:
        exit_with_error(e)

    for vc in result:
        click.echo(f'  {click.style(vc.credential_type or "?", fg="blue"):<45} {vc.id}')
    click.echo(click.style("Verifiable Credentials built and saved.", fg="green"))
