import asyncio

import click

from gaiax_credentials.config import Settings
from gaiax_credentials.exceptions import ComplianceRejectedError, GaiaxCredentialsError
from gaiax_credentials.pipeline import CredentialPipeline
from gaiax_credentials.utils import exit_with_error


@click.command("vp")
@click.pass_obj
def vp(settings: Settings):
    """Build and sign the VP"""
    click.echo(click.style("\nBuilding Verifiable Presentation", bold=True))
    click.echo("=" * 50)

    pipeline = CredentialPipeline(settings)
    try:
        vp_result = asyncio.run(pipeline.build_presentation())
    except ComplianceRejectedError as e:
        click.echo(click.style("Compliance error", fg="red"), err=True)
        exit_with_error(e)
    except GaiaxCredentialsError as e:
        exit_with_error(e)

    click.echo(click.style("Compliance success", fg="green"))
    click.echo(
        f"Verifiable Presentation with {len(vp_result.verifiableCredential)} credentials "
        f"saved to {settings.path_verifiable_presentation}"
    )
