import json

import click

from gaiax_credentials.config import Settings
from gaiax_credentials.did import write_did_file
from gaiax_credentials.exceptions import GaiaxCredentialsError
from gaiax_credentials.utils import exit_with_error


@click.command("did")
@click.pass_obj
def did(settings: Settings):
    """Build the DID document that represents the identity of the participant

    The document publishes an Ed25519VerificationKey2020 key. The Gaia-X
    compliance service expects a JsonWebKey2020 key backed by an X.509
    certificate chain, so use this document for development only.
    """
    try:
        did_document_url = settings.url_for(settings.did_document_filename)
        did_document = write_did_file(settings)
    except GaiaxCredentialsError as e:
        exit_with_error(e)

    click.echo(click.style(f"Generated DID: {did_document.id}", fg="cyan"))
    click.echo("\nDID Document:")
    click.echo(json.dumps(did_document.to_dict(), indent=2))
    click.echo(click.style(f"DID Document saved to {settings.path_did_document}", fg="green"))
    click.echo(f"Ensure this document is accessible at: {did_document_url}")
