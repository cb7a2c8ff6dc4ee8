from typing import Any, Iterable, Mapping, Union

from pydantic import ValidationError

from gaiax_credentials.exceptions import CredentialInvalidError
from gaiax_credentials.models import VerifiableCredential, VerifiablePresentation

CredentialLike = Union[VerifiableCredential, Mapping[str, Any]]


def _as_credential(vc: CredentialLike) -> VerifiableCredential:
    if isinstance(vc, VerifiableCredential):
        return vc
    try:
        return VerifiableCredential.from_dict(dict(vc))
    except ValidationError as e:
        raise CredentialInvalidError(f"Not a Verifiable Credential ({vc.get('id', 'no id')}): {e}") from e


def build_verifiable_presentation(credentials: Iterable[CredentialLike]) -> VerifiablePresentation:
    """Wraps credentials in a Verifiable Presentation, keeping their order.

    No identifier or timestamp is added, so the same input always gives the
    same presentation. Raw mappings are validated into `VerifiableCredential`.

    Raises:
        CredentialInvalidError: If a mapping is not a Verifiable Credential.
    """
    return VerifiablePresentation(verifiableCredential=[_as_credential(vc) for vc in credentials])
