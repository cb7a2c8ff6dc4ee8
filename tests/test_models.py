import pytest
from pydantic import ValidationError

from conftest import COMPLIANCE_VC, make_vc
from gaiax_credentials.models import CREDENTIAL_CONTEXT, CredentialType, VerifiableCredential


def test_from_dict_keeps_every_field():
    """Extra fields such as `proof` survive a load and dump."""
    vc = VerifiableCredential.from_dict(COMPLIANCE_VC)

    assert vc.to_dict() == COMPLIANCE_VC
    assert vc.proof["type"] == "JsonWebSignature2020"


def test_from_dict_requires_core_fields():
    data = make_vc("https://example.com/participant.json")
    del data["issuer"]

    with pytest.raises(ValidationError):
        VerifiableCredential.from_dict(data)


def test_from_dict_requires_verifiable_credential_type():
    data = make_vc("https://example.com/participant.json")
    data["type"] = ["VerifiablePresentation"]

    with pytest.raises(ValidationError):
        VerifiableCredential.from_dict(data)


def test_id_is_immutable():
    vc = VerifiableCredential.from_dict(make_vc("https://example.com/participant.json"))

    with pytest.raises(ValidationError):
        vc.id = "https://example.com/other.json"


def test_credential_type_from_type_or_subject():
    participant = VerifiableCredential.from_dict(make_vc("https://example.com/participant.json"))
    compliance = VerifiableCredential.from_dict(COMPLIANCE_VC)

    assert participant.credential_type == "gx:LegalParticipant"
    assert compliance.credential_type == "gx:compliance"


def test_build_uses_gaiax_context():
    vc = VerifiableCredential.build(
        credential_id="https://example.com/tandc.json",
        issuer_did="did:web:example.com",
        credential_type=CredentialType.TERMS_AND_CONDITIONS,
        credential_subject={"id": "https://example.com/tandc.json#cs"},
        issuance_date="2024-01-01T00:00:00.000Z",
    )

    data = vc.to_dict()
    assert data["@context"] == CREDENTIAL_CONTEXT
    assert data["type"] == ["VerifiableCredential", "gx:GaiaXTermsAndConditions"]
    assert data["issuer"] == "did:web:example.com"
    assert list(data)[:6] == ["@context", "type", "id", "issuer", "issuanceDate", "credentialSubject"]
