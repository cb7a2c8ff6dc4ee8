import json

import httpx
import pytest
import yaml

from gaiax_credentials.config import Settings

ISSUANCE_DATE = "2024-01-01T00:00:00.000Z"
BASE_URL = "https://example.com"
DID = "did:web:example.com"
COMPLIANCE_URL = "https://compliance.test/v1/api/credential-offers"

OPENAPI_DOCUMENT = {
    "openapi": "3.0.3",
    "info": {
        "title": "Weather API",
        "description": "Current weather observations",
        "version": "1.2.0",
        "license": {"name": "Apache-2.0"},
    },
    "servers": [
        {"url": "https://api.example.com/v1"},
        {"url": "https://backup.example.com/v1"},
    ],
    "paths": {},
}

COMPLIANCE_VC = {
    "@context": [
        "https://www.w3.org/2018/credentials/v1",
        "https://w3id.org/security/suites/jws-2020/v1",
    ],
    "type": ["VerifiableCredential"],
    "id": "https://compliance.test/credential-offers/1234",
    "issuer": "did:web:compliance.test",
    "issuanceDate": "2024-01-02T10:00:00.000Z",
    "expirationDate": "2024-04-01T10:00:00.000Z",
    "credentialSubject": [
        {
            "type": "gx:compliance",
            "id": "https://example.com/participant.json#cs",
            "gx:integrity": "sha256-abc",
        }
    ],
    "proof": {
        "type": "JsonWebSignature2020",
        "proofPurpose": "assertionMethod",
        "verificationMethod": "did:web:compliance.test#X509-JWK2020",
        "jws": "eyJhbGciOiJQUzI1NiJ9..sig",
    },
}


def make_vc(vc_id: str, credential_type: str = "gx:LegalParticipant", issuer: str = DID) -> dict:
    return {
        "@context": ["https://www.w3.org/2018/credentials/v1"],
        "type": ["VerifiableCredential", credential_type],
        "id": vc_id,
        "issuer": issuer,
        "issuanceDate": ISSUANCE_DATE,
        "credentialSubject": {"id": f"{vc_id}#cs", "type": credential_type},
    }


def mock_client(handler) -> httpx.AsyncClient:
    """An AsyncClient whose requests are answered by `handler` instead of the network."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def openapi_file(tmp_path):
    path = tmp_path / "openapi.yaml"
    path.write_text(yaml.safe_dump(OPENAPI_DOCUMENT))
    return path


@pytest.fixture
def settings_data(tmp_path, openapi_file):
    return {
        "base_url": BASE_URL,
        "webserver_dir": str(tmp_path / "public"),
        "key_file": str(tmp_path / "keys" / "did-key.json"),
        "compliance_api_url": COMPLIANCE_URL,
        "legal_name": "Example Corp S.L.",
        "headquarter_country_subdivision_code": "ES-O",
        "legal_address_country_subdivision_code": "ES-O",
        "registration_number_type": "vatID",
        "registration_number": "ESB12345678",
        "openapi_spec": str(openapi_file),
    }


@pytest.fixture
def settings(settings_data):
    return Settings(**settings_data)


@pytest.fixture
def config_file(tmp_path, settings_data):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(settings_data))
    return path


@pytest.fixture
def compliance_vc():
    return json.loads(json.dumps(COMPLIANCE_VC))
