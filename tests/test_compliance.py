import asyncio
import json

import httpx
import pytest

from conftest import COMPLIANCE_URL, make_vc, mock_client
from gaiax_credentials.compliance import sign_credentials
from gaiax_credentials.exceptions import ComplianceRejectedError, RemoteRejection, TransportFailure

CREDENTIALS = [
    make_vc("https://example.com/participant.json"),
    make_vc("https://example.com/lrn.json", "gx:legalRegistrationNumber"),
    make_vc("https://example.com/tandc.json", "gx:GaiaXTermsAndConditions"),
    make_vc("https://example.com/service-offering.json", "gx:ServiceOffering"),
]


def test_sign_credentials_success(compliance_vc):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(201, json=compliance_vc)

    result = asyncio.run(sign_credentials(CREDENTIALS, COMPLIANCE_URL, client=mock_client(handler)))

    assert result.to_dict() == compliance_vc
    assert len(requests) == 1
    assert requests[0].method == "POST"
    assert str(requests[0].url) == COMPLIANCE_URL
    sent = json.loads(requests[0].content)
    assert sent["type"] == ["VerifiablePresentation"]
    assert [vc["id"] for vc in sent["verifiableCredential"]] == [vc["id"] for vc in CREDENTIALS]


def test_sign_credentials_remote_rejection():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(409, json={"error": "invalid"})

    with pytest.raises(ComplianceRejectedError) as exc_info:
        asyncio.run(sign_credentials(CREDENTIALS, COMPLIANCE_URL, client=mock_client(handler)))

    error = exc_info.value
    assert isinstance(error.reason, RemoteRejection)
    assert error.status_code == 409
    assert error.payload == {"error": "invalid"}
    assert '{"error": "invalid"}' in str(error)
    assert len(calls) == 1


def test_sign_credentials_non_json_rejection():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    with pytest.raises(ComplianceRejectedError) as exc_info:
        asyncio.run(sign_credentials(CREDENTIALS, COMPLIANCE_URL, client=mock_client(handler)))

    assert exc_info.value.payload == "Bad Gateway"


def test_sign_credentials_success_without_credential():
    """A 2xx answer that is not a credential is still a rejection."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"message": "accepted"})

    with pytest.raises(ComplianceRejectedError) as exc_info:
        asyncio.run(sign_credentials(CREDENTIALS, COMPLIANCE_URL, client=mock_client(handler)))

    assert exc_info.value.payload == {"message": "accepted"}
    assert exc_info.value.status_code == 200


def test_sign_credentials_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    with pytest.raises(ComplianceRejectedError) as exc_info:
        asyncio.run(sign_credentials(CREDENTIALS, COMPLIANCE_URL, client=mock_client(handler)))

    error = exc_info.value
    assert isinstance(error.reason, TransportFailure)
    assert isinstance(error.__cause__, httpx.ConnectError)
    assert error.status_code is None
    assert "Connection refused" in error.payload


def test_sign_credentials_timeout_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(ComplianceRejectedError) as exc_info:
        asyncio.run(sign_credentials(CREDENTIALS, COMPLIANCE_URL, client=mock_client(handler)))

    assert isinstance(exc_info.value.reason, TransportFailure)
