import re
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from gaiax_credentials.config import Settings
from gaiax_credentials.exceptions import RegistrationInvalidError
from gaiax_credentials.logging import get_logger
from gaiax_credentials.models import CredentialType, VerifiableCredential
from gaiax_credentials.utils import response_body, sha256_hex, subject_id, utc_now_iso

logger = get_logger(__name__)

LRN_NOTARY_CONTEXT = (
    "https://registry.lab.gaia-x.eu/development/api/trusted-shape-registry/v1/shapes/jsonld/participant"
)

_REGISTRATION_PATTERNS = {
    "vatID": re.compile(r"^[A-Z]{2}(?=.*[0-9])[0-9A-Z+*]{2,13}$"),
    "leiCode": re.compile(r"^[0-9A-Z]{18}[0-9]{2}$"),
    "EORI": re.compile(r"^[A-Z]{2}[0-9A-Z]{1,15}$"),
    "EUID": re.compile(r"^[A-Z]{2}[0-9A-Z.\-]{2,}$"),
    "taxID": re.compile(r"^[0-9A-Z.\-/]{2,}$"),
}

# Types whose first two characters are an ISO 3166-1 country code
_COUNTRY_PREFIXED = {"vatID", "EORI"}


def _lei_checksum_ok(lei: str) -> bool:
    """ISO 17442 check digits: the number read in base 36 must be 1 modulo 97."""
    digits = "".join(str(int(char, 36)) for char in lei)
    return int(digits) % 97 == 1


def normalize_registration_number(number_type: str, raw: str) -> Dict[str, str]:
    """Validates a raw registration number and returns its claims.

    Separators are dropped (except for EUID and taxID, where they are part
    of the number) and letters are upper-cased before matching.

    Raises:
        RegistrationInvalidError: If the number does not fit its type.
    """
    if number_type not in _REGISTRATION_PATTERNS:
        raise RegistrationInvalidError(f"Unsupported registration number type '{number_type}'")

    value = raw.strip().upper()
    if number_type in ("EUID", "taxID"):
        value = re.sub(r"\s+", "", value)
    else:
        value = re.sub(r"[\s.\-]+", "", value)

    if not _REGISTRATION_PATTERNS[number_type].match(value):
        raise RegistrationInvalidError(f"Malformed {number_type} '{raw}'")
    if number_type == "leiCode" and not _lei_checksum_ok(value):
        raise RegistrationInvalidError(f"Invalid leiCode check digits in '{raw}'")

    claims = {f"gx:{number_type}": value}
    if number_type in _COUNTRY_PREFIXED:
        claims[f"gx:{number_type}-countryCode"] = value[:2]
    return claims


def build_participant_vc(settings: Settings, issuance_date: Optional[str] = None) -> VerifiableCredential:
    """Builds the Legal Participant credential that identifies the participant."""
    settings.require(
        "base_url",
        "legal_name",
        "headquarter_country_subdivision_code",
        "legal_address_country_subdivision_code",
    )

    credential_subject = {
        "id": subject_id(settings.url_participant),
        "type": CredentialType.LEGAL_PARTICIPANT.value,
        "gx:legalName": settings.legal_name,
        "gx:legalRegistrationNumber": {"id": subject_id(settings.url_lrn)},
        "gx:headquarterAddress": {
            "gx:countrySubdivisionCode": settings.headquarter_country_subdivision_code
        },
        "gx:legalAddress": {
            "gx:countrySubdivisionCode": settings.legal_address_country_subdivision_code
        },
    }

    return VerifiableCredential.build(
        credential_id=settings.url_participant,
        issuer_did=settings.did,
        credential_type=CredentialType.LEGAL_PARTICIPANT,
        credential_subject=credential_subject,
        issuance_date=issuance_date or utc_now_iso(),
    )


async def build_legal_registration_number_vc(
    settings: Settings,
    client: Optional[httpx.AsyncClient] = None,
    issuance_date: Optional[str] = None,
) -> VerifiableCredential:
    """Builds the Legal Registration Number credential.

    With `registration_notary_url` set, the notary checks the number and issues
    the credential; otherwise it is self-issued by the participant.
    """
    settings.require("base_url", "registration_number")

    claims = normalize_registration_number(settings.registration_number_type, settings.registration_number)
    lrn_subject_id = subject_id(settings.url_lrn)

    if settings.registration_notary_url:
        request_body = {
            "@context": [LRN_NOTARY_CONTEXT],
            "type": CredentialType.LEGAL_REGISTRATION_NUMBER.value,
            "id": lrn_subject_id,
            **claims,
        }
        if client is None:
            async with httpx.AsyncClient(timeout=settings.http_timeout) as own_client:
                return await _request_notary(own_client, settings, request_body)
        return await _request_notary(client, settings, request_body)

    credential_subject = {
        "id": lrn_subject_id,
        "type": CredentialType.LEGAL_REGISTRATION_NUMBER.value,
        **claims,
    }

    return VerifiableCredential.build(
        credential_id=settings.url_lrn,
        issuer_did=settings.did,
        credential_type=CredentialType.LEGAL_REGISTRATION_NUMBER,
        credential_subject=credential_subject,
        issuance_date=issuance_date or utc_now_iso(),
    )


async def _request_notary(
    client: httpx.AsyncClient, settings: Settings, request_body: Dict[str, Any]
) -> VerifiableCredential:
    logger.info(f"POST -> {settings.registration_notary_url}")
    try:
        response = await client.post(
            settings.registration_notary_url,
            params={"vcid": settings.url_lrn},
            json=request_body,
        )
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise RegistrationInvalidError(
            "Registration number notary unreachable", f"{type(e).__name__}: {e}"
        ) from e

    body = response_body(response)
    if not response.is_success:
        raise RegistrationInvalidError(f"Registration number rejected by notary (HTTP {response.status_code})", body)
    if not isinstance(body, dict):
        raise RegistrationInvalidError("Registration number notary returned no credential", body)
    try:
        return VerifiableCredential.from_dict(body)
    except ValidationError as e:
        raise RegistrationInvalidError("Registration number notary returned no credential", body) from e


def build_terms_conditions_vc(settings: Settings, issuance_date: Optional[str] = None) -> VerifiableCredential:
    """Builds the Gaia-X Terms and Conditions credential.

    The subject depends only on the terms text, so it is identical across runs.
    """
    settings.require("base_url", "terms_and_conditions")

    credential_subject = {
        "id": subject_id(settings.url_terms_conditions),
        "type": CredentialType.TERMS_AND_CONDITIONS.value,
        "gx:termsAndConditions": settings.terms_and_conditions,
        "gx:hash": sha256_hex(settings.terms_and_conditions),
    }

    return VerifiableCredential.build(
        credential_id=settings.url_terms_conditions,
        issuer_did=settings.did,
        credential_type=CredentialType.TERMS_AND_CONDITIONS,
        credential_subject=credential_subject,
        issuance_date=issuance_date or utc_now_iso(),
    )
