import json
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

import httpx
import yaml

from gaiax_credentials.exceptions import (
    MissingResourceReferenceError,
    ReadFailedError,
    SpecInvalidError,
    SpecUnreachableError,
)
from gaiax_credentials.logging import get_logger
from gaiax_credentials.models import (
    CredentialType,
    OpenAPIDocument,
    ResourceDescriptor,
    VerifiableCredential,
)
from gaiax_credentials.utils import save_vc, sha256_hex, subject_id, utc_now_iso

logger = get_logger(__name__)

VIRTUAL_RESOURCE_PREFIX = "virtual-resource"
INSTANTIATED_VIRTUAL_RESOURCE_PREFIX = "instantiated-virtual-resource"


class OpenAPIResources(NamedTuple):
    virtual_resource: VerifiableCredential
    instantiated_virtual_resource: VerifiableCredential


def _openapi_digest(openapi_spec: str) -> str:
    return sha256_hex(openapi_spec.strip())[:16]


def virtual_resource_name(openapi_spec: str) -> str:
    """Name of the virtual resource credential, derived from the OpenAPI location only."""
    return f"{VIRTUAL_RESOURCE_PREFIX}-{_openapi_digest(openapi_spec)}"


def instantiated_virtual_resource_name(openapi_spec: str) -> str:
    """Name of the instantiated virtual resource credential, derived from the OpenAPI location only."""
    return f"{INSTANTIATED_VIRTUAL_RESOURCE_PREFIX}-{_openapi_digest(openapi_spec)}"


def _is_url(location: str) -> bool:
    return location.startswith("http://") or location.startswith("https://")


async def _fetch_text(location: str, client: Optional[httpx.AsyncClient], timeout: float) -> str:
    if not _is_url(location):
        try:
            return Path(location).read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise SpecInvalidError(f"OpenAPI document {location} is not UTF-8: {e}") from e
        except OSError as e:
            raise SpecUnreachableError(f"Could not read OpenAPI document {location}: {e}") from e

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout) as own_client:
                response = await own_client.get(location)
        else:
            response = await client.get(location)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise SpecUnreachableError(
            f"Error fetching OpenAPI document from {location}: HTTP {e.response.status_code}"
        ) from e
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise SpecUnreachableError(f"Error fetching OpenAPI document from {location}: {e}") from e
    return response.text


def _servers(document: Dict[str, Any]) -> List[str]:
    servers = document.get("servers")
    if isinstance(servers, list):
        return [server["url"] for server in servers if isinstance(server, dict) and server.get("url")]

    # Swagger 2.0
    host = document.get("host")
    if not host:
        return []
    schemes = document.get("schemes") or ["https"]
    base_path = document.get("basePath", "")
    return [f"{scheme}://{host}{base_path}" for scheme in schemes]


def parse_openapi_spec(location: str, text: str) -> OpenAPIDocument:
    """Extracts the fields used to describe the service from an OpenAPI (or Swagger) document."""
    try:
        # YAML rejects tab indentation, which JSON allows
        if text.lstrip().startswith("{"):
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise SpecInvalidError(f"OpenAPI document {location} is neither JSON nor YAML: {e}") from e

    if not isinstance(document, dict) or not ("openapi" in document or "swagger" in document):
        raise SpecInvalidError(f"{location} is not an OpenAPI document")

    info = document.get("info")
    if not isinstance(info, dict):
        raise SpecInvalidError(f"OpenAPI document {location} has no 'info' section")

    missing = [field for field in ("title", "version") if info.get(field) in (None, "")]
    if missing:
        raise SpecInvalidError(f"OpenAPI document {location} is missing info.{', info.'.join(missing)}")

    license_info = info.get("license")
    license_name = None
    if isinstance(license_info, dict):
        license_name = license_info.get("identifier") or license_info.get("name")

    return OpenAPIDocument(
        location=location,
        title=str(info["title"]),
        version=str(info["version"]),
        description=info.get("description"),
        license=license_name,
        servers=_servers(document),
    )


async def load_openapi_spec(
    location: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0,
) -> OpenAPIDocument:
    """Fetches (URL) or reads (path) an OpenAPI document and parses it."""
    logger.info(f"Loading OpenAPI document from {location}")
    text = await _fetch_text(location, client, timeout)
    return parse_openapi_spec(location, text)


async def build_openapi_resources(
    openapi_location: str,
    did_issuer: str,
    participant_url: str,
    virtual_resource: ResourceDescriptor,
    instantiated_resource: ResourceDescriptor,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0,
    issuance_date: Optional[str] = None,
    resource_license: str = "EPL-2.0",
    resource_policy: str = "default: allow",
) -> OpenAPIResources:
    """Describes the service behind an OpenAPI document as two resource credentials.

    The virtual resource is the capability the API offers; the instantiated
    virtual resource is its deployment, pointing back to the former. Both are
    written to their descriptors' write paths before being returned.

    Raises:
        SpecUnreachableError: The document could not be fetched or read.
        SpecInvalidError: The document lacks the fields needed to describe it.
        WriteFailedError: A credential could not be written.
    """
    openapi = await load_openapi_spec(openapi_location, client=client, timeout=timeout)
    issuance_date = issuance_date or utc_now_iso()
    specification = {"gx:URL": openapi.location}

    virtual_subject = {
        "id": subject_id(virtual_resource.url),
        "type": CredentialType.VIRTUAL_RESOURCE.value,
        "gx:name": openapi.title,
        "gx:version": openapi.version,
        "gx:copyrightOwnedBy": did_issuer,
        "gx:license": [openapi.license or resource_license],
        "gx:policy": [resource_policy],
        "gx:specification": specification,
    }
    if openapi.description:
        virtual_subject["gx:description"] = openapi.description

    instantiated_subject = {
        "id": subject_id(instantiated_resource.url),
        "type": CredentialType.INSTANTIATED_VIRTUAL_RESOURCE.value,
        "gx:name": openapi.title,
        "gx:version": openapi.version,
        "gx:instanceOf": {"id": subject_id(virtual_resource.url)},
        "gx:maintainedBy": {"id": subject_id(participant_url)},
        "gx:tenantOwnedBy": {"id": subject_id(participant_url)},
        "gx:serviceAccessPoint": [{"gx:URL": server} for server in openapi.servers],
        "gx:specification": specification,
    }

    vc_virtual = VerifiableCredential.build(
        credential_id=virtual_resource.url,
        issuer_did=did_issuer,
        credential_type=CredentialType.VIRTUAL_RESOURCE,
        credential_subject=virtual_subject,
        issuance_date=issuance_date,
    )

    vc_instantiated = VerifiableCredential.build(
        credential_id=instantiated_resource.url,
        issuer_did=did_issuer,
        credential_type=CredentialType.INSTANTIATED_VIRTUAL_RESOURCE,
        credential_subject=instantiated_subject,
        issuance_date=issuance_date,
    )

    save_vc(vc_virtual, virtual_resource.write_path)
    logger.info(f"Virtual resource written to {virtual_resource.write_path}")
    save_vc(vc_instantiated, instantiated_resource.write_path)
    logger.info(f"Instantiated virtual resource written to {instantiated_resource.write_path}")

    return OpenAPIResources(vc_virtual, vc_instantiated)


def build_service_offering(
    did_issuer: str,
    legal_participant_url: str,
    terms_conditions_path: Union[str, Path],
    terms_conditions_url: str,
    service_offering_url: str,
    aggregated_resource_urls: Sequence[str],
    issuance_date: Optional[str] = None,
) -> VerifiableCredential:
    """Builds the Service Offering credential aggregating the given resources.

    `gx:aggregationOf` lists `aggregated_resource_urls` as given, in order.
    The terms and conditions are referenced by URL and by the SHA-256 of the
    document stored at `terms_conditions_path`.
    """
    if not aggregated_resource_urls:
        raise MissingResourceReferenceError("A Service Offering must aggregate at least one resource")

    terms_conditions_path = Path(terms_conditions_path)
    try:
        terms_conditions_hash = sha256_hex(terms_conditions_path.read_bytes())
    except OSError as e:
        raise ReadFailedError(terms_conditions_path, str(e)) from e

    credential_subject = {
        "id": subject_id(service_offering_url),
        "type": CredentialType.SERVICE_OFFERING.value,
        "gx:providedBy": {"id": subject_id(legal_participant_url)},
        "gx:policy": "",
        "gx:termsAndConditions": {
            "gx:URL": terms_conditions_url,
            "gx:hash": terms_conditions_hash,
        },
        "gx:dataAccountExport": {
            "gx:requestType": "API",
            "gx:accessType": "digital",
            "gx:formatType": "application/json",
        },
        "gx:aggregationOf": [{"id": url} for url in aggregated_resource_urls],
    }

    return VerifiableCredential.build(
        credential_id=service_offering_url,
        issuer_did=did_issuer,
        credential_type=CredentialType.SERVICE_OFFERING,
        credential_subject=credential_subject,
        issuance_date=issuance_date or utc_now_iso(),
    )
