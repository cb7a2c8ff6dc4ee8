from typing import Iterable, Optional

import httpx
from pydantic import ValidationError

from gaiax_credentials.exceptions import ComplianceRejectedError, RemoteRejection, TransportFailure
from gaiax_credentials.logging import get_logger
from gaiax_credentials.models import VerifiableCredential, VerifiablePresentation
from gaiax_credentials.presentation import CredentialLike, build_verifiable_presentation
from gaiax_credentials.utils import dump_json, response_body

logger = get_logger(__name__)


async def sign_credentials(
    credentials: Iterable[CredentialLike],
    compliance_url: str,
    client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0,
) -> VerifiableCredential:
    """Submits the credentials to the compliance authority and returns the compliance VC.

    Exactly one request is made. Any transport error or answer other than a
    successful credential raises `ComplianceRejectedError`.
    """
    verifiable_presentation = build_verifiable_presentation(credentials)

    logger.info("Sending Verifiable Presentation to Compliance API")
    logger.info(f"POST -> {compliance_url}")
    logger.debug(dump_json(verifiable_presentation.to_dict()))

    if client is None:
        async with httpx.AsyncClient(timeout=timeout) as own_client:
            return await _submit(own_client, compliance_url, verifiable_presentation)
    return await _submit(client, compliance_url, verifiable_presentation)


async def _submit(
    client: httpx.AsyncClient,
    compliance_url: str,
    verifiable_presentation: VerifiablePresentation,
) -> VerifiableCredential:
    try:
        response = await client.post(compliance_url, json=verifiable_presentation.to_dict())
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.error(f"Compliance error: {type(e).__name__}: {e}")
        raise ComplianceRejectedError(TransportFailure(e)) from e

    body = response_body(response)
    if not response.is_success:
        logger.error(f"Compliance error: HTTP {response.status_code}")
        logger.error(body)
        raise ComplianceRejectedError(RemoteRejection(response.status_code, body))

    if not isinstance(body, dict):
        logger.error("Compliance error: response is not a JSON object")
        raise ComplianceRejectedError(RemoteRejection(response.status_code, body))

    try:
        compliance_vc = VerifiableCredential.from_dict(body)
    except ValidationError as e:
        logger.error(f"Compliance error: response is not a Verifiable Credential: {e}")
        raise ComplianceRejectedError(RemoteRejection(response.status_code, body)) from e

    logger.info("Compliance success")
    logger.debug(dump_json(compliance_vc.to_dict()))
    return compliance_vc
