from contextlib import asynccontextmanager
from typing import AsyncIterator, NamedTuple, Optional, Tuple

import httpx

from gaiax_credentials.compliance import sign_credentials
from gaiax_credentials.config import Settings
from gaiax_credentials.exceptions import ReadFailedError
from gaiax_credentials.logging import get_logger
from gaiax_credentials.models import ResourceDescriptor, VerifiableCredential, VerifiablePresentation
from gaiax_credentials.participant import (
    build_legal_registration_number_vc,
    build_participant_vc,
    build_terms_conditions_vc,
)
from gaiax_credentials.presentation import build_verifiable_presentation
from gaiax_credentials.service import (
    build_openapi_resources,
    build_service_offering,
    instantiated_virtual_resource_name,
    virtual_resource_name,
)
from gaiax_credentials.utils import dump_json, load_vc_from_file, save_vc, utc_now_iso, write_json

logger = get_logger(__name__)


class BuildResult(NamedTuple):
    participant: VerifiableCredential
    legal_registration_number: VerifiableCredential
    terms_conditions: VerifiableCredential
    virtual_resource: VerifiableCredential
    instantiated_virtual_resource: VerifiableCredential
    service_offering: VerifiableCredential


class CredentialPipeline:
    """Runs the two credential workflows against one settings value.

    Steps run one after the other; the first failure aborts the workflow and
    whatever was already written stays on disk.
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        issuance_date: Optional[str] = None,
    ):
        self.settings = settings
        self._client = client
        self._issuance_date = issuance_date

    @asynccontextmanager
    async def _http(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
            yield client

    def resource_descriptors(self) -> Tuple[ResourceDescriptor, ResourceDescriptor]:
        """Virtual and instantiated resource descriptors, re-derived from `openapi_spec`."""
        self.settings.require("openapi_spec", "base_url")
        openapi_spec = self.settings.openapi_spec
        return (
            self.settings.resource_descriptor(virtual_resource_name(openapi_spec)),
            self.settings.resource_descriptor(instantiated_virtual_resource_name(openapi_spec)),
        )

    async def build_credentials(self) -> BuildResult:
        """Builds and writes every base, resource and service offering credential."""
        settings = self.settings
        settings.require("base_url", "openapi_spec")
        issuance_date = self._issuance_date or utc_now_iso()

        async with self._http() as client:
            logger.info("Building Participant Verifiable Credential")
            vc_participant = build_participant_vc(settings, issuance_date=issuance_date)
            logger.debug(dump_json(vc_participant.to_dict()))
            save_vc(vc_participant, settings.path_participant)

            logger.info("Building Legal Registration Number Verifiable Credential")
            vc_lrn = await build_legal_registration_number_vc(settings, client=client, issuance_date=issuance_date)
            logger.debug(dump_json(vc_lrn.to_dict()))
            save_vc(vc_lrn, settings.path_lrn)

            logger.info("Building Terms and Conditions Verifiable Credential")
            vc_tc = build_terms_conditions_vc(settings, issuance_date=issuance_date)
            logger.debug(dump_json(vc_tc.to_dict()))
            save_vc(vc_tc, settings.path_terms_conditions)

            logger.info("Building Verifiable Credentials for Resources")
            virtual_resource, instantiated_resource = self.resource_descriptors()
            vc_vr, vc_ivr = await build_openapi_resources(
                openapi_location=settings.openapi_spec,
                did_issuer=settings.did,
                participant_url=settings.url_participant,
                virtual_resource=virtual_resource,
                instantiated_resource=instantiated_resource,
                client=client,
                issuance_date=issuance_date,
                resource_license=settings.resource_license,
                resource_policy=settings.resource_policy,
            )
            logger.debug(dump_json(vc_vr.to_dict()))
            logger.debug(dump_json(vc_ivr.to_dict()))

        logger.info("Building Verifiable Credential for Service Offering")
        vc_so = build_service_offering(
            did_issuer=settings.did,
            legal_participant_url=settings.url_participant,
            terms_conditions_path=settings.path_terms_conditions,
            terms_conditions_url=settings.url_terms_conditions,
            service_offering_url=settings.url_service_offering,
            aggregated_resource_urls=[virtual_resource.url],
            issuance_date=issuance_date,
        )
        logger.debug(dump_json(vc_so.to_dict()))
        save_vc(vc_so, settings.path_service_offering)

        return BuildResult(vc_participant, vc_lrn, vc_tc, vc_vr, vc_ivr, vc_so)

    def _load_resource(self, descriptor: ResourceDescriptor) -> VerifiableCredential:
        vc = load_vc_from_file(descriptor.write_path, expected_issuer=self.settings.did)
        if vc.id != descriptor.url:
            raise ReadFailedError(
                descriptor.write_path,
                f"credential id {vc.id!r} does not match {descriptor.url!r}; was the OpenAPI location changed?",
            )
        return vc

    async def build_presentation(self) -> VerifiablePresentation:
        """Reloads the credentials, has them signed and writes the final presentation."""
        settings = self.settings
        did = settings.did
        virtual_resource, instantiated_resource = self.resource_descriptors()

        logger.info("Loading Verifiable Credentials")
        vc_participant = load_vc_from_file(settings.path_participant, expected_issuer=did)
        # The notary, not the participant, may have issued this one
        vc_lrn = load_vc_from_file(settings.path_lrn)
        vc_tc = load_vc_from_file(settings.path_terms_conditions, expected_issuer=did)
        vc_so = load_vc_from_file(settings.path_service_offering, expected_issuer=did)
        vc_vr = self._load_resource(virtual_resource)
        vc_ivr = self._load_resource(instantiated_resource)

        verifiable_credentials = [vc_participant, vc_lrn, vc_tc, vc_so]

        async with self._http() as client:
            vc_compliance = await sign_credentials(
                verifiable_credentials,
                settings.compliance_api_url,
                client=client,
            )

        vp_result = build_verifiable_presentation([
            *verifiable_credentials,
            vc_compliance,
            vc_vr,
            vc_ivr,
        ])

        logger.info(f"Writing resulting Verifiable Presentation to {settings.path_verifiable_presentation}")
        write_json(settings.path_verifiable_presentation, vp_result.to_dict())
        return vp_result
