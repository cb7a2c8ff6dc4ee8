from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

W3C_CREDENTIALS_CONTEXT = "https://www.w3.org/2018/credentials/v1"
JWS_2020_CONTEXT = "https://w3id.org/security/suites/jws-2020/v1"
GAIAX_TRUSTFRAMEWORK_CONTEXT = (
    "https://registry.lab.gaia-x.eu/development/api/trusted-shape-registry/v1/shapes/jsonld/trustframework#"
)
CREDENTIAL_CONTEXT = [W3C_CREDENTIALS_CONTEXT, JWS_2020_CONTEXT, GAIAX_TRUSTFRAMEWORK_CONTEXT]


class CredentialType(str, Enum):
    LEGAL_PARTICIPANT = "gx:LegalParticipant"
    LEGAL_REGISTRATION_NUMBER = "gx:legalRegistrationNumber"
    TERMS_AND_CONDITIONS = "gx:GaiaXTermsAndConditions"
    SERVICE_OFFERING = "gx:ServiceOffering"
    VIRTUAL_RESOURCE = "gx:VirtualResource"
    INSTANTIATED_VIRTUAL_RESOURCE = "gx:InstantiatedVirtualResource"
    COMPLIANCE = "gx:compliance"


# === Credential Models ===

class VerifiableCredential(BaseModel):
    """A JSON-LD shaped Verifiable Credential.

    Frozen so the `id` cannot change once assigned. Fields outside the core
    set (`proof`, `expirationDate`, ...) are kept as extras and written back
    untouched by `to_dict`.
    """
    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    context: List[Union[str, Dict[str, Any]]] = Field(..., alias="@context")
    type: Union[str, List[str]]
    id: str
    issuer: Union[str, Dict[str, Any]]
    issuanceDate: str
    credentialSubject: Union[Dict[str, Any], List[Dict[str, Any]]]

    @field_validator("type")
    @classmethod
    def _must_be_credential(cls, value):
        types = [value] if isinstance(value, str) else value
        if "VerifiableCredential" not in types:
            raise ValueError("type must include 'VerifiableCredential'")
        return value

    @property
    def types(self) -> List[str]:
        return [self.type] if isinstance(self.type, str) else list(self.type)

    @property
    def issuer_id(self) -> str:
        if isinstance(self.issuer, dict):
            return self.issuer.get("id", "")
        return self.issuer

    @property
    def credential_type(self) -> Optional[str]:
        """The domain type, taken from `type` or, failing that, from the subject."""
        for item in self.types:
            if item != "VerifiableCredential":
                return item
        subjects = self.credentialSubject if isinstance(self.credentialSubject, list) else [self.credentialSubject]
        for subject in subjects:
            subject_type = subject.get("type")
            if isinstance(subject_type, str):
                return subject_type
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VerifiableCredential":
        return cls.model_validate(data)

    @classmethod
    def build(
        cls,
        credential_id: str,
        issuer_did: str,
        credential_type: CredentialType,
        credential_subject: Dict[str, Any],
        issuance_date: str,
        contexts: Optional[List[str]] = None,
    ) -> "VerifiableCredential":
        """Assembles a credential of one of the known domain types."""
        return cls.model_validate({
            "@context": list(contexts or CREDENTIAL_CONTEXT),
            "type": ["VerifiableCredential", CredentialType(credential_type).value],
            "id": credential_id,
            "issuer": issuer_did,
            "issuanceDate": issuance_date,
            "credentialSubject": credential_subject,
        })

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class VerifiablePresentation(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    context: List[str] = Field(default_factory=lambda: [W3C_CREDENTIALS_CONTEXT], alias="@context")
    type: List[str] = Field(default_factory=lambda: ["VerifiablePresentation"])
    verifiableCredential: List[VerifiableCredential]

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# === Resource Models ===

class ResourceDescriptor(BaseModel):
    """Name, local write path and public URL of a resource credential."""
    model_config = ConfigDict(frozen=True)

    name: str
    write_path: Path
    url: str


class OpenAPIDocument(BaseModel):
    """The part of an OpenAPI document used to describe the service."""
    location: str
    title: str
    version: str
    description: Optional[str] = None
    license: Optional[str] = None
    servers: List[str] = []

# === DID Document Models ===

class VerificationMethod(BaseModel):
    id: str
    type: str
    controller: str
    publicKeyMultibase: str

class DIDDocument(BaseModel):
    context: List[str] = Field(..., alias='@context')
    id: str
    verificationMethod: List[VerificationMethod]
    authentication: List[str]
    assertionMethod: List[str]

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
