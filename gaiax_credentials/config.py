from pathlib import Path
from typing import Literal, Optional, Tuple, Type, Union
from urllib.parse import urlparse

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from gaiax_credentials.exceptions import ConfigIncompleteError
from gaiax_credentials.models import ResourceDescriptor
from gaiax_credentials.utils import join_url

"""
Manages application settings using Pydantic Settings.

This module defines the `Settings` class, which loads configuration from environment variables,
.env files, and a YAML configuration file (`config.yaml` in the working directory by default).
Settings are frozen: `load_settings()` builds one value per invocation and it is handed
explicitly to every component that needs it.
"""

GAIAX_TERMS_AND_CONDITIONS = (
    "The PARTICIPANT signing the Self-Descriptions agrees as follows:\n"
    "- to update its descriptions about any changes, be it technical, organizational, or legal "
    "- especially but not limited to contractual in regards to the indicated attributes present "
    "in the descriptions.\n\n"
    "The keypair used to sign Verifiable Credentials will be revoked where Gaia-X Association "
    "becomes aware of any inaccurate statements in regards to the claims which result in a "
    "non-compliance with the Trust Framework and policy rules defined in the Policy Rules and "
    "Labelling Document (PRLD)."
)

RegistrationNumberType = Literal["vatID", "leiCode", "EORI", "EUID", "taxID"]


class Settings(BaseSettings):
    """
    Application settings model.

    Defines all configurable parameters for the credential pipeline, their default values,
    and validation rules. Settings are loaded from multiple sources with a defined priority
    (see `settings_customise_sources`).
    """
    # Application metadata
    app_name: str = Field(default="gaiax_credentials", description="Application name, used as the root logger name.")

    # Operational settings
    log_level: str = Field(default="INFO", description="Logging level (e.g., DEBUG, INFO, WARNING, ERROR, CRITICAL).")
    log_format: str = Field(
        default="text",
        description="Log format. Supported values: 'json' for structured JSON logs, 'text' for plain text logs."
    )
    http_timeout: float = Field(default=30.0, description="Timeout in seconds for every outgoing HTTP request.")

    # Identity and publishing
    base_url: Optional[str] = Field(
        default=None,
        description="Public base URL where the documents in `webserver_dir` are served (e.g. 'https://example.com')."
    )
    did_web_id: Optional[str] = Field(
        default=None,
        description="did:web identifier of the participant. Derived from `base_url` when not set."
    )
    webserver_dir: Path = Field(default=Path("public"), description="Local directory published at `base_url`.")
    key_file: Path = Field(default=Path("keys/did-key.json"), description="Ed25519 key backing the DID document.")

    # Remote services
    compliance_api_url: str = Field(
        default="https://compliance.lab.gaia-x.eu/v1/api/credential-offers",
        description="Gaia-X compliance endpoint that signs the Verifiable Presentation."
    )
    registration_notary_url: Optional[str] = Field(
        default=None,
        description="Gaia-X registration number notary. When unset the LRN credential is self-issued."
    )

    # Participant
    legal_name: Optional[str] = Field(default=None, description="Registered legal name of the participant.")
    headquarter_country_subdivision_code: Optional[str] = Field(default=None, description="ISO 3166-2 code, e.g. 'ES-O'.")
    legal_address_country_subdivision_code: Optional[str] = Field(default=None, description="ISO 3166-2 code, e.g. 'ES-O'.")
    registration_number_type: RegistrationNumberType = Field(default="vatID", description="Kind of legal registration number.")
    registration_number: Optional[str] = Field(default=None, description="Raw legal registration number.")
    terms_and_conditions: str = Field(default=GAIAX_TERMS_AND_CONDITIONS, description="Gaia-X terms and conditions text.")

    # Service
    openapi_spec: Optional[str] = Field(default=None, description="URL or local path of the OpenAPI document of the service.")
    resource_license: str = Field(default="EPL-2.0", description="License used when the OpenAPI document declares none.")
    resource_policy: str = Field(default="default: allow", description="Usage policy attached to the resources.")

    # File names inside `webserver_dir`
    participant_filename: str = "participant.json"
    lrn_filename: str = "lrn.json"
    terms_conditions_filename: str = "tandc.json"
    service_offering_filename: str = "service-offering.json"
    verifiable_presentation_filename: str = "vp.json"
    did_document_filename: str = ".well-known/did.json"

    model_config = SettingsConfigDict(
        env_prefix="GAIAX_", # Prefix for environment variables (e.g., GAIAX_BASE_URL)
        extra="ignore",
        frozen=True,
        validate_default=True,
        yaml_file=Path("config.yaml"),
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """
        Customizes the priority of settings sources.

        The order defines the override precedence (earlier sources win):
        1. `init_settings`: Values provided during `Settings` initialization.
        2. `env_settings`: Environment variables (e.g., `GAIAX_BASE_URL`).
        3. `dotenv_settings`: Variables loaded from a `.env` file.
        4. `YamlConfigSettingsSource`: Variables loaded from the YAML file in `model_config`.
        5. `file_secret_settings`: Settings loaded from secret files.
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def require(self, *names: str) -> None:
        """Raises `ConfigIncompleteError` listing every named setting that is unset or blank."""
        missing = []
        for name in names:
            value = getattr(self, name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)
        if missing:
            raise ConfigIncompleteError(missing)

    @property
    def did(self) -> str:
        """The participant DID, explicit or derived from `base_url` (did:web method)."""
        if self.did_web_id:
            return self.did_web_id
        self.require("base_url")
        parsed = urlparse(self.base_url)
        did = "did:web:" + parsed.netloc.replace(":", "%3A")
        segments = [segment for segment in parsed.path.split("/") if segment]
        if segments:
            did += ":" + ":".join(segments)
        return did

    def url_for(self, filename: str) -> str:
        self.require("base_url")
        return join_url(self.base_url, filename)

    def path_for(self, filename: str) -> Path:
        return self.webserver_dir / filename

    @property
    def path_participant(self) -> Path:
        return self.path_for(self.participant_filename)

    @property
    def url_participant(self) -> str:
        return self.url_for(self.participant_filename)

    @property
    def path_lrn(self) -> Path:
        return self.path_for(self.lrn_filename)

    @property
    def url_lrn(self) -> str:
        return self.url_for(self.lrn_filename)

    @property
    def path_terms_conditions(self) -> Path:
        return self.path_for(self.terms_conditions_filename)

    @property
    def url_terms_conditions(self) -> str:
        return self.url_for(self.terms_conditions_filename)

    @property
    def path_service_offering(self) -> Path:
        return self.path_for(self.service_offering_filename)

    @property
    def url_service_offering(self) -> str:
        return self.url_for(self.service_offering_filename)

    @property
    def path_verifiable_presentation(self) -> Path:
        return self.path_for(self.verifiable_presentation_filename)

    @property
    def path_did_document(self) -> Path:
        return self.path_for(self.did_document_filename)

    def resource_descriptor(self, name: str) -> ResourceDescriptor:
        """Where the resource credential called `name` is written and published."""
        filename = f"{name}.json"
        return ResourceDescriptor(name=name, write_path=self.path_for(filename), url=self.url_for(filename))


def load_settings(config_file: Optional[Union[str, Path]] = None, **overrides) -> Settings:
    """Builds the settings value for one invocation, optionally reading another YAML file."""
    if config_file is None:
        return Settings(**overrides)

    class FileSettings(Settings):
        model_config = SettingsConfigDict(yaml_file=Path(config_file))

    return FileSettings(**overrides)
