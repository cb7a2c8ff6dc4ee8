import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Union


class GaiaxCredentialsError(Exception):
    """Base class for exceptions in the gaiax-credentials library."""
    pass


class ConfigIncompleteError(GaiaxCredentialsError):
    """Raised when a required setting is absent."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required settings: {', '.join(self.missing)}")


class SpecUnreachableError(GaiaxCredentialsError):
    """Raised when the OpenAPI document cannot be fetched or read."""
    pass


class SpecInvalidError(GaiaxCredentialsError):
    """Raised when the OpenAPI document lacks the fields needed to describe it."""
    pass


class RegistrationInvalidError(GaiaxCredentialsError):
    """Raised when a legal registration number is malformed or rejected by the notary."""

    def __init__(self, message: str, payload: Any = None):
        self.payload = payload
        if payload is not None:
            message = f"{message}: {_dump(payload)}"
        super().__init__(message)


class CredentialInvalidError(GaiaxCredentialsError):
    """Raised when a document handed to the pipeline is not a Verifiable Credential."""
    pass


class MissingResourceReferenceError(GaiaxCredentialsError):
    """Raised when a Service Offering has no resources to aggregate."""
    pass


class WriteFailedError(GaiaxCredentialsError):
    """Raised when a document cannot be written to the content store."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        super().__init__(f"Could not write {self.path}: {message}")


class ReadFailedError(GaiaxCredentialsError):
    """Raised when a document is missing from the content store or malformed."""

    def __init__(self, path: Union[str, Path], message: str):
        self.path = Path(path)
        super().__init__(f"Could not read {self.path}: {message}")


@dataclass(frozen=True)
class TransportFailure:
    """The compliance endpoint could not be reached or did not answer in time."""
    error: BaseException

    @property
    def payload(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


@dataclass(frozen=True)
class RemoteRejection:
    """The compliance endpoint answered, but not with a compliance credential."""
    status_code: int
    body: Any

    @property
    def payload(self) -> Any:
        return self.body


class ComplianceRejectedError(GaiaxCredentialsError):
    """Raised when the compliance authority declines the presentation or is unreachable.

    `reason` tells the two cases apart. `payload` is the remote error body, or a
    description of the transport error when no body is available. The original
    exception, if any, is chained as `__cause__`.
    """

    def __init__(self, reason: Union[TransportFailure, RemoteRejection]):
        self.reason = reason
        super().__init__(f"Error in Compliance API request: {_dump(self.payload)}")

    @property
    def payload(self) -> Any:
        return self.reason.payload

    @property
    def status_code(self) -> Optional[int]:
        if isinstance(self.reason, RemoteRejection):
            return self.reason.status_code
        return None


def _dump(payload: Any) -> str:
    try:
        return json.dumps(payload)
    except (TypeError, ValueError):
        return repr(payload)
