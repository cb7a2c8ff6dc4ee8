import hashlib
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, NoReturn, Optional, Union

import click
import httpx
from pydantic import ValidationError

from gaiax_credentials.exceptions import GaiaxCredentialsError, ReadFailedError, WriteFailedError
from gaiax_credentials.logging import get_logger
from gaiax_credentials.models import VerifiableCredential

logger = get_logger(__name__)


def join_url(base: str, *parts: str) -> str:
    """Joins path segments onto a base URL without doubling or dropping slashes."""
    url = base.rstrip("/")
    for part in parts:
        part = part.strip("/")
        if part:
            url = f"{url}/{part}"
    return url


def subject_id(credential_url: str) -> str:
    """Identifier of the subject described by the credential published at `credential_url`."""
    return f"{credential_url}#cs"


def sha256_hex(data: Union[str, bytes]) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.sha256(data).hexdigest()


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_json(path: Union[str, Path], data: Any) -> Path:
    """Writes `data` as indented JSON, creating parent directories as needed."""
    path = Path(path)
    try:
        content = dump_json(data)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except (TypeError, ValueError) as e:
        raise WriteFailedError(path, f"document is not JSON serializable: {e}") from e
    except OSError as e:
        raise WriteFailedError(path, str(e)) from e
    logger.debug(f"Wrote {path}")
    return path


def read_json(path: Union[str, Path]) -> Any:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ReadFailedError(path, "file not found") from e
    except UnicodeDecodeError as e:
        raise ReadFailedError(path, "not UTF-8") from e
    except json.JSONDecodeError as e:
        raise ReadFailedError(path, f"invalid JSON: {e}") from e
    except OSError as e:
        raise ReadFailedError(path, str(e)) from e


def save_vc(vc: VerifiableCredential, path: Union[str, Path]) -> Path:
    """Saves a Verifiable Credential to a JSON file."""
    return write_json(path, vc.to_dict())


def load_vc_from_file(path: Union[str, Path], expected_issuer: Optional[str] = None) -> VerifiableCredential:
    """Loads a Verifiable Credential from a JSON file.

    When `expected_issuer` is given the credential must have been issued by it.
    """
    data = read_json(path)
    if not isinstance(data, dict):
        raise ReadFailedError(path, "document is not a JSON object")
    try:
        vc = VerifiableCredential.from_dict(data)
    except ValidationError as e:
        raise ReadFailedError(path, f"not a valid Verifiable Credential: {e}") from e
    if expected_issuer is not None and vc.issuer_id != expected_issuer:
        raise ReadFailedError(path, f"issuer {vc.issuer_id!r} does not match {expected_issuer!r}")
    return vc


def response_body(response: httpx.Response) -> Any:
    """Decoded JSON body of a response, or its raw text when it is not JSON."""
    try:
        return response.json()
    except ValueError:
        return response.text


def exit_with_error(error: GaiaxCredentialsError) -> NoReturn:
    """Logs a pipeline error with its full diagnostic payload and exits with status 1."""
    logger.error(f"{type(error).__name__}: {error}", exc_info=error)
    click.echo(click.style(f"Error: {error}", fg="red"), err=True)
    sys.exit(1)
