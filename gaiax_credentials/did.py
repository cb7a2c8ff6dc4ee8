from pathlib import Path
from typing import Union

import base58
from nacl.exceptions import CryptoError
from nacl.signing import SigningKey, VerifyKey

from gaiax_credentials.config import Settings
from gaiax_credentials.exceptions import ReadFailedError
from gaiax_credentials.logging import get_logger
from gaiax_credentials.models import DIDDocument, VerificationMethod
from gaiax_credentials.utils import read_json, write_json

logger = get_logger(__name__)

DID_CONTEXT = [
    "https://www.w3.org/ns/did/v1",
    "https://w3id.org/security/suites/ed25519-2020/v1",
]

# Multicodec prefix for an Ed25519 public key (0xed varint)
ED25519_PUB_PREFIX = bytes([0xed, 0x01])


def get_public_key_multibase(verify_key: VerifyKey) -> str:
    """Encodes an Ed25519 public key as multibase (base58btc, 'z' prefix) with its multicodec prefix."""
    return "z" + base58.b58encode(ED25519_PUB_PREFIX + bytes(verify_key)).decode("ascii")


def prepare_issuer_key_file_data(did: str, signing_key: SigningKey, verification_method: str) -> dict:
    """Prepares the dictionary for an issuer key file."""
    return {
        "did": did,
        "publicKeyMultibase": get_public_key_multibase(signing_key.verify_key),
        "privateKeyMultibase": base58.b58encode(bytes(signing_key)).decode("ascii"),
        "verificationMethod": verification_method,
    }


def load_signing_key_from_file(key_file_path: Union[str, Path]) -> SigningKey:
    """Loads a signing key from an issuer key JSON file."""
    key_data = read_json(key_file_path)
    private_key = key_data.get("privateKeyMultibase") if isinstance(key_data, dict) else None
    if not private_key:
        raise ReadFailedError(key_file_path, "privateKeyMultibase not found")
    try:
        return SigningKey(base58.b58decode(private_key))
    except (ValueError, CryptoError) as e:
        raise ReadFailedError(key_file_path, f"invalid privateKeyMultibase: {e}") from e


def build_did_document(did: str, verify_key: VerifyKey) -> DIDDocument:
    """Builds the did:web document publishing `verify_key` as the participant's key."""
    key_id = f"{did}#key-1"
    return DIDDocument(
        context=DID_CONTEXT,
        id=did,
        verificationMethod=[
            VerificationMethod(
                id=key_id,
                type="Ed25519VerificationKey2020",
                controller=did,
                publicKeyMultibase=get_public_key_multibase(verify_key),
            )
        ],
        authentication=[key_id],
        assertionMethod=[key_id],
    )


def write_did_file(settings: Settings) -> DIDDocument:
    """Writes the DID document for the configured did:web, creating its key on first use."""
    did = settings.did
    key_file = Path(settings.key_file)

    if key_file.exists():
        logger.info(f"Using existing key from {key_file}")
        signing_key = load_signing_key_from_file(key_file)
    else:
        logger.info(f"Generating new Ed25519 key in {key_file}")
        signing_key = SigningKey.generate()
        write_json(key_file, prepare_issuer_key_file_data(did, signing_key, f"{did}#key-1"))

    did_document = build_did_document(did, signing_key.verify_key)
    write_json(settings.path_did_document, did_document.to_dict())
    logger.info(f"DID document written to {settings.path_did_document}")
    return did_document
