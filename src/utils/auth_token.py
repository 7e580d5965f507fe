"""
Bearer token derivation for the M-Pesa gateway.

The gateway does not issue tokens. Clients encrypt their API key with the
public key from the developer portal (RSA, PKCS#1 v1.5) and send the base-64
ciphertext as ``Authorization: Bearer <token>``. The gateway decrypts it with
the matching private key.
"""

import base64
import logging

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

logger = logging.getLogger(__name__)

PEM_HEADER = "-----BEGIN PUBLIC KEY-----"
PEM_FOOTER = "-----END PUBLIC KEY-----"
PEM_LINE_WIDTH = 64


class TokenGenerationError(ValueError):
    """The API key or public key cannot produce a bearer token."""


def format_public_key(public_key: str) -> str:
    """
    Frame a bare base-64 key body as PEM.

    The portal hands out the key without header/footer lines. Keys that are
    already framed (SPKI or PKCS#1) are returned untouched.
    """
    if "-----BEGIN" in public_key:
        return public_key

    body = "".join(public_key.split())
    lines = [body[i:i + PEM_LINE_WIDTH] for i in range(0, len(body), PEM_LINE_WIDTH)]
    return f"{PEM_HEADER}\n" + "\n".join(lines) + f"\n{PEM_FOOTER}"


def generate_bearer_token(secret: str, formatted_public_key: str) -> str:
    """
    Encrypt ``secret`` under the PEM public key and base-64 encode the result.

    PKCS#1 v1.5 padding is randomized: two calls with the same inputs return
    different tokens, both valid.
    """
    if not isinstance(secret, str) or not secret:
        raise TokenGenerationError("API key must be a non-empty string")

    try:
        key = serialization.load_pem_public_key(formatted_public_key.encode("utf-8"))
    except (ValueError, TypeError) as exc:
        raise TokenGenerationError(f"Invalid M-Pesa public key: {exc}") from exc

    if not isinstance(key, rsa.RSAPublicKey):
        raise TokenGenerationError(f"M-Pesa public key must be RSA; got {type(key).__name__}")

    try:
        ciphertext = key.encrypt(secret.encode("utf-8"), padding.PKCS1v15())
    except ValueError as exc:
        raise TokenGenerationError(f"Unable to encrypt API key: {exc}") from exc

    logger.debug("Derived bearer token with %d-bit public key", key.key_size)
    return base64.b64encode(ciphertext).decode("ascii")
