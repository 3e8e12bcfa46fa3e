"""
------------------------------------------------------------------------------
Project:        AnnotaLoop
File:           annotaloop/envelope.py
Version:        1.0.0
Producer:       AnnotaLoop Archive maintainers
Description:    Password envelope for exported archives. AES-256-GCM with a
                PBKDF2-SHA256 derived key; the package is Base64 encoded JSON
                so a sealed file never starts with the ZIP signature.
------------------------------------------------------------------------------
"""

import base64
import binascii
import json
import os
from typing import List

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from annotaloop.errors import DecryptionError
from annotaloop.logger import get_logger

logger = get_logger("archive.envelope")

KDF_ITERATIONS = 100_000
SALT_SIZE = 16
NONCE_SIZE = 12
KEY_SIZE = 32


class EnvelopePackage(BaseModel):
    """On-disk layout of a sealed archive before Base64 encoding."""
    model_config = ConfigDict(extra="ignore")

    salt: List[int] = Field(min_length=SALT_SIZE, max_length=SALT_SIZE)
    iv: List[int] = Field(min_length=NONCE_SIZE, max_length=NONCE_SIZE)
    ciphertext: List[int] = Field(min_length=1)


def looks_sealed(data: bytes) -> bool:
    """
    Cheap check for the sealed layout: Base64 of a JSON object starts with 'eyJ'.
    Lets callers tell an encrypted archive from an unrelated file before asking for a password.
    """
    return data.lstrip()[:3] == b"eyJ"


def _derive_key(password: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))


class PasswordEnvelope:
    """
    Seals and opens whole archive buffers with a user password.
    Each seal uses a fresh random salt and nonce.
    """

    @staticmethod
    def seal(data: bytes, password: str) -> bytes:
        """
        Encrypts a buffer under a password.

        Args:
            data: The plaintext container bytes.
            password: The user supplied password. Must not be empty.

        Returns:
            The sealed envelope as ASCII bytes.

        Raises:
            ValueError: If the password is empty.
        """
        if not password:
            raise ValueError("A non-empty password is required for encryption")

        salt = os.urandom(SALT_SIZE)
        nonce = os.urandom(NONCE_SIZE)
        key = _derive_key(password, salt)

        # The cipher input is the JSON array of byte values
        plaintext = json.dumps(list(data), separators=(",", ":")).encode("utf-8")
        ciphertext = AESGCM(key).encrypt(nonce, plaintext, None)

        package = EnvelopePackage(salt=list(salt), iv=list(nonce), ciphertext=list(ciphertext))
        package_json = package.model_dump_json().encode("utf-8")
        return base64.b64encode(package_json)

    @staticmethod
    def open(envelope: bytes, password: str) -> bytes:
        """
        Decrypts a sealed envelope.

        Args:
            envelope: Bytes produced by seal().
            password: The password used for sealing.

        Returns:
            The original plaintext bytes.

        Raises:
            DecryptionError: Wrong password or damaged envelope.
        """
        try:
            package_json = base64.b64decode(envelope.strip(), validate=True)
            package = EnvelopePackage.model_validate_json(package_json)
        except (binascii.Error, ValueError, ValidationError) as e:
            logger.error(f"Envelope is not readable: {e}")
            raise DecryptionError() from e

        try:
            key = _derive_key(password or "", bytes(package.salt))
            plaintext = AESGCM(key).decrypt(bytes(package.iv), bytes(package.ciphertext), None)
        except (InvalidTag, ValueError) as e:
            logger.warning("Envelope authentication failed (wrong password or corrupted file)")
            raise DecryptionError() from e

        try:
            values = json.loads(plaintext)
            if not isinstance(values, list):
                raise TypeError(f"expected a list, got {type(values).__name__}")
            return bytes(values)
        except (ValueError, TypeError) as e:
            logger.error(f"Decrypted payload is not a byte array: {e}")
            raise DecryptionError() from e
