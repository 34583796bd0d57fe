"""
crypto.py – Cryptographic operations for OtpVault.

This module contains CryptoManager, which is the single place responsible
for every cryptographic concern in the application:

  - Lifecycle of the one long-lived X25519 identity whose serialized
    private key lives in the OS credential store (see keystore.py).
    The identity is created only by an explicit initialize() call.
  - Authenticated public-key encryption of opaque byte blobs to that
    identity, and the matching decryption.

Ciphertext layout (self-describing, no external parameters needed):

    MAGIC || ephemeral X25519 public key (32 bytes) || Fernet token

The Fernet key is HKDF-SHA256 over the X25519 shared secret between a fresh
ephemeral key and the identity, salted with both public keys.  Fernet
(AES-128-CBC + HMAC-SHA256, from the 'cryptography' package) provides the
integrity check, so any modified byte makes decrypt() fail.

The vault (storage.py) only ever hands plaintext in and gets ciphertext
out; it never sees key material.
"""

import base64
import logging
from enum import Enum

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.x25519 import (
    X25519PrivateKey,
    X25519PublicKey,
)
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from errors import (
    DecryptionFailedError,
    IdentityAlreadyExistsError,
    IdentityMissingError,
    KeyringError,
)

logger = logging.getLogger("OtpVault")

MAGIC = b"otpvault/x25519-fernet/v1\n"
KEY_PREFIX = "OTPVAULT-SECRET-KEY-"
HKDF_INFO = b"otpvault file key"
PUBLIC_KEY_LEN = 32


class IdentityState(Enum):
    ABSENT = "absent"
    PRESENT = "present"


def _public_bytes(public_key: X25519PublicKey) -> bytes:
    return public_key.public_bytes(encoding=Encoding.Raw, format=PublicFormat.Raw)


class CryptoManager:
    """
    Handles all cryptographic operations for OtpVault.

    Parameters
    ----------
    keystore : KeyringKeyStore
        Credential-store capability holding the serialized identity.  Any
        object with exists/initialize/load/destroy methods works.
    """

    def __init__(self, keystore) -> None:
        self.keystore = keystore

    # ------------------------------------------------------------------
    # Identity lifecycle
    # ------------------------------------------------------------------

    def state(self) -> IdentityState:
        """Query the credential store for the current identity state."""
        if self.keystore.exists():
            return IdentityState.PRESENT
        return IdentityState.ABSENT

    def identity_exists(self) -> bool:
        return self.state() is IdentityState.PRESENT

    def initialize(self) -> None:
        """
        Generate a new identity and store it in the credential store.

        Raises IdentityAlreadyExistsError when an identity is present; the
        existing one is never overwritten.
        """
        if self.state() is IdentityState.PRESENT:
            raise IdentityAlreadyExistsError()

        key = X25519PrivateKey.generate()
        self.keystore.initialize(self._serialize_identity(key))
        logger.info("Encryption key generated and stored in system keyring")

    def destroy(self) -> None:
        """Delete the identity.  Raises KeyringError if the store refuses."""
        self.keystore.destroy()
        logger.info("Encryption key removed from system keyring")

    @staticmethod
    def _serialize_identity(key: X25519PrivateKey) -> str:
        raw = key.private_bytes(
            encoding=Encoding.Raw,
            format=PrivateFormat.Raw,
            encryption_algorithm=NoEncryption(),
        )
        return KEY_PREFIX + base64.urlsafe_b64encode(raw).decode("ascii")

    @staticmethod
    def _parse_identity(blob: str) -> X25519PrivateKey:
        if not blob.startswith(KEY_PREFIX):
            raise KeyringError("Key parsing error: unrecognised identity format")
        try:
            raw = base64.urlsafe_b64decode(blob[len(KEY_PREFIX):].encode("ascii"))
            return X25519PrivateKey.from_private_bytes(raw)
        except ValueError as exc:
            raise KeyringError(f"Key parsing error: {exc}") from exc

    def _load_identity(self) -> X25519PrivateKey:
        if self.state() is IdentityState.ABSENT:
            raise IdentityMissingError()
        return self._parse_identity(self.keystore.load())

    # ------------------------------------------------------------------
    # Encrypt / decrypt
    # ------------------------------------------------------------------

    @staticmethod
    def _derive_fernet(shared: bytes, ephemeral_pub: bytes, recipient_pub: bytes) -> Fernet:
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=ephemeral_pub + recipient_pub,
            info=HKDF_INFO,
        )
        return Fernet(base64.urlsafe_b64encode(hkdf.derive(shared)))

    def encrypt(self, plaintext: bytes) -> bytes:
        """
        Encrypt *plaintext* to the stored identity's public key.

        Every call uses a fresh ephemeral key and Fernet IV, so encrypting
        the same plaintext twice gives different ciphertexts.

        Raises IdentityMissingError if no identity exists.
        """
        recipient_pub = _public_bytes(self._load_identity().public_key())

        ephemeral = X25519PrivateKey.generate()
        ephemeral_pub = _public_bytes(ephemeral.public_key())
        shared = ephemeral.exchange(X25519PublicKey.from_public_bytes(recipient_pub))

        fernet = self._derive_fernet(shared, ephemeral_pub, recipient_pub)
        return MAGIC + ephemeral_pub + fernet.encrypt(plaintext)

    def decrypt(self, ciphertext: bytes) -> bytes:
        """
        Decrypt *ciphertext* produced by encrypt() for the stored identity.

        Raises IdentityMissingError if no identity exists, and
        DecryptionFailedError for a foreign header, truncated input, a
        different recipient, or any integrity failure.
        """
        identity = self._load_identity()

        header_len = len(MAGIC) + PUBLIC_KEY_LEN
        if len(ciphertext) <= header_len or not ciphertext.startswith(MAGIC):
            raise DecryptionFailedError("Decryption failed: not an OtpVault ciphertext")

        ephemeral_pub = ciphertext[len(MAGIC):header_len]
        token = ciphertext[header_len:]
        recipient_pub = _public_bytes(identity.public_key())

        try:
            shared = identity.exchange(X25519PublicKey.from_public_bytes(ephemeral_pub))
        except ValueError as exc:
            # Low-order points produce an all-zero shared secret.
            raise DecryptionFailedError(f"Decryption failed: {exc}") from exc

        fernet = self._derive_fernet(shared, ephemeral_pub, recipient_pub)
        try:
            return fernet.decrypt(token)
        except InvalidToken as exc:
            raise DecryptionFailedError(
                "Decryption failed: wrong key or corrupted data"
            ) from exc
