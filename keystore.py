"""
keystore.py – OS credential-store access.

KeyringKeyStore is the only place that talks to the 'keyring' package.  It
exposes a four-operation capability over a single (service, username)
entry:

    exists()          – True iff the entry can be retrieved
    initialize(blob)  – store the blob
    load()            – return the blob
    destroy()         – delete the entry

CryptoManager receives an instance of this class, so tests can point it at
an in-memory keyring backend without touching the real OS store.
"""

import logging

import keyring
import keyring.errors

from errors import IdentityMissingError, KeyringError

logger = logging.getLogger("OtpVault")


class KeyringKeyStore:
    """
    A single credential-store entry holding the serialized identity.

    Parameters
    ----------
    service : str
        Keyring service name.
    username : str
        Keyring account name within *service*.
    """

    def __init__(self, service: str, username: str) -> None:
        self.service = service
        self.username = username

    def exists(self) -> bool:
        try:
            return keyring.get_password(self.service, self.username) is not None
        except keyring.errors.KeyringError as exc:
            logger.debug("Keyring lookup for %s/%s failed: %s", self.service, self.username, exc)
            return False

    def initialize(self, blob: str) -> None:
        try:
            keyring.set_password(self.service, self.username, blob)
        except keyring.errors.KeyringError as exc:
            raise KeyringError(f"Keyring error: {exc}") from exc
        logger.info("Stored identity in keyring entry %s/%s", self.service, self.username)

    def load(self) -> str:
        """
        Return the stored blob.

        Raises IdentityMissingError when the entry does not exist and
        KeyringError when the backend itself fails.
        """
        try:
            blob = keyring.get_password(self.service, self.username)
        except keyring.errors.KeyringError as exc:
            raise KeyringError(f"Keyring error: {exc}") from exc
        if blob is None:
            raise IdentityMissingError()
        return blob

    def destroy(self) -> None:
        """Delete the entry.  A missing entry is reported as KeyringError."""
        try:
            keyring.delete_password(self.service, self.username)
        except keyring.errors.KeyringError as exc:
            # PasswordDeleteError (entry absent) is a KeyringError subclass.
            raise KeyringError(f"Keyring error: {exc}") from exc
        logger.info("Deleted keyring entry %s/%s", self.service, self.username)
