"""
storage.py – Encrypted account storage.

This module contains SecretVault, the single class responsible for the
account-name → Base32-secret mapping and its backing file:

  - Loading: read the file, decrypt it through CryptoManager and parse the
    JSON document inside.  An absent or zero-length file is an empty vault.
  - Saving: serialize the mapping to canonical JSON, encrypt it and
    overwrite the whole file.  Every mutating call saves before returning.
  - Account operations: add (with validation and secret generation),
    remove, list, and code lookup through CodeGenerator.

The file is overwritten in place with no locking: a second process writing
the same vault wins, and a crash mid-write can leave a file that fails to
load.  Such a file needs manual recovery.
"""

import json
import logging
import os
from typing import Dict, Optional, Set, Tuple

from errors import (
    ClockError,
    CorruptStorageError,
    EmptyNameError,
    IdentityMissingError,
    InvalidEncodingError,
    StorageIOError,
)
from totp import CodeGenerator, generate_secret

logger = logging.getLogger("OtpVault")

DEFAULT_ISSUER = "CLI Authenticator"


class SecretVault:
    """
    The account mapping bound to one encrypted file.

    Use SecretVault.load() to construct; the constructor itself performs
    no I/O.

    Parameters
    ----------
    path : str
        Backing file.
    crypto : CryptoManager
        Encrypts on save and decrypts on load.
    accounts : dict, optional
        Initial name → Base32 secret mapping.
    issuer : str
        Issuer label placed in provisioning URIs.
    clock : callable, optional
        Passed to every CodeGenerator; defaults to time.time.
    """

    def __init__(self, path: str, crypto, accounts: Optional[Dict[str, str]] = None,
                 issuer: str = DEFAULT_ISSUER, clock=None) -> None:
        self.path = path
        self.crypto = crypto
        self.accounts: Dict[str, str] = dict(accounts or {})
        self.issuer = issuer
        self._clock = clock

    def _generator(self, secret_text: str) -> CodeGenerator:
        if self._clock is None:
            return CodeGenerator(secret_text)
        return CodeGenerator(secret_text, clock=self._clock)

    # ------------------------------------------------------------------
    # Loading and saving
    # ------------------------------------------------------------------

    @classmethod
    def load(cls, path: str, crypto, issuer: str = DEFAULT_ISSUER, clock=None) -> "SecretVault":
        """
        Open the vault stored at *path*.

        Raises
        ------
        IdentityMissingError
            If no encryption identity has been initialized.
        DecryptionFailedError
            If the file was not encrypted for the current identity or was
            tampered with.
        CorruptStorageError
            If the decrypted bytes are not UTF-8 JSON describing a mapping
            of strings to strings.
        StorageIOError
            If the file exists but cannot be read.
        """
        if not crypto.identity_exists():
            raise IdentityMissingError()

        try:
            with open(path, "rb") as fh:
                encrypted = fh.read()
        except FileNotFoundError:
            logger.info("No vault file at %s; starting empty", path)
            return cls(path, crypto, issuer=issuer, clock=clock)
        except OSError as exc:
            raise StorageIOError(path, "read", exc) from exc

        if not encrypted:
            return cls(path, crypto, issuer=issuer, clock=clock)

        accounts = cls._parse(crypto.decrypt(encrypted))
        logger.info("Loaded %d account(s) from %s", len(accounts), path)
        return cls(path, crypto, accounts, issuer=issuer, clock=clock)

    @staticmethod
    def _parse(plaintext: bytes) -> Dict[str, str]:
        try:
            document = json.loads(plaintext.decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise CorruptStorageError(f"Invalid UTF-8: {exc}") from exc
        except ValueError as exc:
            raise CorruptStorageError(f"Invalid JSON: {exc}") from exc

        if not isinstance(document, dict):
            raise CorruptStorageError("Invalid storage data: expected a JSON object")
        for name, secret in document.items():
            if not isinstance(secret, str):
                raise CorruptStorageError(f"Invalid storage data: secret for {name!r} is not text")
        return document

    def serialize(self) -> bytes:
        """Canonical plaintext form of the mapping (sorted, indented JSON)."""
        return json.dumps(self.accounts, indent=2, sort_keys=True).encode("utf-8")

    def save(self) -> None:
        """
        Encrypt the mapping and overwrite the backing file.

        Raises StorageIOError when the file cannot be written; the
        in-memory mapping is left as it is.
        """
        encrypted = self.crypto.encrypt(self.serialize())
        try:
            parent = os.path.dirname(self.path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.path, "wb") as fh:
                fh.write(encrypted)
        except OSError as exc:
            raise StorageIOError(self.path, "write", exc) from exc
        logger.debug("Saved %d account(s) to %s", len(self.accounts), self.path)

    # ------------------------------------------------------------------
    # Account operations
    # ------------------------------------------------------------------

    def add_account(self, name: str, secret: Optional[str] = None) -> Tuple[str, str]:
        """
        Add or replace the account *name* and persist the vault.

        When *secret* is None a fresh 160-bit secret is generated.  The
        secret is decoded and one code is computed before the mapping is
        touched, so a rejected secret leaves the vault unchanged.

        Returns
        -------
        (secret, provisioning_uri)

        Raises
        ------
        EmptyNameError
            If *name* is empty or whitespace.
        InvalidEncodingError
            If *secret* is not valid Base32.
        """
        if not name.strip():
            raise EmptyNameError()

        if secret is None:
            secret = generate_secret()

        generator = self._generator(secret)
        generator.now()

        replaced = name in self.accounts
        self.accounts[name] = secret
        self.save()
        logger.info("%s account '%s'", "Replaced" if replaced else "Added", name)

        return secret, generator.provisioning_uri(name, self.issuer)

    def remove_account(self, name: str) -> bool:
        """Remove *name* and persist.  Returns False if it was not present."""
        if name not in self.accounts:
            return False
        del self.accounts[name]
        self.save()
        logger.info("Removed account '%s'", name)
        return True

    def get_code(self, name: str, unix_time: Optional[int] = None) -> Optional[str]:
        """
        Return the current code for *name*, or None.

        None covers both an unknown name and a stored secret that no longer
        decodes.  The second case is not surfaced as an error.
        """
        secret = self.accounts.get(name)
        if secret is None:
            return None
        try:
            generator = self._generator(secret)
            if unix_time is None:
                return generator.now()
            return generator.code(unix_time)
        except (InvalidEncodingError, ClockError) as exc:
            logger.warning("Could not compute code for '%s': %s", name, exc)
            return None

    def codes(self, unix_time: Optional[int] = None) -> Dict[str, str]:
        """Return {name: code} for every account that yields a code."""
        result = {}
        for name in self.accounts:
            code = self.get_code(name, unix_time)
            if code is not None:
                result[name] = code
        return result

    def list_accounts(self) -> Set[str]:
        return set(self.accounts)

    def reset(self) -> None:
        """
        Delete the backing file if it exists.

        Raises StorageIOError if the filesystem refuses the deletion.
        """
        self.remove_file(self.path)

    @staticmethod
    def remove_file(path: str) -> bool:
        """Delete *path*; return whether a file was removed."""
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageIOError(path, "delete", exc) from exc
        logger.info("Deleted vault file %s", path)
        return True
