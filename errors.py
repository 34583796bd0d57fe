"""
errors.py – Error taxonomy for OtpVault.

Every failure the core can report has exactly one exception class below,
and every class carries an ErrorKind tag so callers (main.py, ui.py) can
branch on the kind without parsing messages:

    try:
        vault.add_account(name, secret)
    except OtpVaultError as exc:
        if exc.kind is ErrorKind.INVALID_ENCODING:
            ...

No other application module is imported here.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """One member per failure the core can report."""

    EMPTY_NAME = "empty_name"
    INVALID_ENCODING = "invalid_encoding"
    CLOCK = "clock"
    IDENTITY_ALREADY_EXISTS = "identity_already_exists"
    IDENTITY_MISSING = "identity_missing"
    DECRYPTION_FAILED = "decryption_failed"
    CORRUPT_STORAGE = "corrupt_storage"
    KEYRING = "keyring"
    STORAGE_IO = "storage_io"


class OtpVaultError(Exception):
    """Base class of every error raised by the core."""

    kind: ErrorKind

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.default_message)

    default_message = "OtpVault error"


class EmptyNameError(OtpVaultError):
    """Account name is empty after trimming whitespace."""

    kind = ErrorKind.EMPTY_NAME
    default_message = "Account name cannot be empty"


class InvalidEncodingError(OtpVaultError):
    """Secret text is not valid padded RFC 4648 Base32."""

    kind = ErrorKind.INVALID_ENCODING
    default_message = "Secret is not valid Base32"


class ClockError(OtpVaultError):
    """The system clock could not be read or is before the Unix epoch."""

    kind = ErrorKind.CLOCK
    default_message = "System clock is unavailable"


class IdentityAlreadyExistsError(OtpVaultError):
    kind = ErrorKind.IDENTITY_ALREADY_EXISTS
    default_message = "Encryption key already exists"


class IdentityMissingError(OtpVaultError):
    kind = ErrorKind.IDENTITY_MISSING
    default_message = "Encryption key not found. Please run 'init' first"


class DecryptionFailedError(OtpVaultError):
    """Wrong key, truncated ciphertext or failed integrity check."""

    kind = ErrorKind.DECRYPTION_FAILED
    default_message = "Decryption failed"


class CorruptStorageError(OtpVaultError):
    """Ciphertext decrypted but the document inside is not a valid mapping."""

    kind = ErrorKind.CORRUPT_STORAGE
    default_message = "Invalid storage data"


class KeyringError(OtpVaultError):
    """The OS credential store refused an operation."""

    kind = ErrorKind.KEYRING
    default_message = "Keyring error"


class StorageIOError(OtpVaultError):
    """
    A filesystem operation on the vault file failed.

    Attributes
    ----------
    path : str
        The file the operation was attempted on.
    operation : str
        Short verb describing the attempt ('read', 'write', 'delete', ...).
    """

    kind = ErrorKind.STORAGE_IO
    default_message = "Storage file error"

    def __init__(self, path: str, operation: str, cause: Optional[BaseException] = None) -> None:
        self.path = path
        self.operation = operation
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Failed to {operation} storage file {path}{detail}")
