import keyring
import keyring.backend
import keyring.errors
import pytest

from config import AppConfig
from crypto import CryptoManager
from keystore import KeyringKeyStore

# RFC 6238 appendix B SHA-1 key "12345678901234567890" in Base32.
RFC_SECRET = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


class MemoryKeyring(keyring.backend.KeyringBackend):
    """In-process keyring backend so tests never touch the OS store."""

    priority = 1

    def __init__(self):
        super().__init__()
        self.entries = {}

    def get_password(self, service, username):
        return self.entries.get((service, username))

    def set_password(self, service, username, password):
        self.entries[(service, username)] = password

    def delete_password(self, service, username):
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise keyring.errors.PasswordDeleteError("Password not found")


class BrokenKeyring(keyring.backend.KeyringBackend):
    """Backend whose every operation fails, like a locked OS store."""

    priority = 1

    def get_password(self, service, username):
        raise keyring.errors.KeyringLocked("Keyring is locked")

    def set_password(self, service, username, password):
        raise keyring.errors.PasswordSetError("Keyring is locked")

    def delete_password(self, service, username):
        raise keyring.errors.PasswordDeleteError("Keyring is locked")


def _install(backend):
    previous = keyring.get_keyring()
    keyring.set_keyring(backend)
    return previous


@pytest.fixture
def memory_keyring():
    backend = MemoryKeyring()
    previous = _install(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture
def broken_keyring():
    backend = BrokenKeyring()
    previous = _install(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture
def config(tmp_path):
    return AppConfig(str(tmp_path / "data"))


@pytest.fixture
def keystore(memory_keyring):
    return KeyringKeyStore("otp-vault-test", "encryption_key")


@pytest.fixture
def crypto(keystore):
    return CryptoManager(keystore)


@pytest.fixture
def ready_crypto(crypto):
    crypto.initialize()
    return crypto


@pytest.fixture
def vault_path(tmp_path):
    return str(tmp_path / "accounts.json")
