import os

import pytest

from auth import AuthManager
from conftest import RFC_SECRET
from errors import IdentityAlreadyExistsError, IdentityMissingError, KeyringError


@pytest.fixture
def manager(config, memory_keyring):
    return AuthManager(config, clock=lambda: 59)


class TestAuthManager:

    def test_uses_configured_keyring_entry(self, manager, memory_keyring):
        manager.initialize_identity()
        assert ("otp-vault", "encryption_key") in memory_keyring.entries

    def test_initialize_twice(self, manager):
        manager.initialize_identity()
        with pytest.raises(IdentityAlreadyExistsError):
            manager.initialize_identity()

    def test_operations_require_identity(self, manager, config):
        with pytest.raises(IdentityMissingError):
            manager.add_account("github", RFC_SECRET)
        with pytest.raises(IdentityMissingError):
            manager.list_accounts()
        assert not os.path.exists(config.vault_path)

    def test_account_operations(self, manager, config):
        manager.initialize_identity()
        secret, uri = manager.add_account("github", RFC_SECRET)
        assert secret == RFC_SECRET
        assert "issuer=CLI+Authenticator" in uri
        assert os.path.exists(config.vault_path)

        assert manager.list_accounts() == {"github"}
        assert manager.get_code("github") == "287082"
        assert manager.get_code("nope") is None
        assert manager.remove_account("github") is True
        assert manager.remove_account("github") is False
        assert manager.list_accounts() == set()

    def test_issuer_from_config(self, manager, config):
        config.set("issuer", "Acme")
        manager.initialize_identity()
        _, uri = manager.add_account("github", RFC_SECRET)
        assert uri.endswith("issuer=Acme")

    def test_reset_everything(self, manager, config, memory_keyring):
        manager.initialize_identity()
        manager.add_account("github", RFC_SECRET)

        assert manager.reset_everything() == (True, True)
        assert not os.path.exists(config.vault_path)
        assert memory_keyring.entries == {}

        assert manager.reset_everything() == (False, False)

    def test_reset_removes_file_without_identity(self, manager, config):
        with open(config.vault_path, "wb") as fh:
            fh.write(b"left behind")
        assert manager.reset_everything() == (True, False)
        assert not os.path.exists(config.vault_path)

    def test_reset_without_vault_file(self, manager):
        manager.initialize_identity()
        assert manager.reset_everything() == (False, True)

    def test_reinitialize_after_reset(self, manager):
        manager.initialize_identity()
        manager.add_account("github", RFC_SECRET)
        manager.reset_everything()
        manager.initialize_identity()
        assert manager.list_accounts() == set()


class TestBrokenKeyring:

    def test_identity_reported_absent(self, config, broken_keyring):
        manager = AuthManager(config)
        assert not manager.crypto.identity_exists()
        with pytest.raises(IdentityMissingError):
            manager.open_vault()

    def test_initialize_reports_keyring_error(self, config, broken_keyring):
        with pytest.raises(KeyringError):
            AuthManager(config).initialize_identity()
