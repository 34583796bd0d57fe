"""
auth.py – Identity management and the operations surface.

This module contains AuthManager, which wires AppConfig, CryptoManager and
SecretVault together and exposes the operations the command line drives:

  - initialize_identity(): create the encryption key in the OS keyring.
    This is the only path that creates key material.
  - open_vault(): load the account vault; requires the identity.
  - add_account / remove_account / list_accounts / get_code: one-shot
    wrappers that open the vault and perform a single operation.
  - reset_everything(): delete the vault file and the keyring entry.

AuthManager never prompts or prints; confirmation and output belong to
main.py and ui.py.
"""

import logging
from typing import Optional, Set, Tuple

from crypto import CryptoManager
from keystore import KeyringKeyStore
from storage import SecretVault

logger = logging.getLogger("OtpVault")


class AuthManager:
    """
    Entry point for every user-facing operation.

    Parameters
    ----------
    config : AppConfig
        Provides the vault path, issuer label and keyring entry names.
    crypto : CryptoManager, optional
        Defaults to a CryptoManager over the keyring entry named in config.
    clock : callable, optional
        Forwarded to the vault for code generation.
    """

    def __init__(self, config, crypto: Optional[CryptoManager] = None, clock=None) -> None:
        self.config = config
        if crypto is None:
            keystore = KeyringKeyStore(
                config.get("keyring_service"), config.get("keyring_username")
            )
            crypto = CryptoManager(keystore)
        self.crypto = crypto
        self.clock = clock

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def initialize_identity(self) -> None:
        """Create the encryption identity.  Raises IdentityAlreadyExistsError."""
        self.crypto.initialize()
        logger.info("Initialization complete")

    def open_vault(self) -> SecretVault:
        """Load the vault.  Raises IdentityMissingError before touching the file."""
        return SecretVault.load(
            self.config.vault_path,
            self.crypto,
            issuer=self.config.get("issuer"),
            clock=self.clock,
        )

    # ------------------------------------------------------------------
    # Single-shot account operations
    # ------------------------------------------------------------------

    def add_account(self, name: str, secret: Optional[str] = None) -> Tuple[str, str]:
        return self.open_vault().add_account(name, secret)

    def remove_account(self, name: str) -> bool:
        return self.open_vault().remove_account(name)

    def list_accounts(self) -> Set[str]:
        return self.open_vault().list_accounts()

    def get_code(self, name: str) -> Optional[str]:
        return self.open_vault().get_code(name)

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    def reset_everything(self) -> Tuple[bool, bool]:
        """
        Delete the vault file and the encryption identity.

        The file is removed before the identity.  Either may already be
        absent.

        Returns
        -------
        (file_removed, identity_removed)

        Raises
        ------
        StorageIOError
            If the vault file exists but cannot be deleted.
        KeyringError
            If the keyring refuses to delete an existing identity.
        """
        file_removed = SecretVault.remove_file(self.config.vault_path)

        identity_removed = False
        if self.crypto.identity_exists():
            self.crypto.destroy()
            identity_removed = True

        logger.info(
            "Reset complete (vault file removed: %s, identity removed: %s)",
            file_removed, identity_removed,
        )
        return file_removed, identity_removed
