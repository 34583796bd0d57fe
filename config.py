"""
config.py – Application configuration and constants.

This module defines AppConfig, a central container for:
  - Application-wide constants (name, version, default issuer, ...).
  - The user configuration (issuer label, keyring entry, refresh rate, ...)
    stored as a JSON file on disk and exposed through a simple dict-like
    interface.
  - OS-appropriate data-directory resolution and logger setup.

No other application module is imported here, so
config.py sits at the bottom of the dependency graph and can be safely
imported by any other module.
"""

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

import appdirs

# ---------------------------------------------------------------------------
# Application-level constants – these never change at runtime.
# ---------------------------------------------------------------------------

APP_NAME = "OtpVault"

APP_VERSION = "1.1.0"

# ---------------------------------------------------------------------------
# Default values written to config.json on first run.
# ---------------------------------------------------------------------------
DEFAULT_CONFIG: dict = {
    # Issuer label shown by authenticator apps next to the account name.
    "issuer": "CLI Authenticator",
    # Name of the encrypted vault file inside the data directory.
    "vault_filename": "accounts.json",
    # OS credential-store entry holding the encryption identity.
    "keyring_service": "otp-vault",
    "keyring_username": "encryption_key",
    # Seconds between redraws of the live code display.
    "refresh_seconds": 1,
}


class AppConfig:
    """
    Manages application configuration, file paths and logging.

    On instantiation the class:
      1. Resolves (or accepts) the user-data directory.
      2. Derives all relevant file paths from that directory.
      3. Sets up a rotating log handler.
      4. Loads (or falls back to) the JSON configuration file.

    Parameters
    ----------
    user_data_dir : str, optional
        Overrides the OS-standard directory.  Used by tests.

    Attributes
    ----------
    user_data_dir : str
        Absolute path of the directory that stores all persistent data.
    config_path : str
        JSON configuration file.
    log_path : str
        Rotating application log.
    data : dict
        The currently loaded configuration values (mutable at runtime).
    logger : logging.Logger
        Shared Python logger for the whole application.
    """

    def __init__(self, user_data_dir: Optional[str] = None) -> None:
        self.user_data_dir: str = self._get_user_data_dir(user_data_dir)

        self.config_path: str = os.path.join(self.user_data_dir, "config.json")
        self.log_path:    str = os.path.join(self.user_data_dir, "app.log")

        self.logger: logging.Logger = self._setup_logger()

        self.data: dict = self._load()

        self.logger.info("AppConfig initialised; data dir: %s", self.user_data_dir)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _get_user_data_dir(override: Optional[str]) -> str:
        """Return (and create if necessary) the user-data directory."""
        path = override or appdirs.user_data_dir(APP_NAME)
        os.makedirs(path, exist_ok=True)
        return path

    def _setup_logger(self) -> logging.Logger:
        """
        Create and configure a rotating file logger for the whole application.

        The log rotates at 2 MB and keeps up to 3 backup files.
        Duplicate handlers are avoided if the logger already exists.
        """
        logger = logging.getLogger(APP_NAME)
        logger.setLevel(logging.DEBUG)

        if not logger.handlers:
            handler = RotatingFileHandler(
                self.log_path,
                maxBytes=2_000_000,
                backupCount=3,
                encoding="utf-8",
            )
            handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s: %(message)s")
            )
            logger.addHandler(handler)

        return logger

    def _load(self) -> dict:
        """
        Read config.json from disk.

        Missing keys are back-filled from DEFAULT_CONFIG and a refresh
        interval that is not a positive number is replaced by the default.
        A missing or unreadable file yields a fresh copy of the defaults.
        """
        cfg = dict(DEFAULT_CONFIG)
        if not os.path.exists(self.config_path):
            return cfg
        try:
            with open(self.config_path, "r", encoding="utf-8") as fh:
                loaded = json.load(fh)
        except (OSError, ValueError):
            self.logger.exception("Failed to load config; using defaults")
            return cfg

        if not isinstance(loaded, dict):
            self.logger.error("Config file is not a JSON object; using defaults")
            return cfg
        cfg.update(loaded)

        refresh = cfg.get("refresh_seconds")
        if isinstance(refresh, bool) or not isinstance(refresh, (int, float)) or refresh <= 0:
            self.logger.error("Invalid refresh_seconds %r; using %s",
                              refresh, DEFAULT_CONFIG["refresh_seconds"])
            cfg["refresh_seconds"] = DEFAULT_CONFIG["refresh_seconds"]
        return cfg

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def vault_path(self) -> str:
        """Absolute path of the encrypted account file."""
        return os.path.join(self.user_data_dir, self.data["vault_filename"])

    def save(self) -> None:
        """Persist the current configuration dictionary to disk as JSON."""
        with open(self.config_path, "w", encoding="utf-8") as fh:
            json.dump(self.data, fh, indent=2)
        self.logger.info("Config saved")

    def get(self, key: str, default=None):
        """Return a configuration value by key, or *default* if not found."""
        return self.data.get(key, default)

    def set(self, key: str, value) -> None:
        """
        Update a configuration value in memory.

        Call save() afterwards to persist the change to disk.
        """
        self.data[key] = value
