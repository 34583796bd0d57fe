import json
import logging
import os

import pytest

from config import APP_NAME, DEFAULT_CONFIG, AppConfig


def test_defaults(tmp_path):
    cfg = AppConfig(str(tmp_path / "data"))
    assert os.path.isdir(cfg.user_data_dir)
    assert cfg.get("issuer") == "CLI Authenticator"
    assert cfg.vault_path == os.path.join(cfg.user_data_dir, "accounts.json")
    assert cfg.data == DEFAULT_CONFIG


def test_save_and_reload(tmp_path):
    data_dir = str(tmp_path / "data")
    cfg = AppConfig(data_dir)
    cfg.set("issuer", "Acme")
    cfg.set("vault_filename", "work.vault")
    cfg.save()

    reloaded = AppConfig(data_dir)
    assert reloaded.get("issuer") == "Acme"
    assert reloaded.vault_path.endswith("work.vault")
    assert reloaded.get("keyring_username") == "encryption_key"


def test_partial_file_is_backfilled(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "config.json").write_text(json.dumps({"refresh_seconds": 5}), encoding="utf-8")

    cfg = AppConfig(str(data_dir))
    assert cfg.get("refresh_seconds") == 5
    assert cfg.get("keyring_service") == "otp-vault"


def test_malformed_file_uses_defaults(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "config.json").write_text("{not json", encoding="utf-8")
    assert AppConfig(str(data_dir)).data == DEFAULT_CONFIG


def test_non_object_file_uses_defaults(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "config.json").write_text("[1, 2]", encoding="utf-8")
    assert AppConfig(str(data_dir)).data == DEFAULT_CONFIG


def test_logger_is_shared(tmp_path):
    cfg = AppConfig(str(tmp_path / "one"))
    AppConfig(str(tmp_path / "two"))
    assert cfg.logger is logging.getLogger(APP_NAME)
    assert len(cfg.logger.handlers) == 1


@pytest.mark.parametrize("value", ["fast", None, 0, -2, True, [1]])
def test_invalid_refresh_seconds_uses_default(tmp_path, value):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "config.json").write_text(
        json.dumps({"refresh_seconds": value, "issuer": "Acme"}), encoding="utf-8"
    )

    cfg = AppConfig(str(data_dir))
    assert cfg.get("refresh_seconds") == DEFAULT_CONFIG["refresh_seconds"]
    assert cfg.get("issuer") == "Acme"


def test_fractional_refresh_seconds_kept(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "config.json").write_text(json.dumps({"refresh_seconds": 0.5}), encoding="utf-8")
    assert AppConfig(str(data_dir)).get("refresh_seconds") == 0.5
