"""
main.py – Application entry point.

This file is intentionally minimal.  All logic lives in specialised modules:

  config.py   – AppConfig       : constants, file paths, config I/O, logging
  errors.py   – OtpVaultError   : one exception class per failure kind
  totp.py     – CodeGenerator   : RFC 4226/6238 codes, Base32, otpauth URIs
  keystore.py – KeyringKeyStore : the OS credential-store entry
  crypto.py   – CryptoManager   : identity lifecycle, encrypt/decrypt
  storage.py  – SecretVault     : encrypted account file and operations
  auth.py     – AuthManager     : initialize, open vault, reset everything
  ui.py       – CodeDisplay     : live-refreshing terminal display

Usage:
    otpvault init
    otpvault add NAME [SECRET]
    otpvault remove NAME
    otpvault list
    otpvault show
    otpvault code NAME
    otpvault reset [--yes]
"""

import argparse
import sys
from typing import List, Optional

from auth import AuthManager
from config import APP_VERSION, AppConfig
from errors import OtpVaultError
from ui import CodeDisplay


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="otpvault",
        description="A command-line authenticator for generating and managing TOTP codes",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Initialize the authenticator with a new encryption key")

    add = sub.add_parser("add", help="Add a new account")
    add.add_argument("name")
    add.add_argument("secret", nargs="?", default=None)

    remove = sub.add_parser("remove", help="Remove an account")
    remove.add_argument("name")

    sub.add_parser("list", help="List all accounts")
    sub.add_parser("show", help="Show live TOTP codes")

    code = sub.add_parser("code", help="Get code for a specific account")
    code.add_argument("name")

    reset = sub.add_parser(
        "reset",
        help="Reset everything - removes encryption key and all accounts (dangerous!)",
    )
    reset.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    return parser


def confirm_reset() -> bool:
    answer = input(
        "WARNING: This will delete all accounts and the encryption key.\n"
        "This action cannot be undone. Are you sure? (y/N): "
    )
    return answer.strip().lower() == "y"


def run(args: argparse.Namespace, manager: AuthManager) -> None:
    """Dispatch one subcommand.  OtpVaultError propagates to main()."""
    if args.command == "init":
        manager.initialize_identity()
        print("Initialization complete - encryption key generated successfully")

    elif args.command == "add":
        secret, uri = manager.add_account(args.name, args.secret)
        if args.secret is None:
            print(f"Generated secret: {secret}")
        print(f"Provisioning URI: {uri}")
        print(f"Account '{args.name}' added successfully!")

    elif args.command == "remove":
        if manager.remove_account(args.name):
            print(f"Account '{args.name}' removed successfully")
        else:
            print(f"Account '{args.name}' not found")

    elif args.command == "list":
        accounts = sorted(manager.list_accounts())
        if not accounts:
            print("No accounts registered")
        else:
            print("\nRegistered accounts:")
            for name in accounts:
                print(f"- {name}")

    elif args.command == "show":
        vault = manager.open_vault()
        print("Press Ctrl+C to exit")
        display = CodeDisplay(vault, refresh_seconds=manager.config.get("refresh_seconds", 1))
        try:
            display.run()
        except KeyboardInterrupt:
            print()

    elif args.command == "code":
        code = manager.get_code(args.name)
        if code is None:
            print(f"Account '{args.name}' not found")
        else:
            print(f"Code for {args.name}: {code}")

    elif args.command == "reset":
        if not args.yes and not confirm_reset():
            print("Reset cancelled")
            return
        manager.reset_everything()
        print("Reset complete - all data has been cleared")


def main(argv: Optional[List[str]] = None) -> int:
    """Parse *argv*, run the command and return the process exit status."""
    args = build_parser().parse_args(argv)
    config = AppConfig()
    manager = AuthManager(config)
    try:
        run(args, manager)
    except OtpVaultError as exc:
        config.logger.error("Command '%s' failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
