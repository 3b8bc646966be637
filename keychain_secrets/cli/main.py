"""CLI entrypoint for keychain-secrets-manager."""
import sys
import argparse
import getpass
import logging
from pathlib import Path

from keychain_secrets.domains.activity_log import ActivityLog
from keychain_secrets.domains.config_loader import (
    ConfigError,
    default_config_locations,
    load_config,
)
from keychain_secrets.domains.preferences import clear_preference, get_preference, set_preference
from keychain_secrets.domains.store import StoreError, create_store
from keychain_secrets.workflows.secret_operations import (
    mask_value,
    remove_secret,
    resolve_account,
    store_secret,
)
from keychain_secrets.workflows.sync_operations import (
    export_secrets,
    import_secrets,
    secrets_status,
)

from .validators import validate_secret_name, validate_secret_value

VERSION = "0.1.0"

# Configure logging to stderr
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    stream=sys.stderr
)
logger = logging.getLogger(__name__)


def _load(args):
    """Load the config and build its store. ConfigError propagates to main()."""
    config = load_config(getattr(args, "config", None))
    return config, create_store(config.settings)


def _confirm(prompt: str, assume_yes: bool = False) -> bool:
    if assume_yes:
        return True
    response = input(f"{prompt} (y/N): ").strip().lower()
    return response == "y"


def cmd_version(args):
    """Show version information."""
    print(f"keychain-secrets-manager {VERSION}")


def cmd_config_set_path(args):
    """Set config file path preference."""
    config_path = Path(args.path).expanduser().resolve()

    if not config_path.exists():
        print(f"Error: Config file does not exist: {config_path}", file=sys.stderr)
        sys.exit(1)

    if not config_path.is_file():
        print(f"Error: Path is not a file: {config_path}", file=sys.stderr)
        sys.exit(1)

    set_preference("config_path", str(config_path))
    print(f"Config path set to: {config_path}")


def cmd_config_show(args):
    """Show current config file path and where it came from."""
    config_path_pref = get_preference("config_path")

    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.is_file():
            print(f"Config path: {config_path}")
        else:
            print(f"Config path (from preference, but file not found): {config_path}")
        print("Source: preference")
        return

    for candidate in default_config_locations():
        if candidate.is_file():
            print(f"Config path: {candidate}")
            print("Source: default")
            return

    print(f"Config path: {default_config_locations()[0]}")
    print("Source: default (file not found)")


def cmd_config_clear(args):
    """Clear config path preference."""
    clear_preference("config_path")
    print(f"Config path preference cleared. Will use default: {default_config_locations()[0]}")


def cmd_status(args):
    """List every configured secret and project with its current state."""
    config, store = _load(args)
    report = secrets_status(config, store)

    print(f"Secrets (service: {config.settings.service}, backend: {config.settings.backend})\n")
    for status in report.secrets:
        secret = status.definition
        if status.stored:
            print(f"  ✓ {secret.account_name} -> {secret.env_var}  {status.preview}")
        else:
            print(f"  ✗ {secret.account_name} -> {secret.env_var}  not set")

    print(f"\n  {report.stored_count} of {len(report.secrets)} secrets configured")

    if report.projects:
        print("\n  Projects receiving .env exports:")
        for project_status in report.projects:
            path = project_status.project.path
            if project_status.exists:
                print(f"    ✓ {path}")
            else:
                print(f"    - {path} (not found, skipped during export)")


def _run_export(config, store) -> bool:
    print("Exporting secrets to .env files...\n")
    activity_log = ActivityLog(config.settings.log_file)
    try:
        report = export_secrets(config, store, activity_log)
    finally:
        activity_log.close()

    for written in report.written:
        print(f"  ✓ {written.path} ({written.keys_written} keys)")
    for path in report.skipped_projects:
        print(f"  - {path} (not found, skipped)")
    for failed in report.failed:
        print(f"  ✗ {failed.path}: {failed.reason}", file=sys.stderr)

    print(f"\nRead {report.secrets_found} of {report.secrets_total} secrets from the store.")
    if not report.ok:
        print(f"Error: {len(report.failed)} destination(s) could not be written", file=sys.stderr)
        return False
    print("Success: Export complete.")
    return True


def cmd_export(args):
    """Write secrets from the store to the global and per-project .env files."""
    config, store = _load(args)
    if not _run_export(config, store):
        sys.exit(1)


def cmd_import(args):
    """Import secrets from existing .env files into the store."""
    config, store = _load(args)

    print("This will scan the global .env and your project directories for .env files")
    print("and import any configured secrets that are not stored yet.\n")
    if not _confirm("Continue?", args.yes):
        print("Cancelled.")
        return

    activity_log = ActivityLog(config.settings.log_file)
    try:
        report = import_secrets(config, store, activity_log)
    finally:
        activity_log.close()

    if not report.sources and not report.unreadable:
        print("No .env files found in configured paths.")
        return

    for path in report.sources:
        print(f"  Scanned {path}")
    for account_name in report.imported:
        print(f"    ✓ Imported {account_name}")
    for account_name in report.skipped:
        print(f"    - {account_name} (already stored)")
    for account_name in report.failed:
        print(f"    ✗ {account_name} (store rejected the value)", file=sys.stderr)
    for unreadable in report.unreadable:
        print(f"    ✗ {unreadable.path}: {unreadable.reason}", file=sys.stderr)

    print("\nImport summary:")
    print(f"  Imported: {report.imported_count}")
    print(f"  Skipped (already stored): {report.skipped_count}")
    if report.failed:
        print(f"  Failed: {len(report.failed)}")

    exported_ok = True
    if args.export and report.imported_count > 0:
        print("")
        exported_ok = _run_export(config, store)

    if not report.ok or not exported_ok:
        sys.exit(1)


def cmd_store(args):
    """Store a secret in the credential store."""
    validate_secret_name(args.name)
    config, store = _load(args)
    account_name = resolve_account(config, args.name)

    existing = store.get(account_name)
    if existing:
        print(f"'{account_name}' already exists: {mask_value(existing)}")
        if not _confirm("Replace it?", args.yes):
            print("Cancelled.")
            return

    if args.stdin:
        value = sys.stdin.readline().rstrip("\r\n")
    else:
        value = getpass.getpass("Paste the secret value (it won't be shown): ")
    validate_secret_value(value)

    store_secret(config, store, account_name, value)
    print(f"Success: Stored '{account_name}' ({mask_value(value)})")
    print("Run 'secrets-manager export' to push it to your .env files.")


def cmd_remove(args):
    """Remove a secret from the credential store."""
    validate_secret_name(args.name)
    config, store = _load(args)
    account_name = resolve_account(config, args.name)

    if store.get(account_name) is None:
        print(f"'{account_name}' is not stored, nothing to remove.")
        return

    if not _confirm(f"This will permanently remove '{account_name}'. Are you sure?", args.yes):
        print("Cancelled.")
        return

    remove_secret(config, store, account_name)
    print(f"Success: Removed '{account_name}'.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="secrets-manager",
        description="Keep secrets in an encrypted credential store and export them to .env files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (config error, store failure, file could not be written)
  2 - Usage error (invalid arguments, invalid secret name format, etc.)

Environment variables:
  GCP_PROJECT - GCP project ID when backend = gcp and gcp_project is not set

Configuration (first match wins):
  --config PATH
  Preference set with 'secrets-manager config set-path <path>'
  ~/.secrets.conf
  ~/.config/keychain-secrets-manager/secrets.conf
        """
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to the secrets config file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging on stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of keychain-secrets-manager"
    )

    for name in ("status", "list"):
        subparsers.add_parser(
            name,
            help="List secrets and projects" + (" (alias for status)" if name == "list" else ""),
            description="Show which secrets are stored (masked) and which project directories exist."
        )

    subparsers.add_parser(
        "export",
        help="Export secrets to .env files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Write every stored secret to the global .env file and, for each project
directory that exists, a .env containing only the variables it lists.

Files are written atomically with mode 0600. Missing project directories
are skipped, never created.
        """
    )

    import_parser = subparsers.add_parser(
        "import",
        help="Import secrets from existing .env files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Scan the global .env and each project's .env for configured variables and
store any that are not stored yet. Values already in the store always win.
        """
    )
    import_parser.add_argument(
        "--export",
        action="store_true",
        help="Run export afterwards if anything was imported"
    )
    import_parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Do not ask for confirmation"
    )

    store_parser = subparsers.add_parser(
        "store",
        help="Store a secret",
        description="Store a secret under an account name or configured env var name. "
                    "The value is read from a hidden prompt, or from stdin with --stdin."
    )
    store_parser.add_argument(
        "name",
        help="Account name or env var name (format: [a-zA-Z0-9_.-]+)"
    )
    store_parser.add_argument(
        "--stdin",
        action="store_true",
        help="Read the value from the first line of stdin instead of prompting"
    )
    store_parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Replace an existing value without asking"
    )

    remove_parser = subparsers.add_parser(
        "remove",
        help="Remove a secret",
        description="Permanently remove a secret from the credential store."
    )
    remove_parser.add_argument(
        "name",
        help="Account name or env var name"
    )
    remove_parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Do not ask for confirmation"
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Manage which secrets config file is used"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_set_path_parser = config_subparsers.add_parser(
        "set-path",
        help="Set config file path",
        description="""
Set the configuration file path preference.

This stores the absolute path to your config file in:
~/.config/keychain-secrets-manager/preferences.json
        """
    )
    config_set_path_parser.add_argument(
        "path",
        help="Path to config file"
    )

    config_subparsers.add_parser(
        "show",
        help="Show current config path",
        description="Display the current configuration file path and its source."
    )

    config_subparsers.add_parser(
        "clear",
        help="Clear config path preference",
        description="Remove the config path preference and fall back to the default locations."
    )

    parser.set_defaults(config_parser=config_parser)
    return parser


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (config error, store failure, unwritable file, etc.)
        2 - Usage errors (invalid arguments, invalid secret name format, etc.)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # If no command provided, show help and exit with usage error code
    if not args.command:
        parser.print_help()
        sys.exit(2)

    # Route to command handlers
    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command in ("status", "list"):
            cmd_status(args)
        elif args.command == "export":
            cmd_export(args)
        elif args.command == "import":
            cmd_import(args)
        elif args.command == "store":
            cmd_store(args)
        elif args.command == "remove":
            cmd_remove(args)
        elif args.command == "config":
            if args.config_command == "set-path":
                cmd_config_set_path(args)
            elif args.config_command == "show":
                cmd_config_show(args)
            elif args.config_command == "clear":
                cmd_config_clear(args)
            else:
                args.config_parser.print_help()
                sys.exit(2)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except (ConfigError, StoreError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
