"""
Command-line interface for encrypted key export and import
"""

import argparse
import getpass
import os
import platform
import sys
from typing import Optional

from . import __version__, check_platform_compatibility
from .config import ExportConfigManager, LoggingConfig, configure_logging
from .crypto.scrypt_params import SCRYPT_PROFILES, get_scrypt_params
from .exceptions import KeystoreExportError
from .keys.csakey import CSAKey, csa_key_from_encrypted_json
from .keys.starkkey import StarkKey, stark_key_from_encrypted_json

KEY_CLASSES = {
    'csa': CSAKey,
    'starknet': StarkKey,
}

KEY_IMPORTERS = {
    'csa': csa_key_from_encrypted_json,
    'starknet': stark_key_from_encrypted_json,
}


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog='keystore-export',
        description='Export and import password-encrypted private keys'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'keystore-export {__version__}'
    )

    parser.add_argument(
        '--check-compatibility',
        action='store_true',
        help='Check platform compatibility and exit'
    )

    parser.add_argument('--config', help='Path to JSON configuration file')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    setup_export_parser(subparsers)
    setup_import_parser(subparsers)

    return parser


def setup_export_parser(subparsers):
    """Setup export subcommand."""
    export_parser = subparsers.add_parser('export', help='Encrypt a private key to JSON')
    export_parser.add_argument('--key-type', choices=sorted(KEY_CLASSES), required=True, help='Key type')

    source = export_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--private-key-hex', help='Private key in hex format')
    source.add_argument('--private-key-file', help='File containing the private key in hex format')

    export_parser.add_argument('--password-file', help='File containing the password (prompted if omitted)')
    export_parser.add_argument('--output', help='Write the export to this file instead of stdout')
    export_parser.add_argument(
        '--scrypt-profile',
        choices=sorted(SCRYPT_PROFILES),
        help='Scrypt cost profile (default: from configuration)'
    )


def setup_import_parser(subparsers):
    """Setup import subcommand."""
    import_parser = subparsers.add_parser('import', help='Decrypt a private key from JSON')
    import_parser.add_argument('--key-type', choices=sorted(KEY_IMPORTERS), required=True, help='Expected key type')
    import_parser.add_argument('--input', required=True, help='File containing the encrypted export')
    import_parser.add_argument('--password-file', help='File containing the password (prompted if omitted)')
    import_parser.add_argument('--show-private', action='store_true', help='Also print the private key in hex')


def read_password(password_file: Optional[str]) -> str:
    """Read the password from a file (one trailing newline stripped) or prompt for it."""
    if password_file:
        with open(password_file, 'r', encoding='utf-8') as f:
            password = f.read()
        if password.endswith('\n'):
            password = password[:-1]
        if password.endswith('\r'):
            password = password[:-1]
        return password
    return getpass.getpass('Password: ')


def write_export(data: bytes, file_path: str) -> None:
    """Write an export to a file readable by the owner only."""
    try:
        with open(file_path, 'wb') as f:
            f.write(data)

        if platform.system() != "Windows":
            os.chmod(file_path, 0o600)
    except OSError:
        if os.path.exists(file_path):
            os.unlink(file_path)
        raise


def handle_export_command(args, config: ExportConfigManager) -> int:
    """Handle export command."""
    if args.private_key_file:
        with open(args.private_key_file, 'r', encoding='utf-8') as f:
            private_key_hex = f.read().strip()
    else:
        private_key_hex = args.private_key_hex

    try:
        raw = bytes.fromhex(private_key_hex)
    except ValueError as e:
        print(f"Error: Invalid private key hex: {e}", file=sys.stderr)
        return 1

    if args.scrypt_profile:
        scrypt_params = get_scrypt_params(args.scrypt_profile)
    else:
        scrypt_params = config.get_scrypt_params()

    key = KEY_CLASSES[args.key_type].from_raw(raw)
    password = read_password(args.password_file)
    data = key.to_encrypted_json(password, scrypt_params)

    if args.output:
        write_export(data, args.output)
        print(f"Exported {key.public_key_string()} to {args.output}")
    else:
        print(data.decode('utf-8'))

    return 0


def handle_import_command(args) -> int:
    """Handle import command."""
    with open(args.input, 'rb') as f:
        key_json = f.read()

    password = read_password(args.password_file)
    key = KEY_IMPORTERS[args.key_type](key_json, password)

    print(f"Public Key: {key.public_key_string()}")
    if args.show_private:
        print(f"Private Key: {key.raw().hex()}")

    return 0


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the CLI

    Args:
        argv: Command line arguments (None to use sys.argv)

    Returns:
        int: Exit code (0 for success, non-zero for failure)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        if args.check_compatibility:
            result = check_platform_compatibility()
            if result['compatible']:
                print("✓ Platform is compatible with keystore-export")
                return 0
            print("✗ Platform is not compatible with keystore-export")
            for warning in result['warnings']:
                print(f"  Error: {warning}")
            return 1

        if args.config:
            config = ExportConfigManager.from_file(args.config)
        else:
            config = ExportConfigManager.load_default()

        logging_config = config.get_logging_config()
        if args.verbose:
            logging_config = LoggingConfig(level='DEBUG', structured=logging_config.structured)
        configure_logging(logging_config)

        if args.command == 'export':
            return handle_export_command(args, config)
        elif args.command == 'import':
            return handle_import_command(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 130
    except KeystoreExportError as e:
        print(f"Error [{e.error_code}]: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
