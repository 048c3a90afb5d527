#!/usr/bin/env python3
"""
Demonstration of encrypted key export and import
for the keystore-export package
"""

import json
import secrets

from keystore_export import (
    CSAKey,
    StarkKey,
    MINIMUM_SCRYPT_PARAMS,
    ScryptParams,
    csa_key_from_encrypted_json,
    stark_key_from_encrypted_json,
    check_platform_compatibility,
    KeystoreExportError,
)

# Cheapest accepted cost; real exports keep the default
DEMO_PARAMS = MINIMUM_SCRYPT_PARAMS


def demo_csa_export_import():
    """Demonstrate CSA key export and import"""
    print("=== CSA Export/Import Demo ===")

    print("1. Creating CSA key...")
    key = CSAKey.from_raw(secrets.token_bytes(32))
    print(f"   Public key: {key.public_key_string()[:16]}...")

    print("\n2. Exporting key with password encryption...")
    password = "MySecureExportPassword123!"
    data = key.to_encrypted_json(password, DEMO_PARAMS)

    document = json.loads(data)
    print(f"   Key type: {document['keyType']}")
    print(f"   Cipher: {document['crypto']['cipher']}")
    print(f"   KDF: {document['crypto']['kdf']} (n={document['crypto']['kdfparams']['n']})")

    print("\n3. Importing key from export...")
    imported = csa_key_from_encrypted_json(data, password)
    assert imported == key
    assert imported.raw() == key.raw()
    print("   ✓ Key verification passed")


def demo_starknet_export_import():
    """Demonstrate StarkNet key export and import"""
    print("\n=== StarkNet Export/Import Demo ===")

    key = StarkKey.from_raw((0x1234567890abcdef).to_bytes(32, 'big'))
    print(f"1. Public key: {key.public_key_string()}")

    data = key.to_encrypted_json("StarkPassword!", DEMO_PARAMS)
    imported = stark_key_from_encrypted_json(data, "StarkPassword!")
    assert imported == key
    print("2. ✓ Round trip successful")


def demo_error_handling():
    """Demonstrate error handling for various failure scenarios"""
    print("\n=== Error Handling Demo ===")

    key = CSAKey.from_raw(secrets.token_bytes(32))
    data = key.to_encrypted_json("CorrectPassword123!", DEMO_PARAMS)

    print("1. Testing wrong password...")
    try:
        csa_key_from_encrypted_json(data, "WrongPassword123!")
        print("   ✗ Should have failed!")
    except KeystoreExportError as e:
        print(f"   ✓ Correctly detected: {type(e).__name__} [{e.error_code}]")

    print("\n2. Testing import as another key type...")
    try:
        stark_key_from_encrypted_json(data, "CorrectPassword123!")
        print("   ✗ Should have failed!")
    except KeystoreExportError as e:
        print(f"   ✓ Correctly detected: {type(e).__name__} [{e.error_code}]")

    print("\n3. Testing weak scrypt parameters...")
    try:
        key.to_encrypted_json("CorrectPassword123!", ScryptParams(n=1024, r=8, p=1))
        print("   ✗ Should have failed!")
    except KeystoreExportError as e:
        print(f"   ✓ Correctly detected: {type(e).__name__} [{e.error_code}]")

    print("\n4. Testing invalid JSON...")
    try:
        csa_key_from_encrypted_json("{ invalid json", "CorrectPassword123!")
        print("   ✗ Should have failed!")
    except KeystoreExportError as e:
        print(f"   ✓ Correctly detected: {type(e).__name__} [{e.error_code}]")


def demo_platform_support():
    """Demonstrate platform support checking"""
    print("\n=== Platform Support Demo ===")

    result = check_platform_compatibility()
    print(f"  Compatible: {'✓' if result['compatible'] else '✗'}")
    for warning in result['warnings']:
        print(f"  Warning: {warning}")


def main():
    """Run all demonstrations"""
    print("keystore-export - Encrypted Key Export Demonstration")
    print("=" * 60)

    try:
        demo_platform_support()
        demo_csa_export_import()
        demo_starknet_export_import()
        demo_error_handling()

        print("\n" + "=" * 60)
        print("All demonstrations completed successfully!")

    except Exception as e:
        print(f"\n❌ Demo failed: {e}")
        import traceback
        traceback.print_exc()
        return 1

    return 0


if __name__ == "__main__":
    exit(main())
