"""
Tests for the generic export and import engines
"""

import json
import logging
import secrets
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock, patch

import pytest

from keystore_export.crypto.scrypt_params import ScryptParams, MINIMUM_SCRYPT_PARAMS
from keystore_export.keys.envelope import EncryptedKeyExport
from keystore_export.keys.export import (
    KeyCodec,
    to_encrypted_json,
    from_encrypted_json,
    export_key,
    import_key,
)
from keystore_export.keys.password import make_password_adulterator
from keystore_export.exceptions import (
    AuthenticationFailedError,
    BackendError,
    BuilderError,
    KeyTypeMismatchError,
    ParseError,
    ValidationError,
)

PASSWORD = 'correct-password'


def build_payload(key_type, key, crypto):
    return EncryptedKeyExport(key_type=key_type, public_key=f"pub-{key.hex()[:8]}", crypto=crypto)


def construct(export, raw):
    return bytes(raw)


def export_raw(key_type, raw, password=PASSWORD, prefix='testkey'):
    return to_encrypted_json(
        key_type, raw, bytes(raw), password, MINIMUM_SCRYPT_PARAMS,
        make_password_adulterator(prefix), build_payload,
    )


def import_raw(key_type, data, password=PASSWORD, prefix='testkey'):
    return from_encrypted_json(key_type, data, password, make_password_adulterator(prefix), construct)


def flip_bit(data, field, byte_index, bit):
    """Flip one bit of a hex field in the crypto section."""
    document = json.loads(data)
    value = bytearray.fromhex(document['crypto'][field])
    value[byte_index] ^= 1 << bit
    document['crypto'][field] = value.hex()
    return json.dumps(document).encode('utf-8')


class TestRoundTrip:
    """Test export followed by import"""

    @pytest.mark.parametrize('raw', [
        bytes(range(1, 33)),
        b'\x00' * 32,
        b'\xff' * 32,
        secrets.token_bytes(32),
        secrets.token_bytes(64),
        b'\x01',
    ])
    def test_recovers_raw_bytes(self, raw):
        """Test the imported bytes equal the exported bytes"""
        data = export_raw('Test', raw)

        assert import_raw('Test', data) == raw

    @pytest.mark.parametrize('password', ['', 'p', 'пароль', 'with spaces and \t tabs', 'x' * 500])
    def test_any_password(self, password):
        raw = secrets.token_bytes(32)
        data = export_raw('Test', raw, password=password)

        assert import_raw('Test', data, password=password) == raw

    def test_csa_scenario(self):
        """Test bytes 0x01..0x20 under "CSA" with the right and wrong password"""
        raw = bytes(range(0x01, 0x21))
        data = export_raw('CSA', raw, prefix='csakey')

        assert import_raw('CSA', data, prefix='csakey') == raw

        with pytest.raises(AuthenticationFailedError):
            import_raw('CSA', data, password='wrong-password', prefix='csakey')

    def test_envelope_records_key_type_and_public_key(self):
        raw = bytes(range(32))
        document = json.loads(export_raw('Test', raw))

        assert document['keyType'] == 'Test'
        assert document['publicKey'] == f"pub-{raw.hex()[:8]}"

    def test_plaintext_not_in_output(self):
        raw = bytes(range(100, 132))
        data = export_raw('Test', raw)

        assert raw.hex().encode() not in data
        assert raw not in data

    def test_exports_of_same_key_differ(self):
        """Test salt and IV are fresh for every export"""
        raw = secrets.token_bytes(32)
        first = json.loads(export_raw('Test', raw))['crypto']
        second = json.loads(export_raw('Test', raw))['crypto']

        assert first['kdfparams']['salt'] != second['kdfparams']['salt']
        assert first['cipherparams']['iv'] != second['cipherparams']['iv']
        assert first['ciphertext'] != second['ciphertext']

    def test_parallel_round_trips(self):
        """Test concurrent calls share no state"""
        keys = [secrets.token_bytes(32) for _ in range(8)]

        def round_trip(raw):
            return import_raw('Test', export_raw('Test', raw, password=raw.hex()), password=raw.hex())

        with ThreadPoolExecutor(max_workers=4) as executor:
            results = list(executor.map(round_trip, keys))

        assert results == keys


class TestImportFailures:
    """Test rejected imports"""

    def setup_method(self):
        """Set up test fixtures"""
        self.raw = secrets.token_bytes(32)
        self.data = export_raw('Test', self.raw)

    @pytest.mark.parametrize('password', [
        'wrong-password',
        'correct-password ',
        'Correct-password',
        '',
        'correct-passwor',
    ])
    def test_wrong_password(self, password):
        with pytest.raises(AuthenticationFailedError):
            import_raw('Test', self.data, password=password)

    def test_key_type_mismatch(self):
        """Test a valid envelope for another type is refused even with the right password"""
        with pytest.raises(KeyTypeMismatchError) as exc_info:
            import_raw('Other', self.data)

        assert exc_info.value.expected == 'Other'
        assert exc_info.value.actual == 'Test'
        assert exc_info.value.error_code == 'KEY_TYPE_MISMATCH'

    def test_key_type_mismatch_checked_before_decryption(self):
        constructor = MagicMock()
        with patch('keystore_export.keys.export.decrypt_data') as mock_decrypt:
            with pytest.raises(KeyTypeMismatchError):
                from_encrypted_json('Other', self.data, PASSWORD,
                                    make_password_adulterator('testkey'), constructor)

        mock_decrypt.assert_not_called()
        constructor.assert_not_called()

    def test_relabelled_envelope_fails_domain_separation(self):
        """Test rewriting keyType does not let another key type's password opener succeed"""
        document = json.loads(self.data)
        document['keyType'] = 'Other'
        relabelled = json.dumps(document)

        with pytest.raises(AuthenticationFailedError):
            import_raw('Other', relabelled, prefix='otherkey')

    @pytest.mark.parametrize('field,byte_index,bit', [
        ('ciphertext', 0, 0),
        ('ciphertext', 0, 7),
        ('ciphertext', 15, 3),
        ('ciphertext', 31, 5),
        ('mac', 0, 0),
        ('mac', 16, 4),
        ('mac', 31, 7),
    ])
    def test_bit_flip_detected(self, field, byte_index, bit):
        """Test any single bit flip in ciphertext or MAC fails authentication"""
        corrupted = flip_bit(self.data, field, byte_index, bit)

        with pytest.raises(AuthenticationFailedError):
            import_raw('Test', corrupted)

    @pytest.mark.parametrize('data', [b'', b'{"keyType": "Test"', b'garbage', b'{}'])
    def test_malformed(self, data):
        with pytest.raises(ParseError):
            import_raw('Test', data)

    def test_truncated(self):
        with pytest.raises(ParseError):
            import_raw('Test', self.data[:len(self.data) // 2])

    def test_constructor_not_called_on_failure(self):
        constructor = MagicMock()

        with pytest.raises(AuthenticationFailedError):
            from_encrypted_json('Test', self.data, 'wrong', make_password_adulterator('testkey'), constructor)

        constructor.assert_not_called()

    def test_constructor_error_passes_through(self):
        """Test constructor exceptions reach the caller unchanged"""
        error = RuntimeError('cannot build key')

        def failing_constructor(export, raw):
            raise error

        with pytest.raises(RuntimeError) as exc_info:
            from_encrypted_json('Test', self.data, PASSWORD, make_password_adulterator('testkey'), failing_constructor)

        assert exc_info.value is error

    def test_non_string_password(self):
        with pytest.raises(ValidationError):
            import_raw('Test', self.data, password=b'correct-password')


class TestKeyMaterialLifetime:
    """Test raw key buffers are cleared"""

    def test_constructor_buffer_cleared_after_return(self):
        raw = bytes(range(1, 33))
        data = export_raw('Test', raw)
        seen = []

        def capturing_constructor(export, buffer):
            seen.append(buffer)
            return bytes(buffer)

        result = from_encrypted_json('Test', data, PASSWORD, make_password_adulterator('testkey'), capturing_constructor)

        assert result == raw
        assert seen[0] == bytearray(len(raw))

    def test_constructor_buffer_cleared_on_error(self):
        data = export_raw('Test', bytes(range(1, 33)))
        seen = []

        def failing_constructor(export, buffer):
            seen.append(buffer)
            raise ValueError('bad key')

        with pytest.raises(ValueError):
            from_encrypted_json('Test', data, PASSWORD, make_password_adulterator('testkey'), failing_constructor)

        assert seen[0] == bytearray(32)

    def test_export_does_not_modify_caller_buffer(self):
        raw = bytearray(range(1, 33))
        export_raw('Test', raw)

        assert raw == bytearray(range(1, 33))

    def test_export_buffer_cleared_before_builder(self):
        seen = []

        def capturing_encrypt(plaintext, password, params):
            seen.append(plaintext)
            return MagicMock()

        with patch('keystore_export.keys.export.encrypt_data', side_effect=capturing_encrypt):
            with pytest.raises(Exception):
                to_encrypted_json('Test', bytes(range(1, 33)), None, PASSWORD, MINIMUM_SCRYPT_PARAMS,
                                  make_password_adulterator('testkey'),
                                  MagicMock(side_effect=RuntimeError('stop')))

        assert seen[0] == bytearray(32)


class TestExportFailures:
    """Test rejected exports"""

    def test_weak_params_rejected_before_builder(self):
        builder = MagicMock()

        with pytest.raises(BackendError) as exc_info:
            to_encrypted_json('Test', b'\x01' * 32, None, PASSWORD, ScryptParams(n=1024, r=8, p=1),
                              make_password_adulterator('testkey'), builder)

        assert exc_info.value.error_code == 'SCRYPT_COST_TOO_LOW'
        builder.assert_not_called()

    def test_backend_error_passes_through(self):
        error = BackendError('backend down', 'ENCRYPTION_FAILED')

        with patch('keystore_export.keys.export.encrypt_data', side_effect=error):
            with pytest.raises(BackendError) as exc_info:
                export_raw('Test', b'\x01' * 32)

        assert exc_info.value is error

    def test_builder_error_passes_through(self):
        error = RuntimeError('no public key')

        with pytest.raises(RuntimeError) as exc_info:
            to_encrypted_json('Test', b'\x01' * 32, None, PASSWORD, MINIMUM_SCRYPT_PARAMS,
                              make_password_adulterator('testkey'), MagicMock(side_effect=error))

        assert exc_info.value is error

    def test_builder_receives_identifier_key_and_crypto(self):
        builder = MagicMock(side_effect=build_payload)
        key = b'\x02' * 32

        to_encrypted_json('Test', key, key, PASSWORD, MINIMUM_SCRYPT_PARAMS,
                          make_password_adulterator('testkey'), builder)

        key_type, passed_key, crypto = builder.call_args[0]
        assert key_type == 'Test'
        assert passed_key is key
        assert crypto.kdfparams.n == MINIMUM_SCRYPT_PARAMS.n

    def test_domain_separator_applied(self):
        adulterator = MagicMock(return_value='separated')

        with patch('keystore_export.keys.export.encrypt_data') as mock_encrypt:
            mock_encrypt.side_effect = RuntimeError('stop')
            with pytest.raises(RuntimeError):
                to_encrypted_json('Test', b'\x01' * 32, None, PASSWORD, MINIMUM_SCRYPT_PARAMS,
                                  adulterator, build_payload)

        adulterator.assert_called_once_with(PASSWORD)
        assert mock_encrypt.call_args[0][1] == 'separated'

    def test_non_string_password(self):
        with pytest.raises(ValidationError):
            export_raw('Test', b'\x01' * 32, password=None)


class RawKeyCodec(KeyCodec[bytes]):
    key_type = 'Raw'
    password_prefix = 'rawkey'

    def raw_private_key(self, key):
        return key

    def public_key_string(self, key):
        return key[:4].hex()

    def reconstruct(self, export, raw):
        return bytes(raw)


class EmptyPublicKeyCodec(RawKeyCodec):
    def public_key_string(self, key):
        return ''


class TestKeyCodec:
    """Test codec driven export and import"""

    def test_round_trip(self):
        codec = RawKeyCodec()
        key = secrets.token_bytes(32)

        data = export_key(codec, key, PASSWORD, MINIMUM_SCRYPT_PARAMS)

        assert json.loads(data)['keyType'] == 'Raw'
        assert json.loads(data)['publicKey'] == key[:4].hex()
        assert import_key(codec, data, PASSWORD) == key

    def test_codec_uses_its_prefix(self):
        assert RawKeyCodec().adulterate_password('pw') == 'rawkeypw'

    def test_empty_public_key_is_builder_error(self):
        with pytest.raises(BuilderError) as exc_info:
            export_key(EmptyPublicKeyCodec(), b'\x01' * 32, PASSWORD, MINIMUM_SCRYPT_PARAMS)

        assert exc_info.value.error_code == 'INVALID_PUBLIC_KEY'

    def test_cannot_instantiate_abstract_codec(self):
        with pytest.raises(TypeError):
            KeyCodec()


class TestLogging:
    """Test what the engines log"""

    def test_secrets_never_logged(self, caplog):
        raw = bytes(range(1, 33))
        password = 'very-secret-password'

        with caplog.at_level(logging.DEBUG, logger='keystore_export'):
            data = export_raw('Test', raw, password=password)
            import_raw('Test', data, password=password)
            with pytest.raises(AuthenticationFailedError):
                import_raw('Test', data, password='another-secret')

        assert caplog.records
        for record in caplog.records:
            message = record.getMessage()
            assert password not in message
            assert 'another-secret' not in message
            assert raw.hex() not in message

    def test_mismatch_logged_as_warning(self, caplog):
        data = export_raw('Test', b'\x01' * 32)

        with caplog.at_level(logging.WARNING, logger='keystore_export'):
            with pytest.raises(KeyTypeMismatchError):
                import_raw('Other', data)

        assert any(record.levelno == logging.WARNING for record in caplog.records)
